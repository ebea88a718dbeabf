from collections import defaultdict
from dataclasses import dataclass, field
from urllib.parse import quote, urlencode
from uuid import uuid4

from s3_signer.config import DEFAULT_EXPIRES_IN
from s3_signer.storage import (
    CompletedPart,
    ListingPage,
    ObjectRef,
    Operation,
    StorageBackend,
    StorageError,
)


@dataclass
class Upload:
    obj: ObjectRef


@dataclass
class InMemoryBackend(StorageBackend):
    """Object store stand-in that keeps keys and open uploads in process memory.

    Signed URLs point at ``memory.invalid`` and carry the operation in the query
    string, so they are only useful for inspection. Every call is recorded in
    ``calls``.
    """

    storage: dict[str, dict[str, bytes]] = field(
        default_factory=lambda: defaultdict(dict)
    )
    uploads: dict[str, Upload] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    expires_in: int = DEFAULT_EXPIRES_IN

    def put(self, namespace: str, key: str, body: bytes = b"") -> None:
        self.storage[namespace][key] = body

    async def sign(
        self,
        operation: Operation,
        obj: ObjectRef,
        upload_id: str | None = None,
        part_number: int | None = None,
    ) -> str:
        self.calls.append("sign")
        query: dict[str, str | int] = {"X-Operation": operation.value, "X-Expires": self.expires_in}
        if operation is Operation.UPLOAD_PART:
            query.update(uploadId=upload_id, partNumber=part_number)
        return f"https://memory.invalid/{quote(obj.bucket)}/{quote(obj.key)}?{urlencode(query)}"

    async def list_objects(self, bucket: str, prefix: str, delimiter: str = "/") -> ListingPage:
        self.calls.append("list_objects")
        page = ListingPage()
        for key in sorted(self.storage[bucket]):
            if not key.startswith(prefix):
                continue
            index = key.find(delimiter, len(prefix))
            if index == -1:
                page.keys.append(key)
            elif (common := key[: index + len(delimiter)]) not in page.common_prefixes:
                page.common_prefixes.append(common)
        return page

    async def create_multipart_upload(self, obj: ObjectRef) -> str | None:
        self.calls.append("create_multipart_upload")
        upload_id = uuid4().hex
        self.uploads[upload_id] = Upload(obj=obj)
        return upload_id

    def _check_upload(self, obj: ObjectRef, upload_id: str) -> None:
        upload = self.uploads.get(upload_id)
        if upload is None or upload.obj != obj:
            raise StorageError("The specified upload does not exist.", code="NoSuchUpload")

    async def complete_multipart_upload(self, obj: ObjectRef, upload_id: str, parts: list[CompletedPart]) -> None:
        self.calls.append("complete_multipart_upload")
        self._check_upload(obj, upload_id)
        if not parts:
            raise StorageError(
                "The XML you provided was not well-formed or did not validate against our published schema.",
                code="MalformedXML",
            )
        numbers = [part.number for part in parts]
        if numbers != sorted(set(numbers)):
            raise StorageError("The list of parts was not in ascending order.", code="InvalidPartOrder")
        del self.uploads[upload_id]
        self.put(obj.bucket, obj.key)

    async def abort_multipart_upload(self, obj: ObjectRef, upload_id: str) -> None:
        self.calls.append("abort_multipart_upload")
        self._check_upload(obj, upload_id)
        del self.uploads[upload_id]
