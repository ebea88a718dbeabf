from urllib.parse import parse_qs, urlsplit

import pytest

from s3_signer.errors import (
    InvalidParameters,
    MultipartUploadAbortionError,
    MultipartUploadCompletionError,
    MultipartUploadCreationError,
    ProtocolViolation,
)
from s3_signer.models import AbortOrCompleteUploadBody
from s3_signer.multipart import (
    abort_or_complete,
    abort_upload,
    complete_upload,
    create_upload,
    part_upload_url,
)
from s3_signer.storage import CompletedPart, ObjectRef, StorageError
from s3_signer.storage.memory import InMemoryBackend

OBJ = ObjectRef(bucket="bucket", key="video.mp4")


class NoUploadIdBackend(InMemoryBackend):
    async def create_multipart_upload(self, obj: ObjectRef) -> str | None:
        return None


class UnavailableBackend(InMemoryBackend):
    async def create_multipart_upload(self, obj: ObjectRef) -> str | None:
        raise StorageError("Service Unavailable", code="ServiceUnavailable")


@pytest.mark.anyio
async def test_part_url_carries_created_upload_id(fs: InMemoryBackend) -> None:
    upload_id = await create_upload(fs, OBJ)
    url = await part_upload_url(fs, OBJ, upload_id, 3)
    params = parse_qs(urlsplit(url).query)
    assert params["uploadId"] == [upload_id]
    assert params["partNumber"] == ["3"]


@pytest.mark.anyio
async def test_part_urls_need_no_server_state(fs: InMemoryBackend) -> None:
    # parts may be requested in any order, repeatedly, for any upload id
    for part_number in (5, 1, 5):
        url = await part_upload_url(fs, OBJ, "some-upload", part_number)
        assert parse_qs(urlsplit(url).query)["partNumber"] == [str(part_number)]


@pytest.mark.anyio
async def test_part_number_must_be_positive(fs: InMemoryBackend) -> None:
    with pytest.raises(InvalidParameters):
        await part_upload_url(fs, OBJ, "some-upload", 0)
    assert fs.calls == []


@pytest.mark.anyio
async def test_missing_upload_id_is_a_protocol_violation() -> None:
    with pytest.raises(ProtocolViolation):
        await create_upload(NoUploadIdBackend(), OBJ)


@pytest.mark.anyio
async def test_create_failure() -> None:
    with pytest.raises(MultipartUploadCreationError) as exc_info:
        await create_upload(UnavailableBackend(), OBJ)
    assert exc_info.value.code == "ServiceUnavailable"


@pytest.mark.anyio
async def test_complete(fs: InMemoryBackend) -> None:
    upload_id = await create_upload(fs, OBJ)
    await complete_upload(fs, OBJ, upload_id, [CompletedPart(1, "e1"), CompletedPart(2, "e2")])
    assert OBJ.key in fs.storage[OBJ.bucket]


@pytest.mark.anyio
async def test_complete_with_no_parts_reaches_backend(fs: InMemoryBackend) -> None:
    upload_id = await create_upload(fs, OBJ)
    with pytest.raises(MultipartUploadCompletionError) as exc_info:
        await complete_upload(fs, OBJ, upload_id, [])
    assert exc_info.value.code == "MalformedXML"
    assert fs.calls == ["create_multipart_upload", "complete_multipart_upload"]


@pytest.mark.anyio
async def test_complete_rejected_part_order(fs: InMemoryBackend) -> None:
    upload_id = await create_upload(fs, OBJ)
    with pytest.raises(MultipartUploadCompletionError) as exc_info:
        await complete_upload(fs, OBJ, upload_id, [CompletedPart(2, "e2"), CompletedPart(1, "e1")])
    assert exc_info.value.code == "InvalidPartOrder"


@pytest.mark.anyio
async def test_abort_unknown_upload(fs: InMemoryBackend) -> None:
    with pytest.raises(MultipartUploadAbortionError) as exc_info:
        await abort_upload(fs, OBJ, "unknown")
    assert exc_info.value.code == "NoSuchUpload"


@pytest.mark.anyio
async def test_abort_or_complete_dispatch(fs: InMemoryBackend) -> None:
    upload_id = await create_upload(fs, OBJ)
    body = AbortOrCompleteUploadBody.model_validate({"action": "Abort"})
    await abort_or_complete(fs, OBJ, upload_id, body)
    assert fs.calls[-1] == "abort_multipart_upload"

    upload_id = await create_upload(fs, OBJ)
    body = AbortOrCompleteUploadBody.model_validate(
        {"action": "Complete", "parts": [{"number": 1, "etag": "e1"}]}
    )
    await abort_or_complete(fs, OBJ, upload_id, body)
    assert fs.calls[-1] == "complete_multipart_upload"
    assert fs.uploads == {}


@pytest.mark.anyio
async def test_upload_belongs_to_its_object(fs: InMemoryBackend) -> None:
    upload_id = await create_upload(fs, OBJ)
    other = ObjectRef(bucket="bucket", key="other.mp4")
    with pytest.raises(MultipartUploadCompletionError) as exc_info:
        await complete_upload(fs, other, upload_id, [CompletedPart(1, "e1")])
    assert exc_info.value.code == "NoSuchUpload"
    assert upload_id in fs.uploads
