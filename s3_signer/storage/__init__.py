from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol


class Operation(str, Enum):
    GET = "GET"
    PUT = "PUT"
    UPLOAD_PART = "UPLOAD_PART"


@dataclass(frozen=True)
class ObjectRef:
    bucket: str
    key: str


@dataclass(frozen=True)
class CompletedPart:
    number: int
    etag: str


@dataclass
class ListingPage:
    """One delimited listing: keys directly under the prefix, then sub-prefixes."""

    keys: list[str] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)


class StorageError(Exception):
    """An error reported by the object store itself."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class StorageBackend(Protocol):
    async def sign(
        self,
        operation: Operation,
        obj: ObjectRef,
        upload_id: str | None = None,
        part_number: int | None = None,
    ) -> str: ...

    async def list_objects(self, bucket: str, prefix: str, delimiter: str = "/") -> ListingPage: ...

    async def create_multipart_upload(self, obj: ObjectRef) -> str | None: ...

    async def complete_multipart_upload(self, obj: ObjectRef, upload_id: str, parts: list[CompletedPart]) -> None: ...

    async def abort_multipart_upload(self, obj: ObjectRef, upload_id: str) -> None: ...
