from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from httpx import AsyncClient, Response

from s3_signer.errors import ProtocolViolation
from s3_signer.models import (
    AbortOrCompleteUploadBody,
    AbortUpload,
    CompletedUploadPart,
    CompleteUpload,
    CreateUploadResponse,
    ListedObject,
    PartUploadResponse,
)


def _location(response: Response) -> str:
    if not response.is_redirect:
        response.raise_for_status()
        raise ProtocolViolation(f"Expected a redirect to a signed URL, got {response.status_code}")
    return response.headers["Location"]


@dataclass
class SignerClient:
    """Async client for an s3-signer gateway.

    ``client`` must have the gateway's API root as base URL, e.g.
    ``AsyncClient(base_url="http://localhost:8000/api")``. Redirects are read,
    not followed. HTTP errors raise ``httpx.HTTPStatusError``.
    """

    client: AsyncClient

    async def object_url(self, bucket: str, path: str) -> str:
        response = await self.client.get("/object", params={"bucket": bucket, "path": path})
        return _location(response)

    async def create_object_url(self, bucket: str, path: str) -> str:
        response = await self.client.post("/objects", params={"bucket": bucket, "path": path})
        return _location(response)

    async def list_objects(self, bucket: str, prefix: str | None = None) -> list[ListedObject]:
        params = {"bucket": bucket}
        if prefix is not None:
            params["prefix"] = prefix
        response = await self.client.get("/objects", params=params)
        response.raise_for_status()
        return [ListedObject.model_validate(item) for item in response.json()]

    async def create_upload(self, bucket: str, path: str) -> str:
        response = await self.client.post("/multipart-upload", params={"bucket": bucket, "path": path})
        response.raise_for_status()
        return CreateUploadResponse.model_validate(response.json()).upload_id

    async def part_upload_url(self, bucket: str, path: str, upload_id: str, part_number: int) -> str:
        response = await self.client.get(
            f"/multipart-upload/{upload_id}/part/{part_number}",
            params={"bucket": bucket, "path": path},
        )
        response.raise_for_status()
        return PartUploadResponse.model_validate(response.json()).presigned_url

    async def _abort_or_complete(self, bucket: str, path: str, upload_id: str, body: AbortOrCompleteUploadBody) -> None:
        response = await self.client.post(
            f"/multipart-upload/{upload_id}",
            params={"bucket": bucket, "path": path},
            json=body.model_dump(mode="json"),
        )
        response.raise_for_status()

    async def complete_upload(
        self,
        bucket: str,
        path: str,
        upload_id: str,
        parts: Iterable[tuple[int, str]],
    ) -> None:
        """Complete an upload from ``(part number, etag)`` pairs, sent in the given order."""
        body = CompleteUpload(parts=[CompletedUploadPart(number=number, etag=etag) for number, etag in parts])
        await self._abort_or_complete(bucket, path, upload_id, AbortOrCompleteUploadBody(body))

    async def abort_upload(self, bucket: str, path: str, upload_id: str) -> None:
        await self._abort_or_complete(bucket, path, upload_id, AbortOrCompleteUploadBody(AbortUpload()))
