from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Iterator
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass
from functools import partial
from typing import Any, TypeVar

import anyio
from boto3.session import Session
from botocore.client import BaseClient
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError, ParamValidationError

from s3_signer.config import MAX_EXPIRES_IN, StoreConfig
from s3_signer.errors import ConfigurationError, InvalidParameters
from s3_signer.storage import (
    CompletedPart,
    ListingPage,
    ObjectRef,
    Operation,
    StorageBackend,
    StorageError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLIENT_METHODS = {
    Operation.GET: "get_object",
    Operation.PUT: "put_object",
    Operation.UPLOAD_PART: "upload_part",
}


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except ParamValidationError as e:
        raise InvalidParameters(str(e)) from e
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code")
        raise StorageError(str(e), code=code) from e
    except BotoCoreError as e:
        raise StorageError(str(e)) from e


@dataclass
class S3Storage(StorageBackend):
    config: StoreConfig

    @classmethod
    @asynccontextmanager
    async def connect(cls, config: StoreConfig) -> AsyncIterator[S3Storage]:
        storage = cls(config)
        # a broken region or endpoint is a deployment error, surface it before serving
        await anyio.to_thread.run_sync(storage._check_config)
        logger.info(
            "S3 storage ready: region=%s endpoint=%s",
            config.region,
            config.endpoint_url or "default",
        )
        yield storage

    def _check_config(self) -> None:
        if not 1 <= self.config.expires_in <= MAX_EXPIRES_IN:
            raise ConfigurationError(
                f"Presigned URL expiry must be between 1 and {MAX_EXPIRES_IN} seconds, got {self.config.expires_in}"
            )
        with self._get_client():
            pass

    @contextmanager
    def _get_client(self) -> Iterator[BaseClient]:
        options: dict[str, Any] = {"signature_version": "s3v4"}
        if self.config.endpoint is not None:
            options["s3"] = {"addressing_style": "path"}
        try:
            session = Session(
                aws_access_key_id=self.config.access_key_id,
                aws_secret_access_key=self.config.secret_access_key,
                region_name=self.config.region,
            )
            client = session.client(
                "s3",
                endpoint_url=self.config.endpoint_url,
                config=BotoConfig(**options),
            )
        except (BotoCoreError, ValueError) as e:
            raise ConfigurationError(f"Cannot create S3 client: {e}") from e
        try:
            yield client
        finally:
            client.close()

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        return await anyio.to_thread.run_sync(partial(func, *args))

    def _sign(
        self,
        operation: Operation,
        obj: ObjectRef,
        upload_id: str | None,
        part_number: int | None,
    ) -> str:
        params: dict[str, Any] = {"Bucket": obj.bucket, "Key": obj.key}
        if operation is Operation.UPLOAD_PART:
            params["UploadId"] = upload_id
            params["PartNumber"] = part_number
        with _translate_errors(), self._get_client() as client:
            return client.generate_presigned_url(
                _CLIENT_METHODS[operation],
                Params=params,
                ExpiresIn=self.config.expires_in,
            )

    async def sign(
        self,
        operation: Operation,
        obj: ObjectRef,
        upload_id: str | None = None,
        part_number: int | None = None,
    ) -> str:
        return await self._run(self._sign, operation, obj, upload_id, part_number)

    def _list_objects(self, bucket: str, prefix: str, delimiter: str) -> ListingPage:
        with _translate_errors(), self._get_client() as client:
            response = client.list_objects_v2(Bucket=bucket, Prefix=prefix, Delimiter=delimiter)
        logger.debug("list_objects_v2 response: %s", response)
        return ListingPage(
            keys=[content["Key"] for content in response.get("Contents", [])],
            common_prefixes=[common["Prefix"] for common in response.get("CommonPrefixes", [])],
        )

    async def list_objects(self, bucket: str, prefix: str, delimiter: str = "/") -> ListingPage:
        return await self._run(self._list_objects, bucket, prefix, delimiter)

    def _create_multipart_upload(self, obj: ObjectRef) -> str | None:
        with _translate_errors(), self._get_client() as client:
            response = client.create_multipart_upload(Bucket=obj.bucket, Key=obj.key)
        logger.debug("create_multipart_upload response: %s", response)
        return response.get("UploadId")

    async def create_multipart_upload(self, obj: ObjectRef) -> str | None:
        return await self._run(self._create_multipart_upload, obj)

    def _complete_multipart_upload(self, obj: ObjectRef, upload_id: str, parts: list[CompletedPart]) -> None:
        with _translate_errors(), self._get_client() as client:
            client.complete_multipart_upload(
                Bucket=obj.bucket,
                Key=obj.key,
                UploadId=upload_id,
                MultipartUpload={
                    "Parts": [{"PartNumber": part.number, "ETag": part.etag} for part in parts],
                },
            )

    async def complete_multipart_upload(self, obj: ObjectRef, upload_id: str, parts: list[CompletedPart]) -> None:
        await self._run(self._complete_multipart_upload, obj, upload_id, parts)

    def _abort_multipart_upload(self, obj: ObjectRef, upload_id: str) -> None:
        with _translate_errors(), self._get_client() as client:
            client.abort_multipart_upload(Bucket=obj.bucket, Key=obj.key, UploadId=upload_id)

    async def abort_multipart_upload(self, obj: ObjectRef, upload_id: str) -> None:
        await self._run(self._abort_multipart_upload, obj, upload_id)
