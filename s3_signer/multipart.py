"""Multipart upload driven over independent requests.

Nothing is kept between calls: the client carries the upload id and the part
ETags from one step to the next, and the object store alone knows whether an
upload is open, completed or aborted. Part numbers are not checked for gaps
or duplicates here, the store does that on completion.
"""

import logging
from collections.abc import Sequence

from s3_signer.errors import (
    MultipartUploadAbortionError,
    MultipartUploadCompletionError,
    MultipartUploadCreationError,
    ProtocolViolation,
)
from s3_signer.models import AbortOrCompleteUploadBody, CompleteUpload
from s3_signer.signing import sign
from s3_signer.storage import CompletedPart, ObjectRef, Operation, StorageBackend, StorageError

logger = logging.getLogger(__name__)


async def create_upload(fs: StorageBackend, obj: ObjectRef) -> str:
    logger.info("Create multipart upload: bucket=%s key=%s", obj.bucket, obj.key)
    try:
        upload_id = await fs.create_multipart_upload(obj)
    except StorageError as e:
        logger.error("Failure on create_multipart_upload: %s", e)
        raise MultipartUploadCreationError(f"{MultipartUploadCreationError.operation}: {e}", code=e.code) from e
    if not upload_id:
        logger.error("Invalid create_multipart_upload response: no upload id for %s/%s", obj.bucket, obj.key)
        raise ProtocolViolation("Multipart upload: invalid multipart upload creation response")
    return upload_id


async def part_upload_url(fs: StorageBackend, obj: ObjectRef, upload_id: str, part_number: int) -> str:
    logger.info("Upload part: upload_id=%s, part_number=%d", upload_id, part_number)
    return await sign(fs, Operation.UPLOAD_PART, obj, upload_id=upload_id, part_number=part_number)


async def complete_upload(
    fs: StorageBackend,
    obj: ObjectRef,
    upload_id: str,
    parts: Sequence[CompletedPart],
) -> None:
    logger.info("Complete multipart upload: upload_id=%s, parts=%d", upload_id, len(parts))
    try:
        await fs.complete_multipart_upload(obj, upload_id, list(parts))
    except StorageError as e:
        logger.error("Failure on complete_multipart_upload: upload_id=%s: %s", upload_id, e)
        raise MultipartUploadCompletionError(f"{MultipartUploadCompletionError.operation}: {e}", code=e.code) from e


async def abort_upload(fs: StorageBackend, obj: ObjectRef, upload_id: str) -> None:
    logger.info("Abort multipart upload: upload_id=%s", upload_id)
    try:
        await fs.abort_multipart_upload(obj, upload_id)
    except StorageError as e:
        logger.error("Failure on abort_multipart_upload: upload_id=%s: %s", upload_id, e)
        raise MultipartUploadAbortionError(f"{MultipartUploadAbortionError.operation}: {e}", code=e.code) from e


async def abort_or_complete(
    fs: StorageBackend,
    obj: ObjectRef,
    upload_id: str,
    body: AbortOrCompleteUploadBody,
) -> None:
    action = body.root
    if isinstance(action, CompleteUpload):
        await complete_upload(fs, obj, upload_id, [part.to_part() for part in action.parts])
    else:
        await abort_upload(fs, obj, upload_id)
