import logging

from s3_signer.errors import InvalidParameters
from s3_signer.storage import ObjectRef, Operation, StorageBackend

logger = logging.getLogger(__name__)


async def sign(
    fs: StorageBackend,
    operation: Operation,
    obj: ObjectRef,
    upload_id: str | None = None,
    part_number: int | None = None,
) -> str:
    """Return a presigned URL for ``operation`` on ``obj``.

    The URL is valid for the store's configured expiry starting now. No request
    is sent to the store; only ``UPLOAD_PART`` takes an upload id and a part
    number, both required.
    """
    if not obj.bucket:
        raise InvalidParameters("Missing bucket name")
    if not obj.key:
        raise InvalidParameters("Missing object key")
    if operation is Operation.UPLOAD_PART:
        if not upload_id:
            raise InvalidParameters("Missing upload id")
        if part_number is None or part_number < 1:
            raise InvalidParameters(f"Invalid part number: {part_number}")
    else:
        upload_id = part_number = None

    url = await fs.sign(operation, obj, upload_id=upload_id, part_number=part_number)
    logger.debug("Signed %s URL for %s/%s", operation.value, obj.bucket, obj.key)
    return url
