import logging
from dataclasses import dataclass

from s3_signer.errors import ListObjectsError
from s3_signer.storage import StorageBackend, StorageError

logger = logging.getLogger(__name__)

DELIMITER = "/"


@dataclass(frozen=True)
class ListingEntry:
    path: str
    is_dir: bool


def build_entry(path: str, prefix: str, is_dir: bool) -> ListingEntry | None:
    # plain length slice: a prefix that does not end on a delimiter leaves partial segment names
    relative = path[len(prefix):]
    if not relative:
        return None
    return ListingEntry(path=relative, is_dir=is_dir)


async def list_directory(fs: StorageBackend, bucket: str, prefix: str | None = None) -> list[ListingEntry]:
    """List one level of ``bucket`` under ``prefix``.

    Objects come first, then sub-directories, each relative to ``prefix``. The
    entry for the prefix itself (a directory marker) is dropped.
    """
    prefix = prefix or ""
    logger.info("List objects: bucket=%s prefix=%r", bucket, prefix)
    try:
        page = await fs.list_objects(bucket, prefix, delimiter=DELIMITER)
    except StorageError as e:
        logger.error("Failure on list_objects: bucket=%s prefix=%r: %s", bucket, prefix, e)
        raise ListObjectsError(f"{ListObjectsError.operation}: {e}", code=e.code) from e

    entries = [build_entry(key, prefix, is_dir=False) for key in page.keys]
    entries += [build_entry(common, prefix, is_dir=True) for common in page.common_prefixes]
    return [entry for entry in entries if entry is not None]
