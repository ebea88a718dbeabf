from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_REGION = "us-east-1"
DEFAULT_EXPIRES_IN = 3600
# longest validity SigV4 accepts for a presigned URL
MAX_EXPIRES_IN = 604800


@dataclass(frozen=True)
class StoreConfig:
    """Credentials and location of the object store.

    When ``endpoint`` is set the store is not AWS and ``region`` is only the
    label used in signatures.
    """

    access_key_id: str
    secret_access_key: str = field(repr=False)
    region: str = DEFAULT_REGION
    endpoint: str | None = None
    expires_in: int = DEFAULT_EXPIRES_IN

    @property
    def endpoint_url(self) -> str | None:
        if self.endpoint is None:
            return None
        if "://" in self.endpoint:
            return self.endpoint
        return f"https://{self.endpoint}"
