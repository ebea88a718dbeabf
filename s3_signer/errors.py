class SignerError(Exception):
    """Base class for errors rendered as an HTTP error response.

    Attributes:
        message: Human-readable description, returned as ``detail``.
        status_code: HTTP status to answer with.
    """

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(SignerError):
    """The backend client cannot be built from the store configuration."""


class InvalidParameters(SignerError):
    status_code = 422


class BackendOperationError(SignerError):
    """The object store rejected or failed an operation."""

    operation = "backend operation"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class ListObjectsError(BackendOperationError):
    operation = "Objects listing"


class MultipartUploadCreationError(BackendOperationError):
    operation = "Multipart upload creation"


class MultipartUploadCompletionError(BackendOperationError):
    operation = "Multipart upload completion"


class MultipartUploadAbortionError(BackendOperationError):
    operation = "Multipart upload abortion"


class ProtocolViolation(SignerError):
    """The backend reported success but left out a field we rely on."""
