"""
Exception types for the storage layer.

Two tiers:
- Storage client errors describe query execution only.
- Metadata store errors carry slot-domain meaning and are what the
  request processor sees.
"""


class StorageClientError(Exception):
    """Base class for query execution failures."""


class RowNotFoundError(StorageClientError):
    """Query matched no row, or the matched value was NULL."""

    def __init__(self, message: str = "Row not found") -> None:
        super().__init__(message)


class QueryTimeoutError(StorageClientError):
    """Query did not complete within the configured timeout."""

    def __init__(self, message: str = "Timeout") -> None:
        super().__init__(message)


class StorageIOError(StorageClientError):
    """Socket-level failure talking to the backend."""

    def __init__(self, original: OSError) -> None:
        super().__init__(f"I/O: {original}")
        self.original = original


class StorageDriverError(StorageClientError):
    """Any other failure reported by the driver, wrapped unchanged."""

    def __init__(self, original: Exception) -> None:
        super().__init__(f"MySQL: {original}")
        self.original = original


class MetaStorageError(Exception):
    """Base class for metadata store errors."""


class StorageBackendError(MetaStorageError):
    """Opaque backend failure."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Storage Error: {cause}")
        self.cause = cause


class IoError(MetaStorageError):
    def __init__(self, cause: OSError) -> None:
        super().__init__(f"I/O Error: {cause}")
        self.cause = cause


class UnsupportedTransactionEncodingError(MetaStorageError):
    def __init__(self) -> None:
        super().__init__("Transaction encoded is not supported")


class BlockNotFoundError(MetaStorageError):
    """No block row exists for the slot."""

    def __init__(self, slot: int) -> None:
        super().__init__(f"Block not found: {slot}")
        self.slot = slot


class SignatureNotFoundError(MetaStorageError):
    def __init__(self) -> None:
        super().__init__("Signature not found")


class BackendTimeoutError(MetaStorageError):
    def __init__(self) -> None:
        super().__init__("Storage timeout")


class TaskJoinError(MetaStorageError):
    """Worker task running a query could not be completed."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Task join error: {cause}")
        self.cause = cause


def from_client_error(error: StorageClientError) -> MetaStorageError:
    """
    Classify a storage client error for the metadata store.

    Row absence is not handled here; callers decide what it means.

    Args:
        error: Client-level error

    Returns:
        Matching metadata store error
    """
    if isinstance(error, QueryTimeoutError):
        return BackendTimeoutError()
    if isinstance(error, StorageIOError):
        return IoError(error.original)
    return StorageBackendError(error)
