"""
Errors raised by the record synchronizer.

Every public synchronizer operation fails with exactly one of these. The
`retryable` flag is informational: nothing is retried automatically, the
caller decides whether to re-invoke.
"""


class SyncError(Exception):
    """Base exception for record synchronization."""

    retryable: bool = False
    error_type: str = "sync_error"

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class NotAuthenticated(SyncError):
    """No signed-in user (missing/invalid session or empty owner id)."""

    error_type = "not_authenticated"


class RecordNotIdentified(SyncError):
    """
    Operation requires a persisted record but the record has no id.

    Raised before any remote call is made.
    """

    error_type = "record_not_identified"


class RecordAlreadyIdentified(SyncError):
    """
    A record passed to create() already has an id.

    Raised before any remote call is made; saved records go through update().
    """

    error_type = "record_already_identified"


class RecordNotFound(SyncError):
    """
    The record store has nothing for a known id.

    Treated as a conflict (deleted elsewhere, or never visible to this user).
    """

    error_type = "record_not_found"


class InvalidPayload(SyncError):
    """Asset payload rejected before upload."""

    error_type = "invalid_payload"


class EmptyPayload(InvalidPayload):
    """Asset payload is missing or zero bytes."""

    error_type = "empty_payload"


class PayloadTooLarge(InvalidPayload):
    """Asset payload exceeds the configured size limit."""

    error_type = "payload_too_large"

    def __init__(self, size: int, max_bytes: int):
        super().__init__(
            f"Payload of {size} bytes exceeds the {max_bytes} byte limit"
        )
        self.size = size
        self.max_bytes = max_bytes


class OperationTimedOut(SyncError):
    """
    A time-bounded remote call did not finish in time.

    The remote side may still complete the call; its late result is
    discarded. Distinct from RemoteError, which means the server answered
    with a failure.
    """

    retryable = True
    error_type = "timeout"

    def __init__(self, seconds: float, operation: str = "operation"):
        super().__init__(f"{operation} timed out after {seconds:g}s")
        self.seconds = seconds
        self.operation = operation


class RemoteError(SyncError):
    """Any lower-level failure from the record store, blob store or auth provider."""

    error_type = "remote_error"
