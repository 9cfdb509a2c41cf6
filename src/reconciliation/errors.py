"""Exceptions raised by the reconciliation engine."""


class ReconciliationError(Exception):
    """Base class for reconciliation errors."""


class RemoteFetchError(ReconciliationError):
    """Raised when the scheduling system roster cannot be fetched."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PreviewUnavailableError(ReconciliationError):
    """Raised when either roster is unavailable and no preview can be built."""


class SessionNotFoundError(ReconciliationError, KeyError):
    """Raised for an unknown or discarded session ID."""


class CandidateIndexError(ReconciliationError, IndexError):
    """Raised when a candidate index is out of range."""


class RemoteAlreadyClaimedError(ReconciliationError):
    """Raised when assigning a remote identity that is not in the leftover pool."""


class CandidateAlreadyMatchedError(ReconciliationError):
    """Raised when assigning to a candidate that still holds a remote identity.

    Unlink first to return the previous remote identity to the pool.
    """


class MemberNotFoundError(ReconciliationError):
    """Raised when a link write targets a team member that does not exist."""


class SessionBusyError(ReconciliationError):
    """Raised when a session is edited or committed while a commit is running."""
