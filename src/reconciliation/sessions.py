"""In-memory reconciliation sessions.

A session holds the working candidate list and leftover pool between a
preview and a commit. Sessions are never persisted; each one is private
to the preview that created it, and a new preview for the same
organization replaces it.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from uuid import UUID, uuid4

import structlog
from pydantic import BaseModel, Field

from src.reconciliation.errors import SessionBusyError, SessionNotFoundError
from src.reconciliation.schemas import MatchCandidate, MatchSummary, RemoteIdentity

logger = structlog.get_logger()


class ReconciliationSession(BaseModel):
    """Working state of one preview."""

    session_id: UUID = Field(default_factory=uuid4)
    organization_id: str = Field(description="Organization the rosters belong to")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    candidates: list[MatchCandidate] = Field(default_factory=list)
    leftover: list[RemoteIdentity] = Field(default_factory=list)
    remote_count: int = Field(default=0, description="Size of the fetched snapshot")

    @property
    def summary(self) -> MatchSummary:
        """Per-type counts for the current state."""
        return MatchSummary.from_candidates(self.candidates, self.leftover)


class SessionStore:
    """Simple in-memory store of active sessions.

    Each organization has at most one open session: opening a new preview
    replaces the previous one. A session being committed cannot be edited
    and is only dropped once its commit finishes.
    """

    def __init__(self):
        """Initialize empty store."""
        self._sessions: dict[UUID, ReconciliationSession] = {}
        self._committing: set[UUID] = set()
        self._superseded: set[UUID] = set()

    def add(self, session: ReconciliationSession) -> ReconciliationSession:
        """Store a new session, replacing the organization's previous one."""
        previous = [
            sid
            for sid, existing in self._sessions.items()
            if existing.organization_id == session.organization_id
        ]
        for sid in previous:
            if sid in self._committing:
                self._superseded.add(sid)
            else:
                self.discard(sid)

        self._sessions[session.session_id] = session
        logger.info(
            "reconciliation session opened",
            session_id=str(session.session_id),
            organization_id=session.organization_id,
            replaced=len(previous),
        )
        return session

    def get(self, session_id: UUID) -> ReconciliationSession:
        """Get a session by ID.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(f"Unknown session {session_id}") from None

    def get_editable(self, session_id: UUID) -> ReconciliationSession:
        """Get a session that is not being committed.

        Raises:
            SessionNotFoundError: If the session does not exist
            SessionBusyError: If a commit is running on the session
        """
        session = self.get(session_id)
        if session_id in self._committing:
            raise SessionBusyError(
                f"Session {session_id} is being committed; retry when it finishes"
            )
        return session

    def update(
        self,
        session_id: UUID,
        candidates: list[MatchCandidate],
        leftover: list[RemoteIdentity],
    ) -> ReconciliationSession:
        """Replace a session's working state.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        session = self.get(session_id)
        updated = session.model_copy(
            update={"candidates": candidates, "leftover": leftover}
        )
        self._sessions[session_id] = updated
        return updated

    @contextmanager
    def committing(self, session_id: UUID) -> Iterator[ReconciliationSession]:
        """Hold a session for the duration of a commit.

        Edits and other commits on the session are rejected until the
        block exits.

        Raises:
            SessionNotFoundError: If the session does not exist
            SessionBusyError: If a commit is already running on the session
        """
        session = self.get_editable(session_id)
        self._committing.add(session_id)
        try:
            yield session
        finally:
            self._committing.discard(session_id)
            if session_id in self._superseded:
                self.discard(session_id)

    def is_committing(self, session_id: UUID) -> bool:
        """True while a commit holds the session."""
        return session_id in self._committing

    def discard(self, session_id: UUID) -> bool:
        """Drop a session. Returns False if it did not exist."""
        self._superseded.discard(session_id)
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        """Return number of open sessions."""
        return len(self._sessions)
