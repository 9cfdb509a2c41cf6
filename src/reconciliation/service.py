"""ReconciliationService drives a preview -> review -> commit session.

Fetches both rosters, runs the resolver, keeps the working state in a
session store, applies user overrides and commits confirmed matches.
"""

import asyncio
from typing import Protocol
from uuid import UUID

import structlog

from src.events.bus import EventBus
from src.events.types import MatchesCommitted, MatchPreviewGenerated
from src.reconciliation import overrides
from src.reconciliation.commit import CommitService
from src.reconciliation.errors import PreviewUnavailableError, RemoteAlreadyClaimedError
from src.reconciliation.resolver import MatchResolver
from src.reconciliation.schemas import CommitResult, LocalIdentity, RemoteIdentity
from src.reconciliation.sessions import ReconciliationSession, SessionStore

logger = structlog.get_logger()


class LocalIdentitySource(Protocol):
    """Source of local team members."""

    async def get_active_members(self, organization_id: str) -> list[LocalIdentity]:
        """Active members of an organization, in match order."""
        ...


class RemoteIdentitySource(Protocol):
    """Source of scheduling-system users."""

    async def get_users(
        self, organization_id: str, status: str = "active"
    ) -> list[RemoteIdentity]:
        """Snapshot of users for an organization."""
        ...


class ReconciliationService:
    """Orchestrates reconciliation sessions."""

    def __init__(
        self,
        local_source: LocalIdentitySource,
        remote_source: RemoteIdentitySource,
        resolver: MatchResolver,
        commit_service: CommitService,
        sessions: SessionStore | None = None,
        event_bus: EventBus | None = None,
    ):
        """Initialize service with its collaborators.

        Args:
            local_source: Team member repository
            remote_source: Scheduling-system adapter
            resolver: Match resolver
            commit_service: Writes confirmed links
            sessions: Session store (a fresh in-memory store by default)
            event_bus: Optional bus for activity events
        """
        self._locals = local_source
        self._remotes = remote_source
        self._resolver = resolver
        self._commit = commit_service
        self.sessions = sessions or SessionStore()
        self._bus = event_bus

    async def preview(self, organization_id: str) -> ReconciliationSession:
        """Fetch both rosters and build a new session.

        Both fetches run concurrently. If either fails the resolver is not
        run and no session is created.

        Args:
            organization_id: Organization to reconcile

        Returns:
            New ReconciliationSession

        Raises:
            PreviewUnavailableError: If either roster could not be fetched
        """
        try:
            members, users = await asyncio.gather(
                self._locals.get_active_members(organization_id),
                self._remotes.get_users(organization_id, status="active"),
            )
        except Exception as e:
            logger.error(
                "match preview unavailable",
                organization_id=organization_id,
                error=str(e),
            )
            raise PreviewUnavailableError(
                f"Failed to load match data: {e}"
            ) from e

        active = [m for m in members if m.is_active]
        candidates, leftover = self._resolver.resolve(active, users)
        session = self.sessions.add(
            ReconciliationSession(
                organization_id=organization_id,
                candidates=candidates,
                leftover=leftover,
                remote_count=len(users),
            )
        )

        summary = session.summary
        if self._bus:
            await self._bus.publish(
                MatchPreviewGenerated(
                    aggregate_id=session.session_id,
                    organization_id=organization_id,
                    linked_count=summary.linked,
                    exact_count=summary.exact,
                    suggested_count=summary.suggested,
                    unmatched_count=summary.unmatched,
                    leftover_count=summary.leftover_count,
                )
            )
        return session

    def get_session(self, session_id: UUID) -> ReconciliationSession:
        """Get a session by ID."""
        return self.sessions.get(session_id)

    def assign(
        self, session_id: UUID, index: int, remote_id: str
    ) -> ReconciliationSession:
        """Manually assign a leftover scheduling user to a candidate.

        Args:
            session_id: Session to update
            index: Candidate position
            remote_id: ID of a scheduling user in the leftover pool

        Raises:
            RemoteAlreadyClaimedError: If remote_id is not in the pool
            SessionBusyError: If the session is being committed
        """
        session = self.sessions.get_editable(session_id)
        remote = next(
            (r for r in session.leftover if r.external_key == str(remote_id)), None
        )
        if remote is None:
            raise RemoteAlreadyClaimedError(
                f"Scheduling user {remote_id} is not available for assignment"
            )
        candidates, leftover = overrides.manual_assign(
            session.candidates, session.leftover, index, remote
        )
        return self.sessions.update(session_id, candidates, leftover)

    def unlink(self, session_id: UUID, index: int) -> ReconciliationSession:
        """Clear a candidate's pairing in the session."""
        session = self.sessions.get_editable(session_id)
        candidates, leftover = overrides.unlink_match(
            session.candidates, session.leftover, index
        )
        return self.sessions.update(session_id, candidates, leftover)

    def toggle_confirm(self, session_id: UUID, index: int) -> ReconciliationSession:
        """Flip a candidate's confirmed flag in the session."""
        session = self.sessions.get_editable(session_id)
        candidates = overrides.toggle_confirm(session.candidates, index)
        return self.sessions.update(session_id, candidates, session.leftover)

    async def commit(
        self, session_id: UUID
    ) -> tuple[ReconciliationSession, CommitResult]:
        """Write the session's confirmed matches.

        The session is held for the whole write loop, so edits arriving
        meanwhile are rejected instead of being overwritten.

        Args:
            session_id: Session to commit

        Returns:
            Tuple of (updated session, commit result)

        Raises:
            SessionBusyError: If a commit is already running on the session
        """
        with self.sessions.committing(session_id) as session:
            candidates = list(session.candidates)
            result = await self._commit.commit(candidates)
            session = self.sessions.update(session_id, candidates, session.leftover)

        if result.succeeded and self._bus:
            event = MatchesCommitted(
                aggregate_id=session_id,
                organization_id=session.organization_id,
                succeeded=result.succeeded,
                failed=result.failed,
                committed_local_ids=result.committed_local_ids,
            )
            try:
                await self._bus.publish_and_store(event)
            except Exception as e:
                logger.warning(
                    "failed to record match activity",
                    session_id=str(session_id),
                    error=str(e),
                )
        return session, result
