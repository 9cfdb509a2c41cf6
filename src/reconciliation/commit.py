"""Commit confirmed matches to the local roster.

Writes are issued one record at a time with no wrapping transaction. A
failed write is recorded and the loop moves on, so a failure at record k
leaves records before it committed.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

import structlog

from src.reconciliation.schemas import (
    CommitFailure,
    CommitResult,
    MatchCandidate,
    MatchType,
)

logger = structlog.get_logger()


@runtime_checkable
class LocalIdentityStore(Protocol):
    """Storage that accepts single-record link updates."""

    async def update_external_link(
        self,
        member_id: str,
        *,
        external_id: str,
        external_source: str,
        external_data: dict | None,
        synced_at: datetime,
    ) -> None:
        """Write the external link for one team member."""
        ...


class CommitService:
    """Persists confirmed, not yet linked candidates."""

    def __init__(
        self,
        store: LocalIdentityStore,
        external_source: str = "7shifts",
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize commit service.

        Args:
            store: Local identity store receiving link writes
            external_source: Tag written to external_source
            clock: Timestamp source for last_synced_at (default UTC now)
        """
        self._store = store
        self._source = external_source
        self._clock = clock or (lambda: datetime.now(UTC))

    async def commit(self, candidates: list[MatchCandidate]) -> CommitResult:
        """Write every pending candidate and promote it to linked.

        Only confirmed candidates with a remote identity that are not
        already linked are written. Successful entries are replaced in
        ``candidates`` (in place) by linked candidates whose local
        identity carries the new external_id. Failed entries stay as
        they were.

        Args:
            candidates: Session candidate list, updated in place

        Returns:
            CommitResult with counts and per-record failures
        """
        result = CommitResult()

        for index, candidate in enumerate(list(candidates)):
            if not candidate.is_pending:
                result.skipped += 1
                continue

            remote = candidate.remote
            external_id = remote.external_key
            synced_at = self._clock()
            try:
                await self._store.update_external_link(
                    candidate.local.id,
                    external_id=external_id,
                    external_source=self._source,
                    external_data=remote.model_dump(mode="json", exclude_none=True),
                    synced_at=synced_at,
                )
            except Exception as e:
                logger.warning(
                    "match commit failed",
                    local_id=candidate.local.id,
                    remote_id=external_id,
                    error=str(e),
                )
                result.failed += 1
                result.failures.append(
                    CommitFailure(
                        index=index,
                        local_id=candidate.local.id,
                        remote_id=external_id,
                        error=str(e) or type(e).__name__,
                    )
                )
                continue

            local = candidate.local.model_copy(
                update={
                    "external_id": external_id,
                    "external_source": self._source,
                    "last_synced_at": synced_at,
                }
            )
            candidates[index] = MatchCandidate(
                local=local,
                remote=remote,
                match_type=MatchType.LINKED,
                confidence=100,
                confirmed=True,
            )
            result.succeeded += 1
            result.committed_local_ids.append(local.id)

        logger.info(
            "match commit finished",
            succeeded=result.succeeded,
            failed=result.failed,
            skipped=result.skipped,
        )
        return result
