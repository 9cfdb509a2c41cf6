"""User overrides on a candidate list.

Each operation takes the current candidates and leftover pool and returns
new lists; inputs are never mutated. Operations never touch storage, so
unlinking a linked candidate only affects the in-memory session.
"""

import structlog

from src.reconciliation.errors import (
    CandidateAlreadyMatchedError,
    CandidateIndexError,
    RemoteAlreadyClaimedError,
)
from src.reconciliation.schemas import MatchCandidate, MatchType, RemoteIdentity

logger = structlog.get_logger()


def _check_index(candidates: list[MatchCandidate], index: int) -> None:
    if not 0 <= index < len(candidates):
        raise CandidateIndexError(
            f"Candidate index {index} out of range for {len(candidates)} candidate(s)"
        )


def manual_assign(
    candidates: list[MatchCandidate],
    leftover: list[RemoteIdentity],
    index: int,
    remote: RemoteIdentity,
) -> tuple[list[MatchCandidate], list[RemoteIdentity]]:
    """Assign a leftover remote identity to a candidate.

    The candidate becomes a confirmed manual match with confidence 100.
    Only a candidate with no remote can be assigned; one that already holds
    a remote (any match type, linked included) is rejected rather than
    overwritten, since dropping its remote would leave that user in neither
    a candidate nor the pool. Replacing an existing pairing is a two-step
    operation: unlink_match() first, so the previous remote identity goes
    back to the pool.

    Args:
        candidates: Current candidate list
        leftover: Current leftover pool
        index: Candidate to assign to
        remote: Remote identity taken from the leftover pool

    Returns:
        Tuple of (updated candidates, updated leftover)

    Raises:
        CandidateIndexError: If index is out of range
        CandidateAlreadyMatchedError: If the candidate still holds a remote
        RemoteAlreadyClaimedError: If remote is not in the leftover pool
    """
    _check_index(candidates, index)
    current = candidates[index]
    if current.remote is not None:
        raise CandidateAlreadyMatchedError(
            f"Member {current.local.id} is already paired with "
            f"{current.remote.external_key}; unlink it first"
        )
    key = remote.external_key
    if not any(r.external_key == key for r in leftover):
        raise RemoteAlreadyClaimedError(
            f"Scheduling user {key} is not available for assignment"
        )

    updated = list(candidates)
    updated[index] = MatchCandidate(
        local=current.local,
        remote=remote,
        match_type=MatchType.MANUAL,
        confidence=100,
        confirmed=True,
    )
    remaining = [r for r in leftover if r.external_key != key]
    logger.info("manual match assigned", local_id=current.local.id, remote_id=key)
    return updated, remaining


def unlink_match(
    candidates: list[MatchCandidate],
    leftover: list[RemoteIdentity],
    index: int,
) -> tuple[list[MatchCandidate], list[RemoteIdentity]]:
    """Clear a candidate's pairing and return its remote to the pool.

    Valid for every match type, including linked. Stored links are left
    alone; this only undoes the pairing in the session.

    Args:
        candidates: Current candidate list
        leftover: Current leftover pool
        index: Candidate to unlink

    Returns:
        Tuple of (updated candidates, updated leftover)

    Raises:
        CandidateIndexError: If index is out of range
    """
    _check_index(candidates, index)
    current = candidates[index]
    remaining = list(leftover)
    if current.remote is not None:
        remaining.append(current.remote)
        logger.info(
            "match unlinked",
            local_id=current.local.id,
            remote_id=current.remote.external_key,
            previous_type=current.match_type.value,
        )

    updated = list(candidates)
    updated[index] = MatchCandidate.unmatched(current.local)
    return updated, remaining


def toggle_confirm(
    candidates: list[MatchCandidate],
    index: int,
) -> list[MatchCandidate]:
    """Flip a candidate's confirmed flag.

    No-op for candidates without a remote identity.

    Raises:
        CandidateIndexError: If index is out of range
    """
    _check_index(candidates, index)
    current = candidates[index]
    if current.remote is None:
        return list(candidates)

    updated = list(candidates)
    updated[index] = current.model_copy(update={"confirmed": not current.confirmed})
    return updated
