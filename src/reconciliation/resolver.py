"""MatchResolver pairs local team members with scheduling users.

Resolution cascade (in order):
1. Linked: stored external_id matches a fetched user (claimed for all
   local identities before any other stage runs)
2. Exact name match (normalized "first last")
3. Exact email match
4. Weighted fuzzy name match at or above threshold (unrounded)

Stages 2-4 are greedy in input order: each remote identity is claimed by
the first local identity that matches it and is removed from the pool.
"""

import structlog

from src.reconciliation.normalizer import normalize, normalize_full_name
from src.reconciliation.schemas import (
    LocalIdentity,
    MatchCandidate,
    MatchSummary,
    MatchType,
    RemoteIdentity,
)
from src.reconciliation.similarity import NameScorer, round_half_up

logger = structlog.get_logger()

EXACT_NAME_CONFIDENCE = 95
EXACT_EMAIL_CONFIDENCE = 90
DEFAULT_FUZZY_THRESHOLD = 60


class MatchResolver:
    """Builds the initial candidate list and leftover pool.

    Pure with respect to its inputs: neither list passed to resolve() is
    mutated, and the same inputs in the same order always produce the
    same output.
    """

    def __init__(
        self,
        scorer: NameScorer | None = None,
        fuzzy_threshold: int = DEFAULT_FUZZY_THRESHOLD,
    ):
        """Initialize resolver.

        Args:
            scorer: Weighted name scorer (default character-overlap 0.4/0.6)
            fuzzy_threshold: Minimum weighted score for a suggested match
        """
        self._scorer = scorer or NameScorer()
        self._threshold = fuzzy_threshold

    def resolve(
        self,
        locals_: list[LocalIdentity],
        remotes: list[RemoteIdentity],
    ) -> tuple[list[MatchCandidate], list[RemoteIdentity]]:
        """Match every local identity against the remote roster.

        Args:
            locals_: Active local identities, in the order that decides
                     contested matches (typically by last name)
            remotes: Full scheduling-system snapshot

        Returns:
            Tuple of (one candidate per local identity in input order,
            remote identities no candidate claimed)
        """
        available = list(remotes)

        # Stored links are claimed before any name matching so that an
        # earlier member cannot take a user another member is linked to.
        linked: dict[int, MatchCandidate] = {}
        for pos, local in enumerate(locals_):
            if local.external_id:
                idx = self._linked_index(local, available)
                if idx is not None:
                    linked[pos] = MatchCandidate(
                        local=local,
                        remote=available.pop(idx),
                        match_type=MatchType.LINKED,
                        confidence=100,
                        confirmed=True,
                    )

        candidates = []
        for pos, local in enumerate(locals_):
            if pos in linked:
                candidates.append(linked[pos])
            else:
                candidates.append(self._resolve_one(local, available))

        logger.info(
            "match preview built",
            locals=len(locals_),
            remotes=len(remotes),
            summary=MatchSummary.from_candidates(candidates, available).describe(),
        )
        return candidates, available

    def _resolve_one(
        self,
        local: LocalIdentity,
        available: list[RemoteIdentity],
    ) -> MatchCandidate:
        """Run the name and email stages for one unlinked local identity."""
        idx = self._exact_name_index(local, available)
        if idx is not None:
            return MatchCandidate(
                local=local,
                remote=available.pop(idx),
                match_type=MatchType.EXACT,
                confidence=EXACT_NAME_CONFIDENCE,
            )

        if local.email:
            idx = self._exact_email_index(local, available)
            if idx is not None:
                return MatchCandidate(
                    local=local,
                    remote=available.pop(idx),
                    match_type=MatchType.EXACT,
                    confidence=EXACT_EMAIL_CONFIDENCE,
                )

        idx, score = self._best_fuzzy(local, available)
        if idx is not None and score >= self._threshold:
            return MatchCandidate(
                local=local,
                remote=available.pop(idx),
                match_type=MatchType.SUGGESTED,
                confidence=round_half_up(score),
            )

        return MatchCandidate.unmatched(local)

    @staticmethod
    def _linked_index(
        local: LocalIdentity, available: list[RemoteIdentity]
    ) -> int | None:
        for idx, remote in enumerate(available):
            if remote.external_key == local.external_id:
                return idx
        return None

    @staticmethod
    def _exact_name_index(
        local: LocalIdentity, available: list[RemoteIdentity]
    ) -> int | None:
        target = normalize_full_name(local.first_name, local.last_name)
        if not target:
            return None
        for idx, remote in enumerate(available):
            if normalize_full_name(remote.first_name, remote.last_name) == target:
                return idx
        return None

    @staticmethod
    def _exact_email_index(
        local: LocalIdentity, available: list[RemoteIdentity]
    ) -> int | None:
        target = normalize(local.email)
        if not target:
            return None
        for idx, remote in enumerate(available):
            if remote.email and normalize(remote.email) == target:
                return idx
        return None

    def _best_fuzzy(
        self,
        local: LocalIdentity,
        available: list[RemoteIdentity],
    ) -> tuple[int | None, float]:
        """Find the highest weighted score in the pool.

        Scores are compared unrounded. Ties go to the earliest entry in
        scan order. A score of zero is never selected.

        Returns:
            Tuple of (index or None, best unrounded score)
        """
        best_idx: int | None = None
        best_score = 0.0
        for idx, remote in enumerate(available):
            score = self._scorer.combined(
                local.first_name,
                remote.first_name,
                local.last_name,
                remote.last_name,
            )
            if score > best_score:
                best_idx, best_score = idx, score
        return best_idx, best_score
