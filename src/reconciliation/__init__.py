"""Roster reconciliation between local team members and scheduling users.

This module provides:
- normalize / similarity: Name normalization and character-overlap scoring
- NameScorer: Weighted first/last name scoring (overlap or Jaro-Winkler)
- MatchResolver: Linked -> exact name -> email -> fuzzy cascade with a
  shrinking pool, so no scheduling user is claimed twice
- manual_assign / unlink_match / toggle_confirm: Review overrides
- CommitService: Sequential, failure-tolerant link writes
- ReconciliationService: Preview -> review -> commit sessions
"""

from src.reconciliation.commit import CommitService, LocalIdentityStore
from src.reconciliation.normalizer import normalize
from src.reconciliation.overrides import manual_assign, toggle_confirm, unlink_match
from src.reconciliation.resolver import MatchResolver
from src.reconciliation.schemas import (
    CommitFailure,
    CommitResult,
    LocalIdentity,
    MatchCandidate,
    MatchSummary,
    MatchType,
    RemoteIdentity,
)
from src.reconciliation.service import ReconciliationService
from src.reconciliation.sessions import ReconciliationSession, SessionStore
from src.reconciliation.similarity import NameScorer, SimilarityAlgorithm, similarity

__all__ = [
    "CommitFailure",
    "CommitResult",
    "CommitService",
    "LocalIdentity",
    "LocalIdentityStore",
    "MatchCandidate",
    "MatchResolver",
    "MatchSummary",
    "MatchType",
    "NameScorer",
    "ReconciliationService",
    "ReconciliationSession",
    "RemoteIdentity",
    "SessionStore",
    "SimilarityAlgorithm",
    "manual_assign",
    "normalize",
    "similarity",
    "toggle_confirm",
    "unlink_match",
]
