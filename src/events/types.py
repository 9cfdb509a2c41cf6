"""Activity events emitted during reconciliation.

- MatchPreviewGenerated: A preview session was built
- MatchesCommitted: Confirmed matches were written to the roster
"""

from pydantic import Field

from src.events.base import Event


class MatchPreviewGenerated(Event):
    """Emitted when a match preview session is created."""

    aggregate_type: str = "ReconciliationSession"
    organization_id: str = Field(description="Organization that was reconciled")
    linked_count: int = Field(default=0, description="Already linked members")
    exact_count: int = Field(default=0, description="Exact name/email matches")
    suggested_count: int = Field(default=0, description="Fuzzy matches")
    unmatched_count: int = Field(default=0, description="Members with no match")
    leftover_count: int = Field(
        default=0, description="Scheduling users not claimed by any member"
    )


class MatchesCommitted(Event):
    """Emitted when confirmed matches are written to the roster."""

    aggregate_type: str = "ReconciliationSession"
    organization_id: str = Field(description="Organization that was reconciled")
    succeeded: int = Field(description="Links written")
    failed: int = Field(default=0, description="Links that failed to write")
    committed_local_ids: list[str] = Field(
        default_factory=list, description="Team members that were linked"
    )
