"""Reconciliation schemas.

Defines data models for local team members, remote scheduling users,
match candidates and commit results.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LocalIdentity(BaseModel):
    """Team member owned by the local roster.

    Only active members take part in reconciliation. The external link
    fields stay empty until a match is committed.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(description="Primary key of the team member")
    first_name: str = Field(default="", description="First name")
    last_name: str = Field(default="", description="Last name")
    punch_id: str | None = Field(default=None, description="Internal clock-in code")
    email: str | None = Field(default=None, description="Email address")
    phone: str | None = Field(default=None, description="Phone number")
    is_active: bool = Field(default=True, description="Only active members match")
    external_id: str | None = Field(
        default=None, description="Linked user ID in the scheduling system"
    )
    external_source: str | None = Field(
        default=None, description="Name of the system external_id belongs to"
    )
    last_synced_at: datetime | None = Field(
        default=None, description="When the link was last written"
    )

    @property
    def full_name(self) -> str:
        """First and last name joined by a space."""
        return f"{self.first_name} {self.last_name}"


class RemoteIdentity(BaseModel):
    """User record fetched read-only from the scheduling system.

    Fetched fresh for every reconciliation session and never written back.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int | str = Field(description="User ID in the scheduling system")
    first_name: str | None = Field(default=None)
    last_name: str | None = Field(default=None)
    email: str | None = Field(default=None)
    mobile_phone: str | None = Field(default=None)
    status: str | None = Field(default=None, description="active, inactive")
    type: str | None = Field(default=None, description="employee, manager, admin")
    punch_id: int | str | None = Field(default=None)
    hire_date: str | None = Field(default=None)

    @property
    def external_key(self) -> str:
        """ID as stored in LocalIdentity.external_id."""
        return str(self.id)

    @property
    def full_name(self) -> str:
        """First and last name joined by a space."""
        return f"{self.first_name or ''} {self.last_name or ''}"


class MatchType(str, Enum):
    """How a candidate pairing was determined."""

    LINKED = "linked"
    EXACT = "exact"
    SUGGESTED = "suggested"
    MANUAL = "manual"
    UNMATCHED = "unmatched"


class MatchCandidate(BaseModel):
    """Proposed or confirmed pairing of one local identity.

    A candidate without a remote identity is always unmatched with zero
    confidence and cannot be confirmed.
    """

    model_config = ConfigDict(frozen=True)

    local: LocalIdentity = Field(description="Local team member")
    remote: RemoteIdentity | None = Field(
        default=None, description="Paired scheduling user, if any"
    )
    match_type: MatchType = Field(default=MatchType.UNMATCHED)
    confidence: int = Field(default=0, ge=0, le=100, description="Match score 0-100")
    confirmed: bool = Field(default=False, description="Selected for commit")

    @model_validator(mode="after")
    def _check_unmatched_shape(self) -> "MatchCandidate":
        if self.remote is None:
            if (
                self.match_type != MatchType.UNMATCHED
                or self.confidence != 0
                or self.confirmed
            ):
                raise ValueError(
                    "Candidate without a remote identity must be unmatched, "
                    "unconfirmed and have zero confidence"
                )
        elif self.match_type == MatchType.UNMATCHED:
            raise ValueError("Unmatched candidate cannot reference a remote identity")
        return self

    @classmethod
    def unmatched(cls, local: LocalIdentity) -> "MatchCandidate":
        """Build an empty candidate for a local identity."""
        return cls(local=local)

    @property
    def is_pending(self) -> bool:
        """True if commit would write this candidate."""
        return (
            self.confirmed
            and self.remote is not None
            and self.match_type != MatchType.LINKED
        )


class MatchSummary(BaseModel):
    """Counts of candidates per match type."""

    linked: int = 0
    exact: int = 0
    suggested: int = 0
    manual: int = 0
    unmatched: int = 0
    pending: int = Field(default=0, description="Confirmed and not yet linked")
    leftover_count: int = Field(
        default=0, description="Scheduling users not claimed by any member"
    )

    @classmethod
    def from_candidates(
        cls,
        candidates: list[MatchCandidate],
        leftover: list[RemoteIdentity],
    ) -> "MatchSummary":
        """Count candidates by match type.

        Args:
            candidates: Current candidate list
            leftover: Current leftover pool

        Returns:
            MatchSummary with per-type counts
        """
        counts = {match_type.value: 0 for match_type in MatchType}
        for candidate in candidates:
            counts[candidate.match_type.value] += 1
        return cls(
            **counts,
            pending=sum(1 for c in candidates if c.is_pending),
            leftover_count=len(leftover),
        )

    def describe(self) -> str:
        """Human-readable one-line summary."""
        line = (
            f"{self.linked} linked, {self.exact} exact, "
            f"{self.suggested} suggested, {self.unmatched} unmatched"
        )
        if self.manual:
            line += f", {self.manual} manual"
        return line


class CommitFailure(BaseModel):
    """A candidate whose link could not be written."""

    index: int = Field(description="Position in the candidate list")
    local_id: str = Field(description="Team member that failed")
    remote_id: str = Field(description="Scheduling user it was paired with")
    error: str = Field(description="Error message from the write")


class CommitResult(BaseModel):
    """Outcome of a commit run.

    Partial success is expected: failed records are listed, successful
    ones are promoted to linked.
    """

    succeeded: int = Field(default=0, description="Links written")
    failed: int = Field(default=0, description="Links that failed to write")
    skipped: int = Field(
        default=0, description="Candidates not selected (unconfirmed or linked)"
    )
    failures: list[CommitFailure] = Field(default_factory=list)
    committed_local_ids: list[str] = Field(default_factory=list)

    @property
    def attempted(self) -> int:
        """Number of writes issued."""
        return self.succeeded + self.failed

    @property
    def is_partial(self) -> bool:
        """True if some writes succeeded and some failed."""
        return self.succeeded > 0 and self.failed > 0
