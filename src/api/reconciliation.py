"""Roster reconciliation API endpoints.

Provides endpoints for previewing matches between the team roster and
the scheduling system, the human review workflow (assign, unlink,
confirm) and committing confirmed matches.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from src.reconciliation.errors import (
    CandidateAlreadyMatchedError,
    CandidateIndexError,
    PreviewUnavailableError,
    RemoteAlreadyClaimedError,
    SessionBusyError,
    SessionNotFoundError,
)
from src.reconciliation.schemas import (
    CommitResult,
    MatchCandidate,
    MatchSummary,
    MatchType,
    RemoteIdentity,
)
from src.reconciliation.service import ReconciliationService
from src.reconciliation.sessions import ReconciliationSession

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


class PreviewRequest(BaseModel):
    """Request to build a match preview."""

    organization_id: str = Field(description="Organization to reconcile")


class IndexRequest(BaseModel):
    """Request targeting one candidate."""

    index: int = Field(ge=0, description="Candidate position in the session")


class AssignRequest(IndexRequest):
    """Request to manually assign a scheduling user."""

    remote_id: str = Field(description="ID of a scheduling user in the leftover pool")


class SessionResponse(BaseModel):
    """Current state of a reconciliation session."""

    session_id: UUID
    organization_id: str
    created_at: datetime
    candidates: list[MatchCandidate]
    leftover: list[RemoteIdentity] = Field(
        description="Scheduling users not claimed by any member"
    )
    summary: MatchSummary
    review_summary: str | None = Field(
        default=None,
        description="Human-readable summary if members need review",
    )

    @classmethod
    def from_session(cls, session: ReconciliationSession) -> "SessionResponse":
        """Convert a session to the API response model."""
        return cls(
            session_id=session.session_id,
            organization_id=session.organization_id,
            created_at=session.created_at,
            candidates=session.candidates,
            leftover=session.leftover,
            summary=session.summary,
            review_summary=_generate_review_summary(session.candidates),
        )


class CommitResponse(BaseModel):
    """Response after committing confirmed matches."""

    result: CommitResult
    session: SessionResponse


def get_reconciliation_service(request: Request) -> ReconciliationService:
    """Dependency to get ReconciliationService from app state."""
    return request.app.state.reconciliation_service


@contextmanager
def _translate_errors() -> Iterator[None]:
    """Map reconciliation errors to HTTP responses."""
    try:
        yield
    except (SessionNotFoundError, CandidateIndexError) as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except (
        RemoteAlreadyClaimedError,
        CandidateAlreadyMatchedError,
        SessionBusyError,
    ) as e:
        raise HTTPException(status_code=409, detail=str(e)) from e


def _generate_review_summary(candidates: list[MatchCandidate]) -> str | None:
    """Generate human-readable summary of members needing review.

    Unconfirmed suggestions and unmatched members need review.

    Args:
        candidates: Current candidate list

    Returns:
        Summary string or None if no review needed
    """
    review_items = [
        c
        for c in candidates
        if c.match_type == MatchType.UNMATCHED
        or (c.match_type == MatchType.SUGGESTED and not c.confirmed)
    ]
    if not review_items:
        return None

    pending_count = len(review_items)
    lines = [f"{pending_count} member(s) need review:"]
    for item in review_items[:5]:
        name = item.local.full_name.strip()
        if item.remote is not None:
            lines.append(
                f"  - '{name}' -> '{item.remote.full_name.strip()}' "
                f"({item.confidence}% confidence)"
            )
        else:
            lines.append(f"  - '{name}' -> no match found")

    if pending_count > 5:
        lines.append(f"  ... and {pending_count - 5} more")

    return "\n".join(lines)


@router.post("/preview", response_model=SessionResponse)
async def preview_matches(
    request: PreviewRequest,
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> SessionResponse:
    """Build a match preview for an organization.

    Fetches the active team roster and the scheduling-system users,
    then matches them using:
    1. Existing links
    2. Exact name
    3. Exact email
    4. Weighted fuzzy name (>= threshold)

    Returns 503 if either roster is unavailable, so the caller can retry.
    """
    try:
        session = await service.preview(request.organization_id)
    except PreviewUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return SessionResponse.from_session(session)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: UUID,
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> SessionResponse:
    """Get the current state of a session."""
    with _translate_errors():
        session = service.get_session(session_id)
    return SessionResponse.from_session(session)


@router.post("/sessions/{session_id}/assign", response_model=SessionResponse)
async def assign_match(
    session_id: UUID,
    request: AssignRequest,
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> SessionResponse:
    """Manually assign a leftover scheduling user to a member.

    The member must not hold a match; unlink first to replace one.
    """
    with _translate_errors():
        session = service.assign(session_id, request.index, request.remote_id)
    return SessionResponse.from_session(session)


@router.post("/sessions/{session_id}/unlink", response_model=SessionResponse)
async def unlink_match(
    session_id: UUID,
    request: IndexRequest,
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> SessionResponse:
    """Clear a member's match and return the user to the leftover pool.

    Stored links are not changed until the next commit.
    """
    with _translate_errors():
        session = service.unlink(session_id, request.index)
    return SessionResponse.from_session(session)


@router.post("/sessions/{session_id}/toggle", response_model=SessionResponse)
async def toggle_confirm(
    session_id: UUID,
    request: IndexRequest,
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> SessionResponse:
    """Flip a member's confirmed flag."""
    with _translate_errors():
        session = service.toggle_confirm(session_id, request.index)
    return SessionResponse.from_session(session)


@router.post("/sessions/{session_id}/commit", response_model=CommitResponse)
async def commit_matches(
    session_id: UUID,
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> CommitResponse:
    """Write confirmed matches to the team roster.

    Records are written one at a time. Failures are listed in the result
    and do not stop the remaining writes.
    """
    with _translate_errors():
        session, result = await service.commit(session_id)
    return CommitResponse(result=result, session=SessionResponse.from_session(session))
