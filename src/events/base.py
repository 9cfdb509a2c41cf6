"""Base Event class for activity events."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class Event(BaseModel):
    """Base class for activity events.

    Events are immutable records of what happened during reconciliation
    (previews built, matches committed) and form the activity log.

    Attributes:
        event_id: Unique identifier for this event instance
        timestamp: When the event occurred
        aggregate_id: ID of the session this event relates to (optional)
        aggregate_type: Type of the related entity
        metadata: Additional context about the event
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
    )

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    aggregate_id: UUID | None = Field(default=None)
    aggregate_type: str | None = Field(default=None)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def event_type(self) -> str:
        """Return the event type name (class name)."""
        return self.__class__.__name__

    def payload(self) -> dict[str, Any]:
        """Event-specific fields, without the envelope."""
        return self.model_dump(
            mode="json",
            exclude={"event_id", "timestamp", "aggregate_id", "aggregate_type"},
        )
