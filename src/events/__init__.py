"""Activity event infrastructure.

Provides:
- Event: Base class for activity events
- EventBus: In-process pub/sub for event routing
- EventStore: Append-only activity log
"""

from src.events.base import Event
from src.events.bus import EventBus
from src.events.store import EventStore
from src.events.types import MatchesCommitted, MatchPreviewGenerated

__all__ = [
    # Base
    "Event",
    # Infrastructure
    "EventBus",
    "EventStore",
    # Event types
    "MatchPreviewGenerated",
    "MatchesCommitted",
]
