"""Tests for activity event infrastructure."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from src.db.turso import TursoClient
from src.events import (
    Event,
    EventBus,
    EventStore,
    MatchesCommitted,
    MatchPreviewGenerated,
)


def _preview_event(**overrides) -> MatchPreviewGenerated:
    fields = {
        "aggregate_id": uuid4(),
        "organization_id": "org-1",
        "linked_count": 1,
        "exact_count": 2,
        "suggested_count": 1,
        "unmatched_count": 1,
        "leftover_count": 1,
    }
    fields.update(overrides)
    return MatchPreviewGenerated(**fields)


def _commit_event(**overrides) -> MatchesCommitted:
    fields = {
        "aggregate_id": uuid4(),
        "organization_id": "org-1",
        "succeeded": 2,
        "committed_local_ids": ["m-1", "m-4"],
    }
    fields.update(overrides)
    return MatchesCommitted(**fields)


class TestEvent:
    """Tests for base Event class."""

    def test_creates_with_defaults(self) -> None:
        """Event generates event_id and timestamp."""

        class TestEvent(Event):
            message: str

        e = TestEvent(message="test")
        assert e.event_id is not None
        assert e.timestamp is not None
        assert e.event_type == "TestEvent"

    def test_is_immutable(self) -> None:
        """Events are frozen (immutable)."""
        e = _commit_event()
        with pytest.raises(Exception):  # ValidationError for frozen model
            e.succeeded = 5  # type: ignore[misc]

    def test_payload_excludes_envelope(self) -> None:
        """payload() carries only event-specific fields."""
        payload = _commit_event().payload()

        assert payload["succeeded"] == 2
        assert payload["committed_local_ids"] == ["m-1", "m-4"]
        assert "event_id" not in payload
        assert "aggregate_id" not in payload


class TestEventTypes:
    """Tests for typed event definitions."""

    def test_match_preview_generated(self) -> None:
        """MatchPreviewGenerated carries per-type counts."""
        e = _preview_event()
        assert e.aggregate_type == "ReconciliationSession"
        assert e.exact_count == 2

    def test_matches_committed(self) -> None:
        """MatchesCommitted defaults failed to zero."""
        e = _commit_event()
        assert e.failed == 0
        assert e.event_type == "MatchesCommitted"


class TestEventBus:
    """Tests for EventBus."""

    async def test_subscribe_and_publish(self) -> None:
        """Event bus delivers events to subscribers."""
        bus = EventBus()
        received: list[MatchesCommitted] = []

        async def handler(event: MatchesCommitted) -> None:
            received.append(event)

        bus.subscribe(MatchesCommitted, handler)
        await bus.publish(_commit_event())

        assert len(received) == 1
        assert received[0].succeeded == 2

    async def test_sync_handler(self) -> None:
        """Sync handlers work via thread pool."""
        bus = EventBus()
        received: list[MatchesCommitted] = []

        def sync_handler(event: MatchesCommitted) -> None:
            received.append(event)

        bus.subscribe(MatchesCommitted, sync_handler)
        await bus.publish(_commit_event())

        assert len(received) == 1

    async def test_type_isolation(self) -> None:
        """Handlers only receive events of subscribed type."""
        bus = EventBus()
        previews: list[MatchPreviewGenerated] = []
        commits: list[MatchesCommitted] = []

        async def preview_handler(event: MatchPreviewGenerated) -> None:
            previews.append(event)

        async def commit_handler(event: MatchesCommitted) -> None:
            commits.append(event)

        bus.subscribe(MatchPreviewGenerated, preview_handler)
        bus.subscribe(MatchesCommitted, commit_handler)
        await bus.publish(_preview_event())

        assert len(previews) == 1
        assert len(commits) == 0

    async def test_handler_error_isolated(self) -> None:
        """A failing handler does not stop others or the publisher."""
        bus = EventBus()
        received: list[MatchesCommitted] = []

        async def broken(event: MatchesCommitted) -> None:
            raise RuntimeError("boom")

        async def working(event: MatchesCommitted) -> None:
            received.append(event)

        bus.subscribe(MatchesCommitted, broken)
        bus.subscribe(MatchesCommitted, working)
        await bus.publish(_commit_event())

        assert len(received) == 1

    async def test_persist_failure_raises(self) -> None:
        """Persistence errors reach the publisher."""
        store = AsyncMock(spec=EventStore)
        store.append.side_effect = RuntimeError("disk full")
        bus = EventBus(store=store)

        with pytest.raises(RuntimeError, match="disk full"):
            await bus.publish_and_store(_commit_event())

    def test_subscriber_count(self) -> None:
        """Can count subscribers for event type."""
        bus = EventBus()

        async def h1(e: MatchesCommitted) -> None:
            pass

        assert bus.subscriber_count(MatchesCommitted) == 0
        bus.subscribe(MatchesCommitted, h1)
        assert bus.subscriber_count(MatchesCommitted) == 1
        assert bus.subscriber_count(MatchPreviewGenerated) == 0


class TestEventStore:
    """Tests for EventStore with SQLite."""

    @pytest.fixture
    async def store(self, db_client: TursoClient) -> EventStore:
        """Create event store with temp file database."""
        store = EventStore(db_client)
        await store.init_schema()
        return store

    async def test_append_event(self, store: EventStore) -> None:
        """Can append an event to the store."""
        await store.append(_commit_event())

        assert await store.count_events() == 1

    async def test_get_events_by_type(self, store: EventStore) -> None:
        """Returns events of one type, newest first."""
        first = _preview_event(linked_count=0)
        second = _preview_event(linked_count=3)
        await store.append(first)
        await store.append(_commit_event())
        await store.append(second)

        events = await store.get_events_by_type("MatchPreviewGenerated")

        assert [e["event_id"] for e in events] == [
            str(second.event_id),
            str(first.event_id),
        ]
        assert events[0]["data"]["linked_count"] == 3
        assert events[0]["aggregate_id"] == str(second.aggregate_id)

    async def test_get_events_by_type_limit(self, store: EventStore) -> None:
        """Limit caps the number of events returned."""
        for _ in range(3):
            await store.append(_commit_event())

        assert len(await store.get_events_by_type("MatchesCommitted", limit=2)) == 2

    async def test_count_events(self, store: EventStore) -> None:
        """Can count events with optional type filter."""
        await store.append(_preview_event())
        await store.append(_commit_event())

        assert await store.count_events() == 2
        assert await store.count_events("MatchPreviewGenerated") == 1
        assert await store.count_events("MatchesCommitted") == 1


class TestEventBusWithStore:
    """Tests for EventBus with EventStore integration."""

    async def test_publish_and_store(self, db_client: TursoClient) -> None:
        """publish_and_store persists event and notifies handlers."""
        store = EventStore(db_client)
        await store.init_schema()
        bus = EventBus(store=store)
        received: list[MatchesCommitted] = []

        async def handler(event: MatchesCommitted) -> None:
            received.append(event)

        bus.subscribe(MatchesCommitted, handler)
        await bus.publish_and_store(_commit_event())

        assert len(received) == 1
        assert await store.count_events("MatchesCommitted") == 1

    async def test_publish_without_persist(self, db_client: TursoClient) -> None:
        """Plain publish does not write to the store."""
        store = EventStore(db_client)
        await store.init_schema()
        bus = EventBus(store=store)

        await bus.publish(_preview_event())

        assert await store.count_events() == 0
