"""Tests for keepsake.events — EventBus and typed event definitions."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from keepsake.events import (
    ClockHourElapsedEvent,
    ClockTimeOfDayEvent,
    EndingCompletedEvent,
    EndingPassageShownEvent,
    EventBus,
    KeepsakeEvent,
    MemoryChangedEvent,
    MemoryKeptEvent,
    MemorySlotsFullEvent,
    SessionPhaseChangedEvent,
    TraitThresholdCrossedEvent,
    create_event_bus,
)
from keepsake.types import MemoryCategory, MemoryDefinition, MemoryRecord, SessionPhase, Trait


def _record(title: str = "A quiet hill") -> MemoryRecord:
    return MemoryRecord(MemoryDefinition(title=title, category=MemoryCategory.NATURE))


# ---------------------------------------------------------------------------
# KeepsakeEvent auto-derivation
# ---------------------------------------------------------------------------


class TestKeepsakeEventType:
    """Tests for automatic event_type derivation from class names."""

    def test_auto_derive_memory_kept(self) -> None:
        assert MemoryKeptEvent(record=_record()).event_type == "memory.kept"

    def test_auto_derive_memory_changed(self) -> None:
        assert MemoryChangedEvent().event_type == "memory.changed"

    def test_auto_derive_slots_full(self) -> None:
        event = MemorySlotsFullEvent(definition=_record().definition, current_records=[])
        assert event.event_type == "memory.slots.full"

    def test_auto_derive_clock_events(self) -> None:
        assert ClockHourElapsedEvent(hour=3).event_type == "clock.hour.elapsed"
        assert ClockTimeOfDayEvent(progress=0.5).event_type == "clock.time.of.day"

    def test_auto_derive_trait_threshold_crossed(self) -> None:
        event = TraitThresholdCrossedEvent(trait=Trait.CALM, value=0.61, threshold=0.6)
        assert event.event_type == "trait.threshold.crossed"

    def test_auto_derive_session_and_ending(self) -> None:
        event = SessionPhaseChangedEvent(previous=SessionPhase.PLAYING, current=SessionPhase.ENDING)
        assert event.event_type == "session.phase.changed"
        assert EndingPassageShownEvent(stage="opening", index=0).event_type == "ending.passage.shown"
        assert EndingCompletedEvent(passage_count=5).event_type == "ending.completed"

    def test_explicit_event_type_preserved(self) -> None:
        event = KeepsakeEvent(event_type="custom.type")
        assert event.event_type == "custom.type"


class TestEventPayloads:
    def test_record_identity_is_preserved(self) -> None:
        record = _record()
        event = MemoryKeptEvent(record=record)
        assert event.record is record

    def test_slots_full_carries_records_in_order(self) -> None:
        records = [_record("one"), _record("two")]
        event = MemorySlotsFullEvent(definition=records[0].definition, current_records=records)
        assert [r.title for r in event.current_records] == ["one", "two"]
        assert event.current_records[1] is records[1]

    def test_wrong_payload_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MemoryKeptEvent(record="not a record")


# ---------------------------------------------------------------------------
# EventBus delivery
# ---------------------------------------------------------------------------


class TestEventBusDelivery:
    def test_exact_pattern_match(self) -> None:
        bus = create_event_bus()
        received: list[KeepsakeEvent] = []
        bus.subscribe("memory.changed", received.append)

        bus.emit(MemoryChangedEvent())
        bus.emit(ClockHourElapsedEvent(hour=1))

        assert len(received) == 1
        assert received[0].event_type == "memory.changed"

    def test_wildcard_pattern(self) -> None:
        bus = EventBus()
        received: list[str] = []
        bus.subscribe("clock.*", lambda e: received.append(e.event_type))

        bus.emit(ClockHourElapsedEvent(hour=1))
        bus.emit(ClockTimeOfDayEvent(progress=0.1))
        bus.emit(MemoryChangedEvent())

        assert received == ["clock.hour.elapsed", "clock.time.of.day"]

    def test_delivery_in_subscription_order(self) -> None:
        bus = EventBus()
        order: list[str] = []
        bus.subscribe("*", lambda e: order.append("first"))
        bus.subscribe("*", lambda e: order.append("second"))
        bus.subscribe("*", lambda e: order.append("third"))

        bus.emit(MemoryChangedEvent())

        assert order == ["first", "second", "third"]

    def test_emit_is_synchronous(self) -> None:
        bus = EventBus()
        seen: list[int] = []
        bus.subscribe("clock.hour.elapsed", lambda e: seen.append(e.hour))

        bus.emit(ClockHourElapsedEvent(hour=9))

        # Handler already ran by the time emit() returns.
        assert seen == [9]

    def test_nested_emit_is_depth_first(self) -> None:
        bus = EventBus()
        order: list[str] = []

        def on_hour(event: KeepsakeEvent) -> None:
            order.append("hour:start")
            bus.emit(MemoryChangedEvent())
            order.append("hour:end")

        bus.subscribe("clock.hour.elapsed", on_hour)
        bus.subscribe("memory.changed", lambda e: order.append("changed"))
        bus.subscribe("clock.hour.elapsed", lambda e: order.append("hour:second"))

        bus.emit(ClockHourElapsedEvent(hour=1))

        assert order == ["hour:start", "changed", "hour:end", "hour:second"]

    def test_handler_exception_isolated(self) -> None:
        bus = EventBus()
        received: list[KeepsakeEvent] = []

        def broken(event: KeepsakeEvent) -> None:
            raise RuntimeError("boom")

        bus.subscribe("*", broken)
        bus.subscribe("*", received.append)

        bus.emit(MemoryChangedEvent())

        assert len(received) == 1

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        received: list[KeepsakeEvent] = []
        sub_id = bus.subscribe("*", received.append)

        bus.unsubscribe(sub_id)
        bus.emit(MemoryChangedEvent())

        assert received == []
        assert bus.subscription_count == 0

    def test_unsubscribe_unknown_id_is_harmless(self) -> None:
        bus = EventBus()
        bus.unsubscribe("nope")
        assert bus.subscription_count == 0

    def test_subscribe_during_dispatch_takes_effect_next_emit(self) -> None:
        bus = EventBus()
        late: list[KeepsakeEvent] = []

        def subscriber(event: KeepsakeEvent) -> None:
            bus.subscribe("*", late.append)

        bus.subscribe("memory.changed", subscriber)
        bus.emit(MemoryChangedEvent())
        assert late == []

        bus.emit(ClockHourElapsedEvent(hour=2))
        assert len(late) == 1

    def test_emitted_count(self) -> None:
        bus = EventBus()
        bus.emit(MemoryChangedEvent())
        bus.emit(MemoryChangedEvent())
        assert bus.emitted_count == 2
