"""
Event Bus — the fabric every Keepsake component talks through.

In-house typed event bus for decoupled inter-component communication.
Events are Pydantic models emitted onto a synchronous dispatcher that fans
out to pattern-matched subscribers. No component holds a reference to a
sibling's internals; they publish what happened and read each other's
state through accessors.

Delivery model:
  - emit() dispatches immediately, on the caller's stack
  - Subscribers run to completion in subscription order before emit() returns
  - An event emitted from inside a handler is delivered depth-first
  - Handler exceptions are logged but do not propagate
"""

from __future__ import annotations

import fnmatch as _fnmatch_mod
import re
import uuid
from typing import Any, Callable

import structlog
from pydantic import BaseModel, Field, InstanceOf

from keepsake.types import MemoryDefinition, MemoryRecord, Season, SessionPhase, Trait

logger = structlog.get_logger(__name__)

EventHandler = Callable[["KeepsakeEvent"], Any]

# Regex that correctly splits CamelCase including consecutive capitals (acronyms).
# "HTTPSRequest" → ["HTTPS", "Request"], "MemoryKept" → ["Memory", "Kept"]
_CAMEL_SPLIT_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z][a-z]*")


class KeepsakeEvent(BaseModel):
    """Base class for all typed events flowing through the bus."""

    event_type: str = ""

    def model_post_init(self, __context: Any) -> None:
        if not self.event_type:
            name = type(self).__name__.removesuffix("Event")
            parts = _CAMEL_SPLIT_RE.findall(name)
            self.event_type = ".".join(p.lower() for p in parts) if parts else name.lower()


class _Subscription:
    """Internal subscription record."""

    __slots__ = ("sub_id", "pattern", "handler", "_compiled")

    def __init__(self, sub_id: str, pattern: str, handler: EventHandler) -> None:
        self.sub_id = sub_id
        self.pattern = pattern
        self.handler = handler
        self._compiled: re.Pattern[str] = re.compile(_fnmatch_mod.translate(pattern))

    def matches(self, event_type: str) -> bool:
        return self._compiled.match(event_type) is not None


class EventBus:
    """Synchronous event bus with typed events and wildcard subscriptions.

    Pattern matching uses fnmatch-style wildcards:
      "memory.*"  matches "memory.kept", "memory.slots.full"
      "clock.*"   matches "clock.hour.elapsed"
      "*"         matches everything
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, _Subscription] = {}
        self._emitted = 0

    # ------------------------------------------------------------------
    # Subscribe / Unsubscribe
    # ------------------------------------------------------------------

    def subscribe(self, pattern: str, handler: EventHandler) -> str:
        """Subscribe to events matching a fnmatch-style pattern.

        Returns a subscription ID that can be passed to unsubscribe().
        """
        sub_id = uuid.uuid4().hex[:12]
        self._subscriptions[sub_id] = _Subscription(sub_id, pattern, handler)
        logger.debug("event_bus.subscribed", pattern=pattern, sub_id=sub_id)
        return sub_id

    def unsubscribe(self, subscription_id: str) -> None:
        """Remove a subscription by its ID."""
        removed = self._subscriptions.pop(subscription_id, None)
        if removed:
            logger.debug("event_bus.unsubscribed", sub_id=subscription_id)

    # ------------------------------------------------------------------
    # Emit
    # ------------------------------------------------------------------

    def emit(self, event: KeepsakeEvent) -> None:
        """Deliver an event to every matching subscriber, in subscription order."""
        self._emitted += 1
        event_type = event.event_type
        # Snapshot so handlers may subscribe/unsubscribe while we dispatch.
        for sub in list(self._subscriptions.values()):
            if sub.matches(event_type):
                self._invoke_handler(sub, event)

    @staticmethod
    def _invoke_handler(sub: _Subscription, event: KeepsakeEvent) -> None:
        """Invoke a handler with exception isolation."""
        try:
            sub.handler(event)
        except Exception:
            logger.error(
                "event_bus.handler_error",
                pattern=sub.pattern,
                event_type=event.event_type,
                exc_info=True,
            )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def subscription_count(self) -> int:
        """Number of active subscriptions."""
        return len(self._subscriptions)

    @property
    def emitted_count(self) -> int:
        """Total events emitted since construction."""
        return self._emitted


def create_event_bus() -> EventBus:
    """Factory function to create an EventBus instance."""
    return EventBus()


# ---------------------------------------------------------------------------
# Event Definitions: MemoryStore
# ---------------------------------------------------------------------------

class MemoryKeptEvent(KeepsakeEvent):
    """Emitted after a new record joins the store."""

    record: InstanceOf[MemoryRecord]


class MemoryForgottenEvent(KeepsakeEvent):
    """Emitted after a record leaves the store."""

    record: InstanceOf[MemoryRecord]


class MemorySlotsFullEvent(KeepsakeEvent):
    """Emitted when a memory is offered to a full store — a choice is required."""

    definition: InstanceOf[MemoryDefinition]
    current_records: list[InstanceOf[MemoryRecord]] = Field(default_factory=list)


class MemoryChangedEvent(KeepsakeEvent):
    """Emitted whenever the held collection or a record's state changes."""


# ---------------------------------------------------------------------------
# Event Definitions: Clock
# ---------------------------------------------------------------------------

class ClockHourElapsedEvent(KeepsakeEvent):
    """Emitted on each integer hour boundary, carrying the new floor hour."""

    hour: int


class ClockDayElapsedEvent(KeepsakeEvent):
    """Emitted when the hour rolls past 24."""

    day: int


class ClockSeasonChangedEvent(KeepsakeEvent):
    """Emitted when the day count moves into a new season."""

    season: Season


class ClockTimeOfDayEvent(KeepsakeEvent):
    """Emitted every clock step with the normalised time of day (0-1)."""

    progress: float


# ---------------------------------------------------------------------------
# Event Definitions: IdentityModel
# ---------------------------------------------------------------------------

class TraitChangedEvent(KeepsakeEvent):
    """Emitted when a shift moves a trait by more than the change epsilon."""

    trait: Trait
    value: float


class TraitThresholdCrossedEvent(KeepsakeEvent):
    """Emitted once per band boundary a trait crosses, in either direction."""

    trait: Trait
    value: float
    threshold: float


# ---------------------------------------------------------------------------
# Event Definitions: Session and ending
# ---------------------------------------------------------------------------

class SessionPhaseChangedEvent(KeepsakeEvent):
    """Emitted when the session moves between phases."""

    previous: SessionPhase
    current: SessionPhase


class EndingPassageShownEvent(KeepsakeEvent):
    """Emitted when the ending sequencer begins fading in a passage."""

    stage: str
    index: int


class EndingCompletedEvent(KeepsakeEvent):
    """Emitted once the final passage has finished its hold."""

    passage_count: int
