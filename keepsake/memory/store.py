"""
Memory Store — the player's bounded set of kept memories.

This is the one component with write authority over "what is kept." It holds
a limited number of records (configurable, default 6) and everything else in
the game reads from it: identity derives traits from its events, the echo
map marks where memories formed, the atmosphere tints the world from its
contents, and the narrator reads its final snapshot.

There is no automatic displacement. When the store is full, an offered
memory is not kept; instead a slots-full event hands the decision to the
player, and the caller follows up with replace() or forget() + keep().
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

import structlog

from keepsake.config import MemoryConfig
from keepsake.events import (
    EventBus,
    MemoryChangedEvent,
    MemoryForgottenEvent,
    MemoryKeptEvent,
    MemorySlotsFullEvent,
)
from keepsake.types import MemoryCategory, MemoryDefinition, MemoryRecord

logger = structlog.get_logger(__name__)


class OfferResult(str, Enum):
    """Outcome of offering a memory to the store."""

    KEPT = "kept"
    ALREADY_HELD = "already_held"
    CHOICE_REQUIRED = "choice_required"
    REJECTED = "rejected"


class MemoryStore:
    """
    Capacity-bounded memory collection with deferred choice at capacity.

    Invariants:
      - len(records) never exceeds capacity
      - at most one record per distinct MemoryDefinition

    Usage pattern:
        1. A moment in the world calls offer(definition)
        2. If the result is CHOICE_REQUIRED, the UI shows the slots-full choice
        3. The UI resolves it with replace(old_record, definition)
        4. The clock calls decay_vividness() once per game hour
    """

    def __init__(self, config: MemoryConfig, bus: EventBus):
        self._config = config
        self._bus = bus
        self._capacity = config.slots
        self._records: list[MemoryRecord] = []
        self._time_source: Optional[Callable[[], float]] = None

        logger.info("memory_store.initialized", capacity=self._capacity)

    def set_time_source(self, time_source: Callable[[], float]) -> None:
        """Register the virtual-time callable used to stamp new records."""
        self._time_source = time_source

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def offer(self, definition: Optional[MemoryDefinition]) -> OfferResult:
        """
        Offer a memory encountered in the world.

        Keeps it if there is room. At capacity, emits a slots-full event with
        the offered definition and the current records, and keeps nothing.
        """
        if not isinstance(definition, MemoryDefinition):
            logger.debug("memory_store.offer_rejected", reason="invalid_definition")
            return OfferResult.REJECTED

        if self.is_holding(definition):
            logger.debug("memory_store.already_held", title=definition.title)
            return OfferResult.ALREADY_HELD

        if self.has_free_slot():
            self.keep(definition)
            return OfferResult.KEPT

        logger.info(
            "memory_store.slots_full",
            offered=definition.title,
            used=len(self._records),
        )
        self._bus.emit(
            MemorySlotsFullEvent(definition=definition, current_records=list(self._records))
        )
        return OfferResult.CHOICE_REQUIRED

    def keep(self, definition: Optional[MemoryDefinition]) -> Optional[MemoryRecord]:
        """
        Commit a memory directly, emitting kept then changed.

        Returns the new record, or None when the definition is invalid,
        already held, or the store is full.
        """
        if not isinstance(definition, MemoryDefinition):
            logger.debug("memory_store.keep_rejected", reason="invalid_definition")
            return None
        if self.is_holding(definition):
            logger.debug("memory_store.keep_rejected", reason="already_held", title=definition.title)
            return None
        if not self.has_free_slot():
            logger.warning(
                "memory_store.keep_rejected", reason="at_capacity", title=definition.title
            )
            return None

        record = MemoryRecord(definition=definition, acquired_at=self._now())
        self._records.append(record)
        logger.info(
            "memory_store.kept",
            title=definition.title,
            category=definition.category.value,
            slots_used=len(self._records),
        )

        self._bus.emit(MemoryKeptEvent(record=record))
        self._bus.emit(MemoryChangedEvent())
        return record

    def forget(self, record: Optional[MemoryRecord]) -> bool:
        """Let a held memory go, emitting forgotten then changed. No-op if absent."""
        index = self._index_of(record)
        if index is None:
            logger.debug("memory_store.forget_ignored", reason="not_held")
            return False

        removed = self._records.pop(index)
        logger.info(
            "memory_store.forgotten", title=removed.title, slots_used=len(self._records)
        )

        self._bus.emit(MemoryForgottenEvent(record=removed))
        self._bus.emit(MemoryChangedEvent())
        return True

    def replace(
        self, to_forget: Optional[MemoryRecord], definition: Optional[MemoryDefinition]
    ) -> Optional[MemoryRecord]:
        """
        Keep something new by letting go of something old.

        Both halves happen or neither does: the record must be held, and the
        definition must be valid and not already held by another record.
        """
        if self._index_of(to_forget) is None:
            logger.debug("memory_store.replace_ignored", reason="not_held")
            return None
        if not isinstance(definition, MemoryDefinition):
            logger.debug("memory_store.replace_ignored", reason="invalid_definition")
            return None
        if self.is_holding(definition) and to_forget.definition != definition:
            logger.debug(
                "memory_store.replace_ignored", reason="already_held", title=definition.title
            )
            return None

        self.forget(to_forget)
        return self.keep(definition)

    def reflect(self, record: Optional[MemoryRecord]) -> bool:
        """Mark a held memory as examined by the player."""
        if self._index_of(record) is None:
            return False
        if not record.reflected:
            record.reflected = True
            logger.info("memory_store.reflected", title=record.title)
            self._bus.emit(MemoryChangedEvent())
        return True

    def decay_vividness(self, amount: float, floor: float) -> None:
        """
        Fade every held memory by ``amount``, never below ``floor``.

        Emits a single changed event after all records are updated, so
        dependents recompute once per pass rather than once per record.
        """
        for record in self._records:
            faded = max(floor, record.vividness - amount)
            if faded < record.vividness:
                record.vividness = faded
                logger.debug("memory_store.faded", title=record.title, vividness=round(faded, 3))
        self._bus.emit(MemoryChangedEvent())

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def records(self) -> list[MemoryRecord]:
        """All held records, as a copy."""
        return list(self._records)

    @property
    def used_slots(self) -> int:
        return len(self._records)

    @property
    def capacity(self) -> int:
        return self._capacity

    def has_free_slot(self) -> bool:
        return len(self._records) < self._capacity

    def is_holding(self, definition: MemoryDefinition) -> bool:
        return any(r.definition == definition for r in self._records)

    def has_category(self, category: MemoryCategory) -> bool:
        return any(r.category == category for r in self._records)

    def total_emotional_weight(self) -> float:
        """Sum of weight × vividness across every held record."""
        return sum(r.effective_weight for r in self._records)

    def _index_of(self, record: Optional[MemoryRecord]) -> Optional[int]:
        for i, held in enumerate(self._records):
            if held is record:
                return i
        return None

    def _now(self) -> float:
        return self._time_source() if self._time_source else 0.0
