"""
Identity — who the player is becoming.

This module doesn't assign identity. It tracks how identity emerges from
what the player keeps. Every trait is a gradient in [0, 1] starting at
neutral (0.5); a player doesn't "become Fearless", they drift toward it.

Keeping a memory nudges its reinforced traits up and its eroded traits
down, scaled by the memory's emotional weight. Forgetting it applies the
same nudges in reverse, so the profile reflects what is held now, not what
was once held. Underneath, every trait drifts slowly back toward neutral
each step: identity needs upkeep.

Three fixed thresholds (0.3, 0.6, 0.9) split each trait into bands.
Crossing one is announced once per threshold, in ascending threshold
order, whichever direction the trait moved.
"""

from __future__ import annotations

from typing import Iterable

import structlog

from keepsake.config import IdentityConfig
from keepsake.events import (
    EventBus,
    KeepsakeEvent,
    MemoryForgottenEvent,
    MemoryKeptEvent,
    TraitChangedEvent,
    TraitThresholdCrossedEvent,
)
from keepsake.types import MemoryRecord, Trait

logger = structlog.get_logger(__name__)

NEUTRAL = 0.5
THRESHOLDS: tuple[float, ...] = (0.3, 0.6, 0.9)


def crossed_thresholds(previous: float, current: float) -> list[float]:
    """Thresholds passed when a value moves from ``previous`` to ``current``.

    Moving up counts a threshold once the value reaches it; moving down
    counts it once the value falls back to or below it.
    """
    crossed = []
    for threshold in THRESHOLDS:
        up = previous < threshold <= current
        down = previous > threshold >= current
        if up or down:
            crossed.append(threshold)
    return crossed


class IdentityModel:
    """
    The player's trait profile, driven by memory events and per-step drift.

    The profile is never settable from outside; the only writers are the
    keep/forget shifts and the neutral drift.
    """

    def __init__(self, config: IdentityConfig, bus: EventBus):
        self._config = config
        self._bus = bus
        self._traits: dict[Trait, float] = {trait: NEUTRAL for trait in Trait}

        bus.subscribe("memory.kept", self._on_memory_event)
        bus.subscribe("memory.forgotten", self._on_memory_event)

        logger.info(
            "identity.initialized",
            reinforcement_rate=config.reinforcement_rate,
            erosion_rate=config.erosion_rate,
        )

    # -------------------------------------------------------------------------
    # Memory events
    # -------------------------------------------------------------------------

    def _on_memory_event(self, event: KeepsakeEvent) -> None:
        if isinstance(event, MemoryKeptEvent):
            self._apply_memory(event.record, keeping=True)
        elif isinstance(event, MemoryForgottenEvent):
            self._apply_memory(event.record, keeping=False)

    def _apply_memory(self, record: MemoryRecord, keeping: bool) -> None:
        direction = 1.0 if keeping else -1.0
        weight = record.emotional_weight

        for trait in record.definition.reinforced_traits:
            self._shift(trait, self._config.reinforcement_rate * weight * direction)

        # Erosion pulls toward 0 on keep; letting the memory go gives it back.
        for trait in record.definition.eroded_traits:
            self._shift(trait, -self._config.erosion_rate * weight * direction)

    def _shift(self, trait: Trait, change: float) -> None:
        previous = self._traits[trait]
        value = max(0.0, min(1.0, previous + change))
        self._traits[trait] = value
        self._announce(trait, previous, value)

    def _announce(self, trait: Trait, previous: float, value: float) -> None:
        for threshold in crossed_thresholds(previous, value):
            logger.info(
                "identity.threshold_crossed",
                trait=trait.value,
                threshold=threshold,
                value=round(value, 3),
            )
            self._bus.emit(
                TraitThresholdCrossedEvent(trait=trait, value=value, threshold=threshold)
            )

        # Crossings are always announced; a change within epsilon is not.
        if abs(value - previous) > self._config.change_epsilon:
            logger.debug("identity.trait_changed", trait=trait.value, value=round(value, 3))
            self._bus.emit(TraitChangedEvent(trait=trait, value=value))

    # -------------------------------------------------------------------------
    # Drift toward neutral
    # -------------------------------------------------------------------------

    def step(self, delta_seconds: float) -> None:
        """Drift every trait toward neutral by ``neutral_drift_rate × dt``."""
        rate = self._config.neutral_drift_rate
        if rate <= 0 or delta_seconds <= 0:
            return
        max_delta = rate * delta_seconds
        for trait in Trait:
            previous = self._traits[trait]
            if previous == NEUTRAL:
                continue
            if abs(NEUTRAL - previous) <= max_delta:
                value = NEUTRAL
            elif previous > NEUTRAL:
                value = previous - max_delta
            else:
                value = previous + max_delta
            self._traits[trait] = value
            self._announce(trait, previous, value)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def value(self, trait: Trait) -> float:
        return self._traits.get(trait, NEUTRAL)

    def has_trait(self, trait: Trait, threshold: float | None = None) -> bool:
        """Whether the trait is meaningfully present (default threshold 0.6)."""
        if threshold is None:
            threshold = self._config.presence_threshold
        return self.value(trait) >= threshold

    def strength(self, trait: Trait) -> float:
        """How far above neutral the trait sits, 0 to 0.5."""
        return max(0.0, self.value(trait) - NEUTRAL)

    def dominant_traits(self, threshold: float | None = None) -> list[Trait]:
        """Every trait at or above ``threshold``, in trait declaration order."""
        if threshold is None:
            threshold = self._config.dominant_threshold
        return [trait for trait, value in self._traits.items() if value >= threshold]

    def profile(self) -> dict[Trait, float]:
        """Full snapshot of the profile, as a copy."""
        return dict(self._traits)

    def describe(self, traits: Iterable[Trait] | None = None) -> str:
        """Compact "trait=value" summary, used in logs and the CLI."""
        selected = list(traits) if traits is not None else list(Trait)
        return ", ".join(f"{t.value}={self._traits[t]:.2f}" for t in selected)
