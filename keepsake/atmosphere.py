"""
Atmosphere — the world's mood, painted by what the player keeps.

This module derives the emotional colour of the world from the memory
store and hands presentation a set of target values to render. It draws
nothing itself. With no memories the world is slightly desaturated and
flat; as slots fill it grows richer, brighter, and tinted by the memories
held, weighted by how heavy and how vivid each one still is.

It is also the receiving end of the shared push-state contract: any
component may ask for a brief, time-bounded nudge to saturation and bloom.
Nudges and the bloom pulse that follows a kept memory are tracked as
accumulated step time, never as waits.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Iterable

import structlog

from keepsake.config import AtmosphereConfig
from keepsake.events import EventBus, KeepsakeEvent
from keepsake.types import WHITE, MemoryRecord, Tint

if TYPE_CHECKING:
    from keepsake.memory.store import MemoryStore

logger = structlog.get_logger(__name__)

# Keeps the first blend step finite when every weight is zero.
_BLEND_EPSILON = 0.001


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * max(0.0, min(1.0, t))


@dataclass
class WorldMood:
    """Target values for the presentation layer's post-processing."""

    saturation: float = 0.0
    contrast: float = 0.0
    bloom: float = 0.0
    vignette: float = 0.0
    tint: Tint = field(default_factory=lambda: WHITE)

    def approach(self, other: WorldMood, t: float) -> WorldMood:
        """Move part of the way toward ``other`` (t clamped to [0, 1])."""
        return WorldMood(
            saturation=_lerp(self.saturation, other.saturation, t),
            contrast=_lerp(self.contrast, other.contrast, t),
            bloom=_lerp(self.bloom, other.bloom, t),
            vignette=_lerp(self.vignette, other.vignette, t),
            tint=self.tint.lerp(other.tint, t),
        )


@dataclass
class _Push:
    saturation_delta: float
    bloom_delta: float
    remaining: float


def blend_tints(records: Iterable[MemoryRecord]) -> Tint:
    """
    Running blend of memory tints, starting from white.

    Each tint pulls the blend by w / (W + w + ε), where W is the weight
    already absorbed. That is the running form of a weighted average in
    which white carries weight ε, so the result does not depend on the
    order of the records.
    """
    blended = WHITE
    total = 0.0
    for record in records:
        weight = record.effective_weight
        blended = blended.lerp(
            record.definition.world_tint, weight / (total + weight + _BLEND_EPSILON)
        )
        total += weight
    return blended


class Atmosphere:
    """
    World mood target plus transient pushes.

    Reads the memory store only through its public accessors, on every
    memory.changed event.
    """

    def __init__(self, config: AtmosphereConfig, bus: EventBus, memory: MemoryStore):
        self._config = config
        self._bus = bus
        self._memory = memory

        self._target = self.base_mood()
        self._current = self.base_mood()
        self._pushes: list[_Push] = []
        # Pushes requested since the last step; they start ageing next step.
        self._pending: list[_Push] = []
        # Seconds into the moment pulse, or None when no pulse is playing.
        self._pulse_elapsed: float | None = None

        bus.subscribe("memory.changed", self._on_memory_changed)
        bus.subscribe("memory.kept", self._on_memory_kept)

        logger.info("atmosphere.initialized", transition_speed=config.transition_speed)

    # -------------------------------------------------------------------------
    # Target mood
    # -------------------------------------------------------------------------

    def base_mood(self) -> WorldMood:
        c = self._config
        return WorldMood(
            saturation=c.base_saturation,
            contrast=c.base_contrast,
            bloom=c.base_bloom,
            vignette=c.base_vignette,
            tint=WHITE,
        )

    def _on_memory_changed(self, event: KeepsakeEvent) -> None:
        self.recalculate()

    def _on_memory_kept(self, event: KeepsakeEvent) -> None:
        if self._config.moment_bloom_duration > 0:
            self._pulse_elapsed = 0.0

    def recalculate(self) -> WorldMood:
        """Derive the target mood from the store's current contents."""
        records = self._memory.records
        if not records:
            self._target = self.base_mood()
            return self._target

        c = self._config
        fullness = len(records) / self._memory.capacity
        self._target = WorldMood(
            saturation=_lerp(c.base_saturation, c.peak_saturation, fullness),
            contrast=_lerp(c.base_contrast, c.peak_contrast, fullness),
            bloom=_lerp(c.base_bloom, c.peak_bloom, fullness),
            vignette=_lerp(c.base_vignette, c.peak_vignette, fullness),
            tint=blend_tints(records),
        )
        logger.debug(
            "atmosphere.target_recalculated",
            fullness=round(fullness, 3),
            saturation=round(self._target.saturation, 2),
        )
        return self._target

    # -------------------------------------------------------------------------
    # Push-state contract
    # -------------------------------------------------------------------------

    def push_state(
        self, saturation_delta: float, bloom_delta: float, duration_seconds: float
    ) -> None:
        """Temporarily raise saturation and bloom; reverted after the duration."""
        if duration_seconds <= 0:
            return
        self._pending.append(_Push(saturation_delta, bloom_delta, duration_seconds))

    # -------------------------------------------------------------------------
    # Stepping
    # -------------------------------------------------------------------------

    def step(self, delta_seconds: float) -> WorldMood:
        """Expire pushes, advance the pulse, and ease toward the pushed target."""
        if delta_seconds > 0:
            for push in self._pushes:
                push.remaining -= delta_seconds
            self._pushes = [p for p in self._pushes if p.remaining > 0]

            if self._pulse_elapsed is not None:
                self._pulse_elapsed += delta_seconds
                if self._pulse_elapsed >= self._config.moment_bloom_duration:
                    self._pulse_elapsed = None
        self._pushes.extend(self._pending)
        self._pending.clear()

        goal = self.pushed_target()
        self._current = self._current.approach(
            goal, self._config.transition_speed * max(0.0, delta_seconds)
        )
        return self.current

    def pushed_target(self) -> WorldMood:
        """The target mood with every active push applied."""
        pushes = self._pushes + self._pending
        return replace(
            self._target,
            saturation=self._target.saturation + sum(p.saturation_delta for p in pushes),
            bloom=self._target.bloom + sum(p.bloom_delta for p in pushes),
        )

    def pulse_bloom(self) -> float:
        """Extra bloom from the moment pulse: a rise and fall, like a breath."""
        if self._pulse_elapsed is None:
            return 0.0
        t = self._pulse_elapsed / self._config.moment_bloom_duration
        return self._config.moment_bloom_spike * math.sin(t * math.pi)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def target(self) -> WorldMood:
        return replace(self._target)

    @property
    def current(self) -> WorldMood:
        """The eased mood, with the moment pulse layered onto bloom."""
        return replace(self._current, bloom=self._current.bloom + self.pulse_bloom())

    @property
    def active_pushes(self) -> int:
        return len(self._pushes) + len(self._pending)
