"""
Echo Map — places remember the player.

When a memory is formed somewhere, that spot becomes subtly warmer. Staying
still somewhere for a while leaves a trace too, even without taking a
memory. Each echo fades a little every game hour and disappears once it is
too faint to feel.

Every step the map:
  1. tracks lingering from the externally-fed player position
  2. finds the strongest echo the player can feel from where they stand,
     and eases the current strength toward it
  3. while that strength is high enough, keeps nudging the world mood
     through the push-state receiver: a gentle continuous warmth, not a spike

The map publishes no events; presentation polls is_near_echo() and
current_strength each step.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional, Protocol

import structlog

from keepsake.config import EchoConfig
from keepsake.events import ClockHourElapsedEvent, EventBus, KeepsakeEvent, MemoryKeptEvent
from keepsake.types import WHITE, Position, SessionPhase, Tint

logger = structlog.get_logger(__name__)

LINGER_TITLE = "Lingered here"


class EchoSource(str, Enum):
    MEMORY_FORMED = "memory_formed"
    LINGERED = "lingered"
    SIGNIFICANT = "significant"


@dataclass
class EchoPoint:
    """A decaying record of emotional significance at a world position."""

    position: Position
    strength: float
    source: EchoSource
    title: str = ""
    colour: Tint = field(default_factory=lambda: WHITE)
    # Virtual time (elapsed game hours) when this echo was registered.
    created_at: float = 0.0


class StateReceiver(Protocol):
    """Anything that accepts the shared push-state contract."""

    def push_state(
        self, saturation_delta: float, bloom_delta: float, duration_seconds: float
    ) -> None: ...


class EchoMap:
    """
    Spatial store of echo points with linger detection and proximity response.
    """

    def __init__(
        self,
        config: EchoConfig,
        bus: EventBus,
        session_phase: Optional[Callable[[], SessionPhase]] = None,
        state_receiver: Optional[StateReceiver] = None,
    ):
        self._config = config
        self._bus = bus
        self._session_phase = session_phase
        self._state_receiver = state_receiver
        self._time_source: Optional[Callable[[], float]] = None

        self._echoes: list[EchoPoint] = []

        # Linger tracking
        self._player_position: Optional[Position] = None
        self._linger_anchor: Optional[Position] = None
        self._linger_timer = 0.0
        self._lingering = False

        # Proximity tracking
        self._current_strength = 0.0
        self._target_strength = 0.0

        bus.subscribe("memory.kept", self._on_memory_kept)
        bus.subscribe("clock.hour.elapsed", self._on_hour_elapsed)

        logger.info(
            "echo_map.initialized",
            feel_radius=config.feel_radius,
            linger_seconds=config.linger_seconds,
        )

    def set_time_source(self, time_source: Callable[[], float]) -> None:
        """Register the virtual-time callable used to stamp new echoes."""
        self._time_source = time_source

    def set_state_receiver(self, receiver: StateReceiver) -> None:
        self._state_receiver = receiver

    # -------------------------------------------------------------------------
    # Position feed and stepping
    # -------------------------------------------------------------------------

    def report_position(self, position: Position) -> None:
        """Latest player position, fed by the movement collaborator."""
        self._player_position = position

    def step(self, delta_seconds: float, position: Optional[Position] = None) -> None:
        if position is not None:
            self.report_position(position)
        if self._session_phase is not None and self._session_phase() != SessionPhase.PLAYING:
            return
        if self._player_position is None:
            return

        self._update_linger(delta_seconds)
        self._update_proximity(delta_seconds)
        self._apply_atmosphere()

    def _update_linger(self, delta_seconds: float) -> None:
        if delta_seconds <= 0:
            return
        here = self._player_position
        if self._linger_anchor is None:
            self._linger_anchor = here

        if here.distance_to(self._linger_anchor) < self._config.linger_tolerance:
            self._linger_timer += delta_seconds
            if self._linger_timer >= self._config.linger_seconds and not self._lingering:
                self._lingering = True
                self._register(here, EchoSource.LINGERED, WHITE, LINGER_TITLE)
        else:
            # Moved away: the next stay anywhere is a new episode.
            self._linger_timer = 0.0
            self._lingering = False
            self._linger_anchor = here

    def _update_proximity(self, delta_seconds: float) -> None:
        here = self._player_position
        radius = self._config.feel_radius
        strongest = 0.0

        for echo in self._echoes:
            distance = here.distance_to(echo.position)
            if distance < radius:
                felt = (1.0 - distance / radius) * echo.strength
                strongest = max(strongest, felt)

        self._target_strength = strongest
        t = max(0.0, min(1.0, self._config.smoothing_rate * delta_seconds))
        self._current_strength += (self._target_strength - self._current_strength) * t

    def _apply_atmosphere(self) -> None:
        strength = self._current_strength
        if strength < self._config.atmosphere_floor or self._state_receiver is None:
            return
        if strength > self._config.push_threshold:
            push = strength * self._config.atmosphere_strength
            self._state_receiver.push_state(
                saturation_delta=push * 0.1,
                bloom_delta=push * 0.02,
                duration_seconds=self._config.push_duration,
            )

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def _on_memory_kept(self, event: KeepsakeEvent) -> None:
        if not isinstance(event, MemoryKeptEvent):
            return
        if self._player_position is None:
            logger.debug("echo_map.memory_echo_skipped", reason="no_position")
            return
        record = event.record
        self._register(
            self._player_position,
            EchoSource.MEMORY_FORMED,
            record.definition.display_tint,
            record.title,
        )

    def register_significant(self, position: Position, colour: Tint, title: str) -> None:
        """Mark a scripted one-off world moment."""
        self._register(position, EchoSource.SIGNIFICANT, colour, title)

    def _register(self, position: Position, source: EchoSource, colour: Tint, title: str) -> None:
        # Don't stack echoes: a nearby one is strengthened instead.
        for existing in self._echoes:
            if existing.position.distance_to(position) < self._config.min_separation:
                existing.strength = min(1.0, existing.strength + self._config.reinforce_amount)
                logger.debug(
                    "echo_map.strengthened",
                    title=existing.title,
                    strength=round(existing.strength, 3),
                )
                return

        echo = EchoPoint(
            position=position,
            strength=self._config.initial_strength,
            source=source,
            title=title,
            colour=colour,
            created_at=self._time_source() if self._time_source else 0.0,
        )
        self._echoes.append(echo)
        logger.info("echo_map.registered", source=source.value, title=title, count=len(self._echoes))

    # -------------------------------------------------------------------------
    # Decay
    # -------------------------------------------------------------------------

    def _on_hour_elapsed(self, event: KeepsakeEvent) -> None:
        if not isinstance(event, ClockHourElapsedEvent):
            return
        survivors = []
        for echo in self._echoes:
            echo.strength -= self._config.decay_per_hour
            if echo.strength > self._config.minimum_strength:
                survivors.append(echo)
        if len(survivors) != len(self._echoes):
            logger.debug("echo_map.faded_out", removed=len(self._echoes) - len(survivors))
        self._echoes = survivors

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def is_near_echo(self) -> bool:
        return self._current_strength > self._config.near_threshold

    @property
    def current_strength(self) -> float:
        return self._current_strength

    def echoes(self) -> list[EchoPoint]:
        """All live echoes, as copies."""
        return [replace(echo) for echo in self._echoes]

    def count(self, source: EchoSource) -> int:
        return sum(1 for echo in self._echoes if echo.source == source)
