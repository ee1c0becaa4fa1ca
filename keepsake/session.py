"""
Session — the composition root for one playthrough.

Builds every service once, in dependency order, and wires the explicit
registrations between them: the clock's decay target, the virtual time
source used to stamp records and echoes, the session phase query, and the
atmosphere as the receiver of echo pushes. Nothing in the core looks up a
sibling on its own.

Because the core services subscribe while the session is being built, any
presentation subscriber added afterwards always sees their state already
updated for the same event.
"""

from __future__ import annotations

from typing import Optional

import structlog

from keepsake.atmosphere import Atmosphere, WorldMood
from keepsake.clock import Clock
from keepsake.config import KeepsakeConfig
from keepsake.echoes import EchoMap
from keepsake.ending import EndingSequencer
from keepsake.events import EventBus, SessionPhaseChangedEvent, create_event_bus
from keepsake.identity import IdentityModel
from keepsake.memory import MemoryStore
from keepsake.narrator import Passage, compose_from, gather_snapshot
from keepsake.types import Position, SessionPhase

logger = structlog.get_logger(__name__)


class KeepsakeSession:
    """Holds every service for a single session and drives them each step."""

    def __init__(self, config: Optional[KeepsakeConfig] = None, bus: Optional[EventBus] = None):
        self.config = config or KeepsakeConfig()
        self.bus = bus or create_event_bus()
        self._phase = SessionPhase.PLAYING

        self.memory = MemoryStore(self.config.memory, self.bus)
        self.clock = Clock(
            self.config.clock, self.bus, memory=self.memory, session_phase=self.get_phase
        )
        self.identity = IdentityModel(self.config.identity, self.bus)
        self.echoes = EchoMap(self.config.echo, self.bus, session_phase=self.get_phase)
        self.atmosphere = Atmosphere(self.config.atmosphere, self.bus, self.memory)
        self.ending = EndingSequencer(self.config.ending, self.bus)

        self.memory.set_time_source(lambda: self.clock.elapsed_hours)
        self.echoes.set_time_source(lambda: self.clock.elapsed_hours)
        self.echoes.set_state_receiver(self.atmosphere)

        self._passages: Optional[list[Passage]] = None
        logger.info("session.created", config=repr(self.config))

    # -------------------------------------------------------------------------
    # Phase
    # -------------------------------------------------------------------------

    def get_phase(self) -> SessionPhase:
        return self._phase

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    def set_phase(self, phase: SessionPhase) -> None:
        if phase == self._phase:
            return
        previous = self._phase
        self._phase = phase
        logger.info("session.phase_changed", previous=previous.value, current=phase.value)
        self.bus.emit(SessionPhaseChangedEvent(previous=previous, current=phase))

    # -------------------------------------------------------------------------
    # Stepping
    # -------------------------------------------------------------------------

    def step(self, delta_seconds: float, player_position: Optional[Position] = None) -> WorldMood:
        """Advance every service by one frame, in a fixed order."""
        if player_position is not None:
            self.echoes.report_position(player_position)
        self.clock.step(delta_seconds)
        self.identity.step(delta_seconds)
        self.echoes.step(delta_seconds)
        mood = self.atmosphere.step(delta_seconds)
        self.ending.advance(delta_seconds)
        return mood

    # -------------------------------------------------------------------------
    # Ending
    # -------------------------------------------------------------------------

    @property
    def ended(self) -> bool:
        return self._passages is not None

    def trigger_ending(self) -> list[Passage]:
        """Freeze the session, compose the ending, and start showing it.

        Only the first call composes; later calls return the same passages.
        """
        if self._passages is not None:
            logger.debug("session.ending_already_triggered")
            return list(self._passages)

        self.set_phase(SessionPhase.ENDING)
        snapshot = gather_snapshot(
            memory=self.memory, identity=self.identity, echoes=self.echoes, clock=self.clock
        )
        self._passages = compose_from(snapshot)
        self.ending.start(self._passages)
        return list(self._passages)
