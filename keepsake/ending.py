"""
Ending sequencer — passages shown one at a time, driven by step ticks.

Each passage fades in, holds for at least its own display duration, then
fades out before the next one begins. The final passage never fades out;
the player sits with it. Durations are tracked as accumulated elapsed time
so a single large step can carry the sequence through several states.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

import structlog

from keepsake.config import EndingConfig
from keepsake.events import EndingCompletedEvent, EndingPassageShownEvent, EventBus
from keepsake.narrator import Passage

logger = structlog.get_logger(__name__)


class EndingState(str, Enum):
    IDLE = "idle"
    FADING_IN = "fading_in"
    HOLDING = "holding"
    FADING_OUT = "fading_out"
    DONE = "done"


class EndingSequencer:
    """Step-driven fade in / hold / fade out state machine over passages."""

    def __init__(self, config: EndingConfig, bus: EventBus):
        self._config = config
        self._bus = bus
        self._passages: list[Passage] = []
        self._state = EndingState.IDLE
        self._index = 0
        # Seconds spent in the current state.
        self._elapsed = 0.0
        self._alpha = 0.0

    def start(self, passages: Sequence[Passage]) -> None:
        """Begin showing ``passages``. Restarting mid-sequence is ignored."""
        if self._state != EndingState.IDLE:
            logger.warning("ending.already_started", state=self._state.value)
            return
        self._passages = list(passages)
        self._index = 0
        logger.info("ending.started", passages=len(self._passages))
        if not self._passages:
            self._finish()
            return
        self._enter_fade_in()

    def advance(self, delta_seconds: float) -> None:
        if self._state in (EndingState.IDLE, EndingState.DONE) or delta_seconds <= 0:
            return

        self._elapsed += delta_seconds
        while self._state not in (EndingState.IDLE, EndingState.DONE):
            duration = self._state_duration()
            if self._elapsed < duration:
                break
            self._elapsed -= duration
            self._next_state()
        self._update_alpha()

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _state_duration(self) -> float:
        if self._state == EndingState.FADING_IN:
            return self._config.text_fade_in
        if self._state == EndingState.HOLDING:
            return max(self._config.minimum_hold, self._passages[self._index].display_duration)
        return self._config.text_fade_out

    def _next_state(self) -> None:
        if self._state == EndingState.FADING_IN:
            self._state = EndingState.HOLDING
        elif self._state == EndingState.HOLDING:
            if self._index == len(self._passages) - 1:
                self._finish()
            else:
                self._state = EndingState.FADING_OUT
        elif self._state == EndingState.FADING_OUT:
            self._index += 1
            self._enter_fade_in()

    def _enter_fade_in(self) -> None:
        self._state = EndingState.FADING_IN
        passage = self._passages[self._index]
        logger.debug("ending.passage_shown", stage=passage.stage.value, index=self._index)
        self._bus.emit(EndingPassageShownEvent(stage=passage.stage.value, index=self._index))

    def _finish(self) -> None:
        self._state = EndingState.DONE
        self._elapsed = 0.0
        self._alpha = 1.0 if self._passages else 0.0
        logger.info("ending.completed", passages=len(self._passages))
        self._bus.emit(EndingCompletedEvent(passage_count=len(self._passages)))

    def _update_alpha(self) -> None:
        if self._state == EndingState.FADING_IN:
            fade = self._config.text_fade_in
            self._alpha = min(1.0, self._elapsed / fade) if fade > 0 else 1.0
        elif self._state == EndingState.HOLDING:
            self._alpha = 1.0
        elif self._state == EndingState.FADING_OUT:
            fade = self._config.text_fade_out
            self._alpha = max(0.0, 1.0 - self._elapsed / fade) if fade > 0 else 0.0

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def state(self) -> EndingState:
        return self._state

    @property
    def alpha(self) -> float:
        """Opacity of the current passage text, 0 to 1."""
        return self._alpha

    @property
    def index(self) -> int:
        return self._index

    @property
    def current_passage(self) -> Optional[Passage]:
        if self._state == EndingState.IDLE or not self._passages:
            return None
        return self._passages[self._index]

    @property
    def is_done(self) -> bool:
        return self._state == EndingState.DONE
