"""
Clock — the game's virtual calendar.

Tracks hour of day, day count, and season. Time passes gently: at the
default scale one real minute is one game hour, a day is 24 real minutes,
and a season turns every seven game days. The player feels time through
world changes, not countdowns.

Each step advances the hour and walks every integer hour boundary it
crossed, in order. At each boundary the clock:
  - rolls the day over at 24h and announces the new day
  - announces the new hour, then runs the vividness decay pass
  - announces a season change if the day moved into a new season
A continuous time-of-day value is announced once per step regardless.

While the session is in its ending phase the clock stands still and is
silent.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Callable, Optional

import structlog

from keepsake.config import ClockConfig
from keepsake.events import (
    ClockDayElapsedEvent,
    ClockHourElapsedEvent,
    ClockSeasonChangedEvent,
    ClockTimeOfDayEvent,
    EventBus,
)
from keepsake.types import Season, SessionPhase

if TYPE_CHECKING:
    from keepsake.memory.store import MemoryStore

logger = structlog.get_logger(__name__)

_SEASONS: tuple[Season, ...] = tuple(Season)


def is_night(hour: float) -> bool:
    return hour < 6.0 or hour > 20.0


def is_golden_hour(hour: float) -> bool:
    return 6.0 <= hour <= 8.0 or 17.0 <= hour <= 19.0


class Clock:
    """
    Step-driven virtual clock.

    The decay target and the session phase query are registered explicitly
    at composition time; the clock never looks either up on its own.
    """

    def __init__(
        self,
        config: ClockConfig,
        bus: EventBus,
        memory: Optional[MemoryStore] = None,
        session_phase: Optional[Callable[[], SessionPhase]] = None,
    ):
        self._config = config
        self._bus = bus
        self._memory = memory
        self._session_phase = session_phase

        self._hour = config.starting_hour
        self._day = 1
        self._season = self._season_for(self._day)
        # Total game hours advanced since the session started.
        self._elapsed_hours = 0.0

        logger.info(
            "clock.initialized",
            starting_hour=self._hour,
            time_scale=config.time_scale,
            days_per_season=config.days_per_season,
        )

    # -------------------------------------------------------------------------
    # Stepping
    # -------------------------------------------------------------------------

    def step(self, delta_seconds: float) -> None:
        """Advance by ``delta_seconds`` of real time."""
        if self.is_paused:
            return
        if delta_seconds > 0:
            remaining = delta_seconds * self._config.time_scale / 3600.0
            while remaining > 0:
                to_boundary = math.floor(self._hour) + 1.0 - self._hour
                if remaining < to_boundary:
                    self._hour += remaining
                    self._elapsed_hours += remaining
                    break
                self._hour = math.floor(self._hour) + 1.0
                self._elapsed_hours += to_boundary
                remaining -= to_boundary
                self._cross_hour_boundary()

        self._bus.emit(ClockTimeOfDayEvent(progress=self.day_progress))

    def _cross_hour_boundary(self) -> None:
        if self._hour >= 24.0:
            self._hour -= 24.0
            self._day += 1
            logger.info("clock.day_elapsed", day=self._day)
            self._bus.emit(ClockDayElapsedEvent(day=self._day))

        hour = int(self._hour)
        logger.debug("clock.hour_elapsed", hour=hour, day=self._day)
        self._bus.emit(ClockHourElapsedEvent(hour=hour))
        self._decay_pass()

        season = self._season_for(self._day)
        if season != self._season:
            self._season = season
            logger.info("clock.season_changed", season=season.value, day=self._day)
            self._bus.emit(ClockSeasonChangedEvent(season=season))

    def _decay_pass(self) -> None:
        if self._memory is None:
            return
        self._memory.decay_vividness(
            self._config.vividness_decay_per_hour, self._config.minimum_vividness
        )

    def _season_for(self, day: int) -> Season:
        index = ((day - 1) // self._config.days_per_season) % len(_SEASONS)
        return _SEASONS[index]

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def is_paused(self) -> bool:
        return self._session_phase is not None and self._session_phase() == SessionPhase.ENDING

    @property
    def hour(self) -> float:
        return self._hour

    @property
    def day(self) -> int:
        return self._day

    @property
    def season(self) -> Season:
        return self._season

    @property
    def elapsed_hours(self) -> float:
        return self._elapsed_hours

    @property
    def day_progress(self) -> float:
        """Position in the day, 0 at midnight through 0.5 at noon."""
        return self._hour / 24.0

    def normalised_time_of_day(self) -> float:
        return self.day_progress

    def is_night(self) -> bool:
        return is_night(self._hour)

    def is_golden_hour(self) -> bool:
        return is_golden_hour(self._hour)

    def formatted_time(self) -> str:
        """Time as "Day N, HH:MM" for UI and narration."""
        hours = math.floor(self._hour)
        minutes = math.floor((self._hour - hours) * 60.0)
        return f"Day {self._day}, {hours:02d}:{minutes:02d}"
