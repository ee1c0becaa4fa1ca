# keepsake/config.py
"""
Configuration for Keepsake.

All tuning flows through this module. Values are loaded from environment
variables (via an optional .env file) and validated with Pydantic. Each
component receives only its own section; the session composes them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

logger = structlog.get_logger(__name__)

# Resolve .env relative to the project root (one level above keepsake/ package),
# so the config works regardless of the user's current working directory.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

_SETTINGS = {"env_file": _ENV_FILE, "extra": "ignore", "populate_by_name": True}


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class MemoryConfig(BaseSettings):
    """Configuration for the memory store — how much a player can carry."""

    slots: int = Field(6, alias="KEEPSAKE_MEMORY_SLOTS")

    model_config = _SETTINGS

    @model_validator(mode="after")
    def normalize_limits(self) -> "MemoryConfig":
        self.slots = int(_clamp(int(self.slots), 3, 10))
        return self


class ClockConfig(BaseSettings):
    """Configuration for the virtual calendar and memory fading."""

    # Game seconds per real second. 60 = one game hour per real minute.
    time_scale: float = Field(60.0, alias="KEEPSAKE_TIME_SCALE")
    starting_hour: float = Field(8.0, alias="KEEPSAKE_STARTING_HOUR")
    days_per_season: int = Field(7, alias="KEEPSAKE_DAYS_PER_SEASON")

    vividness_decay_per_hour: float = Field(0.02, alias="KEEPSAKE_VIVIDNESS_DECAY")
    # Memories never fade below this floor.
    minimum_vividness: float = Field(0.15, alias="KEEPSAKE_MINIMUM_VIVIDNESS")

    model_config = _SETTINGS

    @model_validator(mode="after")
    def normalize_limits(self) -> "ClockConfig":
        self.time_scale = max(0.0, float(self.time_scale))
        self.starting_hour = float(self.starting_hour) % 24.0
        self.days_per_season = max(1, int(self.days_per_season))
        self.vividness_decay_per_hour = _clamp(float(self.vividness_decay_per_hour), 0.0, 1.0)
        self.minimum_vividness = _clamp(float(self.minimum_vividness), 0.0, 1.0)
        return self


class IdentityConfig(BaseSettings):
    """Configuration for the trait profile — how memories shape who you become."""

    reinforcement_rate: float = Field(0.25, alias="KEEPSAKE_TRAIT_REINFORCEMENT")
    erosion_rate: float = Field(0.15, alias="KEEPSAKE_TRAIT_EROSION")
    # Per real second; traits drift back toward 0.5 unless upkept.
    neutral_drift_rate: float = Field(0.001, alias="KEEPSAKE_TRAIT_NEUTRAL_DRIFT")
    change_epsilon: float = Field(0.01, alias="KEEPSAKE_TRAIT_CHANGE_EPSILON")
    presence_threshold: float = Field(0.6, alias="KEEPSAKE_TRAIT_PRESENCE_THRESHOLD")
    dominant_threshold: float = Field(0.65, alias="KEEPSAKE_TRAIT_DOMINANT_THRESHOLD")

    model_config = _SETTINGS

    @model_validator(mode="after")
    def normalize_limits(self) -> "IdentityConfig":
        self.reinforcement_rate = _clamp(float(self.reinforcement_rate), 0.0, 1.0)
        self.erosion_rate = _clamp(float(self.erosion_rate), 0.0, 1.0)
        self.neutral_drift_rate = max(0.0, float(self.neutral_drift_rate))
        self.change_epsilon = max(0.0, float(self.change_epsilon))
        self.presence_threshold = _clamp(float(self.presence_threshold), 0.0, 1.0)
        self.dominant_threshold = _clamp(float(self.dominant_threshold), 0.0, 1.0)
        return self


class EchoConfig(BaseSettings):
    """Configuration for the echo map — how places remember the player."""

    feel_radius: float = Field(5.0, alias="KEEPSAKE_ECHO_FEEL_RADIUS")
    decay_per_hour: float = Field(0.1, alias="KEEPSAKE_ECHO_DECAY")
    minimum_strength: float = Field(0.05, alias="KEEPSAKE_ECHO_MINIMUM_STRENGTH")

    # Linger tracking
    linger_seconds: float = Field(8.0, alias="KEEPSAKE_LINGER_SECONDS")
    linger_tolerance: float = Field(1.5, alias="KEEPSAKE_LINGER_TOLERANCE")

    # Registration
    min_separation: float = Field(2.0, alias="KEEPSAKE_ECHO_MIN_SEPARATION")
    initial_strength: float = Field(0.8, alias="KEEPSAKE_ECHO_INITIAL_STRENGTH")
    reinforce_amount: float = Field(0.3, alias="KEEPSAKE_ECHO_REINFORCE")

    # Proximity response
    smoothing_rate: float = Field(2.0, alias="KEEPSAKE_ECHO_SMOOTHING")
    near_threshold: float = Field(0.2, alias="KEEPSAKE_ECHO_NEAR_THRESHOLD")
    atmosphere_floor: float = Field(0.1, alias="KEEPSAKE_ECHO_ATMOSPHERE_FLOOR")
    push_threshold: float = Field(0.3, alias="KEEPSAKE_ECHO_PUSH_THRESHOLD")
    atmosphere_strength: float = Field(8.0, alias="KEEPSAKE_ECHO_ATMOSPHERE_STRENGTH")
    push_duration: float = Field(0.5, alias="KEEPSAKE_ECHO_PUSH_DURATION")

    model_config = _SETTINGS

    @model_validator(mode="after")
    def normalize_limits(self) -> "EchoConfig":
        self.feel_radius = max(0.01, float(self.feel_radius))
        self.decay_per_hour = max(0.0, float(self.decay_per_hour))
        self.minimum_strength = _clamp(float(self.minimum_strength), 0.0, 1.0)
        self.linger_seconds = max(0.0, float(self.linger_seconds))
        self.linger_tolerance = max(0.0, float(self.linger_tolerance))
        self.min_separation = max(0.0, float(self.min_separation))
        self.initial_strength = _clamp(float(self.initial_strength), 0.0, 1.0)
        self.reinforce_amount = _clamp(float(self.reinforce_amount), 0.0, 1.0)
        self.smoothing_rate = max(0.0, float(self.smoothing_rate))
        self.push_duration = max(0.0, float(self.push_duration))
        return self


class AtmosphereConfig(BaseSettings):
    """Configuration for the world mood that memories paint."""

    # Base world state with no memories: slightly desaturated
    base_saturation: float = Field(-15.0, alias="KEEPSAKE_BASE_SATURATION")
    base_contrast: float = Field(5.0, alias="KEEPSAKE_BASE_CONTRAST")
    base_bloom: float = Field(0.3, alias="KEEPSAKE_BASE_BLOOM")
    base_vignette: float = Field(0.25, alias="KEEPSAKE_BASE_VIGNETTE")

    # Peak world state (all slots full)
    peak_saturation: float = Field(20.0, alias="KEEPSAKE_PEAK_SATURATION")
    peak_contrast: float = Field(15.0, alias="KEEPSAKE_PEAK_CONTRAST")
    peak_bloom: float = Field(0.8, alias="KEEPSAKE_PEAK_BLOOM")
    peak_vignette: float = Field(0.35, alias="KEEPSAKE_PEAK_VIGNETTE")

    transition_speed: float = Field(0.8, alias="KEEPSAKE_MOOD_TRANSITION_SPEED")

    # Moment pulse when a memory is kept
    moment_bloom_spike: float = Field(1.5, alias="KEEPSAKE_MOMENT_BLOOM_SPIKE")
    moment_bloom_duration: float = Field(1.8, alias="KEEPSAKE_MOMENT_BLOOM_DURATION")

    model_config = _SETTINGS

    @model_validator(mode="after")
    def normalize_limits(self) -> "AtmosphereConfig":
        self.transition_speed = max(0.0, float(self.transition_speed))
        self.moment_bloom_spike = max(0.0, float(self.moment_bloom_spike))
        self.moment_bloom_duration = max(0.0, float(self.moment_bloom_duration))
        return self


class EndingConfig(BaseSettings):
    """Configuration for the pacing of the ending passages."""

    text_fade_in: float = Field(2.0, alias="KEEPSAKE_ENDING_FADE_IN")
    text_fade_out: float = Field(1.5, alias="KEEPSAKE_ENDING_FADE_OUT")
    minimum_hold: float = Field(4.0, alias="KEEPSAKE_ENDING_MINIMUM_HOLD")

    model_config = _SETTINGS

    @model_validator(mode="after")
    def normalize_limits(self) -> "EndingConfig":
        self.text_fade_in = max(0.0, float(self.text_fade_in))
        self.text_fade_out = max(0.0, float(self.text_fade_out))
        self.minimum_hold = max(0.0, float(self.minimum_hold))
        return self


class KeepsakeConfig:
    """
    Master configuration that composes all component configs.

    This is the single source of truth. Every component receives its config
    from here. Any section may be injected; the rest load from the environment.
    """

    def __init__(
        self,
        memory: Optional[MemoryConfig] = None,
        clock: Optional[ClockConfig] = None,
        identity: Optional[IdentityConfig] = None,
        echo: Optional[EchoConfig] = None,
        atmosphere: Optional[AtmosphereConfig] = None,
        ending: Optional[EndingConfig] = None,
    ):
        self.memory = memory or MemoryConfig()
        self.clock = clock or ClockConfig()
        self.identity = identity or IdentityConfig()
        self.echo = echo or EchoConfig()
        self.atmosphere = atmosphere or AtmosphereConfig()
        self.ending = ending or EndingConfig()
        logger.debug(
            "config.loaded", slots=self.memory.slots, time_scale=self.clock.time_scale
        )

    def to_dict(self) -> dict[str, dict]:
        """Plain-dict view of every section, keyed by field name."""
        return {
            "memory": self.memory.model_dump(),
            "clock": self.clock.model_dump(),
            "identity": self.identity.model_dump(),
            "echo": self.echo.model_dump(),
            "atmosphere": self.atmosphere.model_dump(),
            "ending": self.ending.model_dump(),
        }

    def __repr__(self) -> str:
        return (
            f"KeepsakeConfig(slots={self.memory.slots}, "
            f"time_scale={self.clock.time_scale}, "
            f"days_per_season={self.clock.days_per_season})"
        )
