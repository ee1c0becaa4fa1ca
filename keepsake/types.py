"""
Core data types shared across Keepsake subsystems.

This module defines lightweight data containers that cross subsystem
boundaries: the memory template and its runtime record, the closed
enumerations every component agrees on, and the small spatial and colour
values carried in event payloads. They live here rather than in a specific
subsystem to avoid circular imports.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class MemoryCategory(str, Enum):
    """The closed set of experience categories a memory can belong to."""

    NATURE = "nature"
    SOLITUDE = "solitude"
    CONNECTION = "connection"
    RISK = "risk"
    CREATION = "creation"
    LOSS = "loss"
    WONDER = "wonder"
    STILLNESS = "stillness"


class Trait(str, Enum):
    """
    Identity traits the player drifts toward or away from.

    Traits are gradients, not flags. Each one is a float in [0, 1] held by
    the IdentityModel, with 0.5 meaning neutral.
    """

    FEARLESS = "fearless"
    FRAGILE = "fragile"
    CURIOUS = "curious"
    CALM = "calm"
    AWARE = "aware"
    WARM = "warm"
    AGILE = "agile"
    MELANCHOLIC = "melancholic"
    RESILIENT = "resilient"
    OPEN = "open"


class Season(str, Enum):
    """Four-way cyclic season, in cycle order."""

    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"


class SessionPhase(str, Enum):
    """Where the player is in the overall experience."""

    BOOTING = "booting"
    PLAYING = "playing"
    REFLECTING = "reflecting"
    TRANSITIONING = "transitioning"
    ENDING = "ending"


@dataclass(frozen=True)
class Position:
    """A point in world space."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def distance_to(self, other: Position) -> float:
        return math.dist((self.x, self.y, self.z), (other.x, other.y, other.z))


@dataclass(frozen=True)
class Tint:
    """An RGBA colour with channels in [0, 1]."""

    r: float = 1.0
    g: float = 1.0
    b: float = 1.0
    a: float = 1.0

    def lerp(self, other: Tint, t: float) -> Tint:
        """Interpolate toward ``other``; ``t`` is clamped to [0, 1]."""
        w = max(0.0, min(1.0, t))
        return Tint(
            r=self.r + (other.r - self.r) * w,
            g=self.g + (other.g - self.g) * w,
            b=self.b + (other.b - self.b) * w,
            a=self.a + (other.a - self.a) * w,
        )

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.r, self.g, self.b, self.a)


WHITE = Tint()

# Default card colour for a memory with no authored display tint.
DEFAULT_MEMORY_COLOUR = Tint(0.8, 0.75, 0.7, 1.0)


@dataclass(frozen=True)
class MemoryDefinition:
    """
    What a single memory IS. Authored once, never mutated at runtime.

    Two definitions with the same field values are the same memory: the
    store holds at most one record per distinct definition.
    """

    title: str
    category: MemoryCategory
    emotional_weight: float = 0.5
    description: str = ""
    # Subtle colour shift this memory adds to the world mood.
    world_tint: Tint = WHITE
    reinforced_traits: tuple[Trait, ...] = ()
    eroded_traits: tuple[Trait, ...] = ()
    # Colour used for the memory's card and for echoes formed from it.
    display_tint: Tint = DEFAULT_MEMORY_COLOUR

    def __post_init__(self) -> None:
        if not self.title:
            raise ValueError("MemoryDefinition.title must not be empty")
        if not 0.0 <= self.emotional_weight <= 1.0:
            raise ValueError(
                f"emotional_weight must be within [0, 1], got {self.emotional_weight}"
            )


@dataclass(eq=False)
class MemoryRecord:
    """
    A memory the player currently holds.

    Wraps a MemoryDefinition with runtime state. Records compare by identity:
    a forgotten record stays forgotten even if the same definition is kept
    again later.
    """

    definition: MemoryDefinition

    # Virtual time (elapsed game hours) when this memory was kept.
    acquired_at: float = 0.0

    # Set once the player has examined this memory.
    reflected: bool = False

    # 1 = fresh and clear. Only the hourly decay pass lowers it.
    vividness: float = 1.0

    @property
    def title(self) -> str:
        return self.definition.title

    @property
    def category(self) -> MemoryCategory:
        return self.definition.category

    @property
    def emotional_weight(self) -> float:
        return self.definition.emotional_weight

    @property
    def effective_weight(self) -> float:
        """Emotional weight scaled by how vivid the memory still is."""
        return self.definition.emotional_weight * self.vividness
