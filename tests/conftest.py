"""
Shared fixtures for the Keepsake test suite.

Provides a fresh event bus, an event recorder, default component configs,
and a handful of memory definitions so individual test modules can focus
on behavior rather than setup.
"""

from __future__ import annotations

import pytest

from keepsake.config import (
    AtmosphereConfig,
    ClockConfig,
    EchoConfig,
    EndingConfig,
    IdentityConfig,
    KeepsakeConfig,
    MemoryConfig,
)
from keepsake.events import EventBus, KeepsakeEvent, create_event_bus
from keepsake.memory import MemoryStore
from keepsake.types import MemoryCategory, MemoryDefinition, Tint, Trait


class EventRecorder:
    """Collects every event emitted on a bus, in delivery order."""

    def __init__(self, bus: EventBus, pattern: str = "*") -> None:
        self.events: list[KeepsakeEvent] = []
        bus.subscribe(pattern, self.events.append)

    @property
    def types(self) -> list[str]:
        return [e.event_type for e in self.events]

    def of_type(self, event_type: str) -> list[KeepsakeEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self) -> None:
        self.events.clear()


# ---------------------------------------------------------------------------
# Bus fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def bus() -> EventBus:
    return create_event_bus()


@pytest.fixture()
def recorder(bus: EventBus) -> EventRecorder:
    return EventRecorder(bus)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def memory_config() -> MemoryConfig:
    return MemoryConfig(slots=6)


@pytest.fixture()
def clock_config() -> ClockConfig:
    return ClockConfig()


@pytest.fixture()
def identity_config() -> IdentityConfig:
    # No drift unless a test asks for it.
    return IdentityConfig(neutral_drift_rate=0.0)


@pytest.fixture()
def echo_config() -> EchoConfig:
    return EchoConfig()


@pytest.fixture()
def atmosphere_config() -> AtmosphereConfig:
    return AtmosphereConfig()


@pytest.fixture()
def ending_config() -> EndingConfig:
    return EndingConfig()


@pytest.fixture()
def keepsake_config() -> KeepsakeConfig:
    return KeepsakeConfig(
        memory=MemoryConfig(slots=6),
        clock=ClockConfig(),
        identity=IdentityConfig(),
        echo=EchoConfig(),
        atmosphere=AtmosphereConfig(),
        ending=EndingConfig(),
    )


@pytest.fixture()
def store(memory_config: MemoryConfig, bus: EventBus) -> MemoryStore:
    return MemoryStore(memory_config, bus)


# ---------------------------------------------------------------------------
# Definition fixtures
# ---------------------------------------------------------------------------

def make_definition(
    title: str,
    category: MemoryCategory = MemoryCategory.NATURE,
    weight: float = 0.5,
    reinforced: tuple[Trait, ...] = (),
    eroded: tuple[Trait, ...] = (),
    world_tint: Tint = Tint(),
) -> MemoryDefinition:
    return MemoryDefinition(
        title=title,
        category=category,
        emotional_weight=weight,
        world_tint=world_tint,
        reinforced_traits=reinforced,
        eroded_traits=eroded,
    )


@pytest.fixture()
def definitions() -> list[MemoryDefinition]:
    """Eight distinct definitions, enough to overfill a default store."""
    return [make_definition(f"Memory {i}", weight=0.5) for i in range(8)]
