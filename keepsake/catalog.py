"""
Catalog — a small authored set of memories for headless sessions.

These are the kinds of moments the world offers the player. Each is a
frozen MemoryDefinition; the catalog itself is a read-only mapping keyed
by a short slug, in authoring order.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from keepsake.types import MemoryCategory, MemoryDefinition, Tint, Trait

CATALOG: Mapping[str, MemoryDefinition] = MappingProxyType({
    "cliff_edge": MemoryDefinition(
        title="Standing at the cliff edge",
        category=MemoryCategory.RISK,
        emotional_weight=0.8,
        description="The wind pushed back. You leaned into it anyway.",
        world_tint=Tint(1.0, 0.85, 0.7, 1.0),
        reinforced_traits=(Trait.FEARLESS, Trait.AGILE),
        eroded_traits=(Trait.CALM,),
        display_tint=Tint(0.9, 0.55, 0.4, 1.0),
    ),
    "empty_chapel": MemoryDefinition(
        title="The empty chapel",
        category=MemoryCategory.SOLITUDE,
        emotional_weight=0.6,
        description="Dust in the light. Nobody else for miles.",
        world_tint=Tint(0.85, 0.85, 1.0, 1.0),
        reinforced_traits=(Trait.CALM, Trait.RESILIENT),
        eroded_traits=(Trait.WARM,),
        display_tint=Tint(0.6, 0.65, 0.85, 1.0),
    ),
    "shared_bread": MemoryDefinition(
        title="Bread shared on the steps",
        category=MemoryCategory.CONNECTION,
        emotional_weight=0.7,
        description="A stranger tore the loaf in half without asking.",
        world_tint=Tint(1.0, 0.92, 0.8, 1.0),
        reinforced_traits=(Trait.WARM, Trait.OPEN),
        display_tint=Tint(0.95, 0.8, 0.55, 1.0),
    ),
    "first_snow": MemoryDefinition(
        title="First snow over the rooftops",
        category=MemoryCategory.WONDER,
        emotional_weight=0.75,
        description="Everything went quiet at once.",
        world_tint=Tint(0.9, 0.95, 1.0, 1.0),
        reinforced_traits=(Trait.CURIOUS, Trait.AWARE),
        display_tint=Tint(0.85, 0.9, 1.0, 1.0),
    ),
    "closed_shop": MemoryDefinition(
        title="The shop that finally closed",
        category=MemoryCategory.LOSS,
        emotional_weight=0.65,
        description="The sign was still warm from the afternoon sun.",
        world_tint=Tint(0.8, 0.78, 0.85, 1.0),
        reinforced_traits=(Trait.MELANCHOLIC, Trait.FRAGILE),
        eroded_traits=(Trait.OPEN,),
        display_tint=Tint(0.55, 0.5, 0.6, 1.0),
    ),
    "pond_morning": MemoryDefinition(
        title="A still morning by the pond",
        category=MemoryCategory.STILLNESS,
        emotional_weight=0.5,
        description="You didn't move for a long time. Neither did the heron.",
        world_tint=Tint(0.85, 1.0, 0.9, 1.0),
        reinforced_traits=(Trait.CALM, Trait.AWARE),
        eroded_traits=(Trait.AGILE,),
        display_tint=Tint(0.6, 0.85, 0.7, 1.0),
    ),
    "chalk_mural": MemoryDefinition(
        title="The chalk mural",
        category=MemoryCategory.CREATION,
        emotional_weight=0.55,
        description="It would wash away by morning. You drew it anyway.",
        world_tint=Tint(1.0, 0.9, 0.95, 1.0),
        reinforced_traits=(Trait.CURIOUS, Trait.OPEN),
        display_tint=Tint(0.95, 0.7, 0.8, 1.0),
    ),
    "rain_walk": MemoryDefinition(
        title="Walking home in the rain",
        category=MemoryCategory.NATURE,
        emotional_weight=0.4,
        description="You stopped hurrying halfway there.",
        world_tint=Tint(0.85, 0.9, 0.95, 1.0),
        reinforced_traits=(Trait.RESILIENT,),
        eroded_traits=(Trait.FRAGILE,),
        display_tint=Tint(0.6, 0.7, 0.8, 1.0),
    ),
})
