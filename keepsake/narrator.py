"""
Narrator — the personalised ending, composed from what actually happened.

``compose`` is a pure function over final snapshots: the held records, the
trait profile, the dominant traits, the aggregate emotional weight, the
live echoes, and the formatted time. It produces up to five passages in a
fixed order (opening, memories, identity, world, closing). Passages whose
text comes out empty are dropped. Identical inputs always give identical
text.

``gather_snapshot`` collects those inputs from running services and falls
back to an empty, neutral snapshot for any service that is missing, so an
ending can always be written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

import structlog

from keepsake.echoes import EchoPoint, EchoSource
from keepsake.identity import NEUTRAL
from keepsake.types import MemoryCategory, MemoryRecord, Trait

if TYPE_CHECKING:
    from keepsake.clock import Clock
    from keepsake.echoes import EchoMap
    from keepsake.identity import IdentityModel
    from keepsake.memory.store import MemoryStore

logger = structlog.get_logger(__name__)

UNKNOWN_TIME = "an unknown time"

# Seconds a passage stays on screen: 1.5 per line, never under 5.
_SECONDS_PER_LINE = 1.5
_MINIMUM_DISPLAY = 5.0

TRAIT_DESCRIPTIONS: Mapping[Trait, str] = {
    Trait.FEARLESS: "Someone who went to the edges",
    Trait.FRAGILE: "Someone who felt things deeply",
    Trait.CURIOUS: "Someone who kept looking",
    Trait.CALM: "Someone who knew how to be still",
    Trait.AWARE: "Someone who paid attention",
    Trait.WARM: "Someone who turned toward others",
    Trait.AGILE: "Someone who moved through the world easily",
    Trait.MELANCHOLIC: "Someone who understood that things end",
    Trait.RESILIENT: "Someone who kept going",
    Trait.OPEN: "Someone who stayed open to what came",
}


class PassageStage(str, Enum):
    OPENING = "opening"
    MEMORIES = "memories"
    IDENTITY = "identity"
    WORLD = "world"
    CLOSING = "closing"


@dataclass(frozen=True)
class Passage:
    """One unit of the ending narration."""

    text: str
    stage: PassageStage

    @property
    def display_duration(self) -> float:
        return max(_MINIMUM_DISPLAY, len(self.text.split("\n")) * _SECONDS_PER_LINE)


@dataclass
class NarrativeSnapshot:
    """Final state of every service, frozen at the moment the ending begins."""

    records: list[MemoryRecord] = field(default_factory=list)
    trait_profile: dict[Trait, float] = field(default_factory=dict)
    dominant_traits: list[Trait] = field(default_factory=list)
    total_weight: float = 0.0
    echoes: list[EchoPoint] = field(default_factory=list)
    formatted_time: str = UNKNOWN_TIME


def _lines(*lines: str) -> str:
    """Join lines the way a line-by-line text builder would: each ends in a newline."""
    return "".join(f"{line}\n" for line in lines)


# -----------------------------------------------------------------------------
# Passages
# -----------------------------------------------------------------------------


def _opening(records: Sequence[MemoryRecord], time: str) -> str:
    if not records:
        return (
            f"You were here until {time}.\n\nYou kept nothing.\n\n"
            "Maybe that was its own kind of answer."
        )
    if len(records) <= 2:
        return (
            f"You were here until {time}.\n\n"
            "You moved through this place quietly.\n\n"
            "Some people leave deep marks. You left something gentler than that."
        )
    return (
        f"You were here until {time}.\n\n"
        "You lived in this place. Really lived in it.\n\n"
        "That is rarer than it sounds."
    )


def vividness_qualifier(vividness: float) -> str:
    if vividness > 0.85:
        return ""
    if vividness > 0.6:
        return "  (already fading a little)"
    if vividness > 0.35:
        return "  (growing distant now)"
    return "  (barely more than a feeling)"


def _memories(records: Sequence[MemoryRecord]) -> str:
    if not records:
        return ""

    lines = ["You kept these:", ""]
    # Freshest first; ties keep their held order.
    for record in sorted(records, key=lambda r: r.vividness, reverse=True):
        lines.append(f"  {record.title}")
        qualifier = vividness_qualifier(record.vividness)
        if qualifier:
            lines.append(f"  {qualifier}")
        lines.append("")

    reflected = sum(1 for r in records if r.reflected)
    if reflected:
        if reflected == len(records):
            lines.append("You thought about all of them.")
        else:
            lines.append(f"You thought carefully about {reflected} of them.")
    return _lines(*lines)


def _identity(dominant: Sequence[Trait], profile: Mapping[Trait, float]) -> str:
    if not dominant:
        return (
            "You didn't settle into any particular way of being.\n\n"
            "You stayed open. That takes a kind of courage too."
        )

    lines = ["By the end, you had become:", ""]
    lines.extend(f"  {TRAIT_DESCRIPTIONS.get(t, t.value)}" for t in dominant)

    def value(trait: Trait) -> float:
        return profile.get(trait, NEUTRAL)

    if value(Trait.FEARLESS) > 0.6 and value(Trait.FRAGILE) > 0.6:
        lines += ["", "Both brave and breakable. Most people are one or the other."]
    if value(Trait.CALM) > 0.6 and value(Trait.CURIOUS) > 0.6:
        lines += ["", "Still, but always looking. That is a good way to be."]
    return _lines(*lines)


def _world(echoes: Sequence[EchoPoint]) -> str:
    if not echoes:
        return _lines(
            "The world won't remember you were here.",
            "",
            "That's alright. You remember.",
        )

    memory_echoes = sum(1 for e in echoes if e.source == EchoSource.MEMORY_FORMED)
    linger_echoes = sum(1 for e in echoes if e.source == EchoSource.LINGERED)

    lines = ["You left marks in this place.", ""]
    if linger_echoes > 3:
        lines.append("You stayed in places longer than most people do.")
    elif linger_echoes > 0:
        lines.append("You found a few places worth staying in.")

    if memory_echoes == 1:
        lines += ["", "One place will hold a warmth for a while."]
    elif memory_echoes > 1:
        lines += ["", f"{memory_echoes} places will hold a warmth for a while."]

    lines += ["", "The world is slightly different for your having been in it."]
    return _lines(*lines)


def _closing(
    records: Sequence[MemoryRecord], total_weight: float, dominant: Sequence[Trait]
) -> str:
    categories = {r.category for r in records}
    fearless = Trait.FEARLESS in dominant

    if total_weight > 3.0 and fearless:
        return "You lived with your whole weight.\n\nNot everyone does."
    if Trait.CALM in dominant and MemoryCategory.STILLNESS in categories:
        return "You found something in the quiet.\n\nThat's harder than it looks."
    if MemoryCategory.RISK in categories and not fearless:
        return "You went to the edges even when it scared you.\n\nThat counts for something."
    if Trait.MELANCHOLIC in dominant and MemoryCategory.WONDER in categories:
        return (
            "You saw the beauty in things and felt the weight of it.\n\n"
            "That's not a flaw. That's just being alive to it."
        )
    if MemoryCategory.SOLITUDE in categories and len(records) <= 3:
        return "You kept your own company well.\n\nSome people never learn that."
    if not records:
        return "You were here.\n\nThat was enough."
    return "You lived a life worth having.\n\nThat's the whole point, isn't it."


# -----------------------------------------------------------------------------
# Entry points
# -----------------------------------------------------------------------------


def compose(
    records: Optional[Sequence[MemoryRecord]] = None,
    trait_profile: Optional[Mapping[Trait, float]] = None,
    dominant_traits: Optional[Sequence[Trait]] = None,
    total_weight: Optional[float] = None,
    echoes: Optional[Sequence[EchoPoint]] = None,
    formatted_time: Optional[str] = None,
) -> list[Passage]:
    """Build the ending passages from final snapshots.

    Missing inputs default to the empty/neutral snapshot. The inputs are
    never mutated.
    """
    records = list(records or ())
    profile = {trait: NEUTRAL for trait in Trait}
    profile.update(trait_profile or {})
    dominant = list(dominant_traits or ())
    weight = total_weight or 0.0
    echoes = list(echoes or ())
    time = formatted_time or UNKNOWN_TIME

    candidates = [
        Passage(_opening(records, time), PassageStage.OPENING),
        Passage(_memories(records), PassageStage.MEMORIES),
        Passage(_identity(dominant, profile), PassageStage.IDENTITY),
        Passage(_world(echoes), PassageStage.WORLD),
        Passage(_closing(records, weight, dominant), PassageStage.CLOSING),
    ]
    passages = [p for p in candidates if p.text]
    logger.info(
        "narrator.composed",
        passages=len(passages),
        memories=len(records),
        dominant=[t.value for t in dominant],
    )
    return passages


def gather_snapshot(
    memory: Optional[MemoryStore] = None,
    identity: Optional[IdentityModel] = None,
    echoes: Optional[EchoMap] = None,
    clock: Optional[Clock] = None,
) -> NarrativeSnapshot:
    """Read final snapshots from whichever services exist."""
    snapshot = NarrativeSnapshot()
    if memory is not None:
        snapshot.records = memory.records
        snapshot.total_weight = memory.total_emotional_weight()
    else:
        logger.warning("narrator.service_missing", service="memory")
    if identity is not None:
        snapshot.trait_profile = identity.profile()
        snapshot.dominant_traits = identity.dominant_traits()
    else:
        logger.warning("narrator.service_missing", service="identity")
    if echoes is not None:
        snapshot.echoes = echoes.echoes()
    if clock is not None:
        snapshot.formatted_time = clock.formatted_time()
    return snapshot


def compose_from(snapshot: NarrativeSnapshot) -> list[Passage]:
    return compose(
        records=snapshot.records,
        trait_profile=snapshot.trait_profile,
        dominant_traits=snapshot.dominant_traits,
        total_weight=snapshot.total_weight,
        echoes=snapshot.echoes,
        formatted_time=snapshot.formatted_time,
    )
