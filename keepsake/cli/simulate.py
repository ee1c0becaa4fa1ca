"""Simulate command — a headless playthrough from first step to last passage."""

from __future__ import annotations

import json as json_mod
import math
import random
from typing import Any

import click
import structlog

from keepsake.catalog import CATALOG
from keepsake.cli.formatters import build_table, format_weight, get_console, passage_panel
from keepsake.echoes import EchoSource
from keepsake.memory import OfferResult
from keepsake.narrator import Passage, PassageStage
from keepsake.session import KeepsakeSession
from keepsake.types import Position

logger = structlog.get_logger(__name__)

_WALK_SPEED = 1.4
_PAUSE_CHANCE = 0.35
# Upper bound on steps spent playing out the ending sequence.
_MAX_ENDING_STEPS = 100_000


class _Wanderer:
    """Seeded walk: stretches of walking in a straight line, broken by pauses."""

    def __init__(self, rng: random.Random):
        self._rng = rng
        self.position = Position()
        self._heading = 0.0
        self._paused = True
        self._remaining = 0.0

    def advance(self, delta_seconds: float) -> Position:
        self._remaining -= delta_seconds
        if self._remaining <= 0:
            self._paused = self._rng.random() < _PAUSE_CHANCE
            self._heading = self._rng.uniform(0.0, 2.0 * math.pi)
            if self._paused:
                self._remaining = self._rng.uniform(4.0, 12.0)
            else:
                self._remaining = self._rng.uniform(2.0, 8.0)
        if not self._paused:
            distance = _WALK_SPEED * delta_seconds
            self.position = Position(
                self.position.x + math.cos(self._heading) * distance,
                self.position.y,
                self.position.z + math.sin(self._heading) * distance,
            )
        return self.position


def run_simulation(
    session: KeepsakeSession, hours: float, memories: int, seed: int, step: float
) -> dict[str, Any]:
    """Play a session headlessly and return a summary of how it ended."""
    rng = random.Random(seed)
    time_scale = session.config.clock.time_scale
    if time_scale <= 0:
        raise click.ClickException("Clock time scale must be positive to simulate")

    total_steps = max(1, math.ceil(hours * 3600.0 / time_scale / step))
    slugs = rng.sample(list(CATALOG), k=min(memories, len(CATALOG)))
    # Offers spread evenly across the run, in seeded order.
    offers = [
        (int((i + 1) * total_steps / (len(slugs) + 1)), slug) for i, slug in enumerate(slugs)
    ]

    wanderer = _Wanderer(rng)
    for index in range(total_steps):
        position = wanderer.advance(step)
        session.step(step, player_position=position)
        while offers and offers[0][0] <= index:
            _, slug = offers.pop(0)
            _offer(session, slug, rng)

    passages = session.trigger_ending()
    ending_seconds = 0.0
    for _ in range(_MAX_ENDING_STEPS):
        if session.ending.is_done:
            break
        session.step(step)
        ending_seconds += step

    logger.info("simulate.finished", steps=total_steps, passages=len(passages))
    return {
        "time": session.clock.formatted_time(),
        "season": session.clock.season.value,
        "memories": [
            {
                "title": r.title,
                "category": r.category.value,
                "vividness": round(r.vividness, 3),
                "reflected": r.reflected,
            }
            for r in session.memory.records
        ],
        "traits": {t.value: round(v, 3) for t, v in session.identity.profile().items()},
        "dominant_traits": [t.value for t in session.identity.dominant_traits()],
        "echoes": {source.value: session.echoes.count(source) for source in EchoSource},
        "passages": [
            {"stage": p.stage.value, "text": p.text, "display_duration": p.display_duration}
            for p in passages
        ],
        "ending_seconds": round(ending_seconds, 3),
    }


def _offer(session: KeepsakeSession, slug: str, rng: random.Random) -> None:
    definition = CATALOG[slug]
    result = session.memory.offer(definition)
    if result == OfferResult.CHOICE_REQUIRED:
        # Let go of whatever has faded the most.
        faintest = min(session.memory.records, key=lambda r: r.vividness)
        session.memory.replace(faintest, definition)

    for record in session.memory.records:
        if record.definition == definition and rng.random() < 0.5:
            session.memory.reflect(record)


@click.command("simulate")
@click.option("--hours", default=6.0, type=click.FloatRange(min=0.1), show_default=True,
              help="Game hours to play before the ending")
@click.option("--memories", default=4, type=click.IntRange(0, len(CATALOG)), show_default=True,
              help="Catalog memories to offer along the way")
@click.option("--seed", default=7, type=int, show_default=True, help="Seed for order and path")
@click.option("--step", "step_seconds", default=1.0, type=click.FloatRange(min=0.01),
              show_default=True, help="Real seconds per simulation step")
@click.pass_context
def simulate_cmd(
    ctx: click.Context, hours: float, memories: int, seed: int, step_seconds: float
) -> None:
    """Play a headless session and print the ending it earned."""
    summary = run_simulation(KeepsakeSession(), hours, memories, seed, step_seconds)

    if ctx.obj.get("json"):
        click.echo(json_mod.dumps(summary, indent=2))
        return

    console = get_console(no_color=ctx.obj.get("no_color", False))
    console.print(f"[bold]{summary['time']}[/bold] ({summary['season']})")
    console.print()

    if summary["memories"]:
        rows = [
            [m["title"], m["category"], format_weight(m["vividness"]), "yes" if m["reflected"] else ""]
            for m in summary["memories"]
        ]
        console.print(build_table("Kept", ["Memory", "Category", "Vividness", "Reflected"], rows))

    if ctx.obj.get("verbose"):
        rows = [[trait, format_weight(value)] for trait, value in summary["traits"].items()]
        console.print(build_table("Traits", ["Trait", "Value"], rows))

    console.print()
    for p in summary["passages"]:
        console.print(passage_panel(Passage(p["text"], PassageStage(p["stage"]))))
