"""CLI formatters — console helpers, tables, and passage panels."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from keepsake.narrator import Passage

# Subtle per-stage border colours for the ending panels.
_STAGE_STYLES = {
    "opening": "grey62",
    "memories": "dark_sea_green",
    "identity": "rosy_brown",
    "world": "light_steel_blue",
    "closing": "grey50",
}


def get_console(no_color: bool = False) -> Console:
    """Get a Rich Console, optionally with color disabled."""
    return Console(no_color=no_color)


def format_weight(value: float) -> Text:
    """Render a 0-1 value as a short bar plus its number."""
    filled = int(round(max(0.0, min(1.0, value)) * 10))
    return Text("#" * filled + "." * (10 - filled) + f" {value:.2f}", style="cyan")


def build_table(title: str, columns: list[str], rows: list[list[Any]]) -> Table:
    """Build a Rich table with standard styling."""
    table = Table(title=title, show_header=True, header_style="bold")
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*(v if isinstance(v, Text) else str(v) for v in row))
    return table


def passage_panel(passage: Passage) -> Panel:
    """Wrap a passage in a panel titled by its stage."""
    stage = passage.stage.value
    return Panel(
        Text(passage.text.rstrip("\n")),
        title=stage.upper(),
        title_align="left",
        border_style=_STAGE_STYLES.get(stage, "dim"),
        padding=(1, 2),
    )
