"""Informational commands — catalog, config."""

from __future__ import annotations

import json as json_mod

import click

from keepsake.catalog import CATALOG
from keepsake.cli.formatters import build_table, format_weight, get_console
from keepsake.config import KeepsakeConfig


@click.command("catalog")
@click.pass_context
def catalog_cmd(ctx: click.Context) -> None:
    """List the sample memories a headless session can keep."""
    if ctx.obj.get("json"):
        data = [
            {
                "slug": slug,
                "title": d.title,
                "category": d.category.value,
                "emotional_weight": d.emotional_weight,
                "reinforces": [t.value for t in d.reinforced_traits],
                "erodes": [t.value for t in d.eroded_traits],
            }
            for slug, d in CATALOG.items()
        ]
        click.echo(json_mod.dumps(data, indent=2))
        return

    rows = [
        [
            slug,
            d.title,
            d.category.value,
            format_weight(d.emotional_weight),
            ", ".join(t.value for t in d.reinforced_traits) or "-",
            ", ".join(t.value for t in d.eroded_traits) or "-",
        ]
        for slug, d in CATALOG.items()
    ]
    console = get_console(no_color=ctx.obj.get("no_color", False))
    console.print(
        build_table(
            "Memories", ["Slug", "Title", "Category", "Weight", "Reinforces", "Erodes"], rows
        )
    )


@click.command("config")
@click.pass_context
def config_cmd(ctx: click.Context) -> None:
    """Show the effective configuration, environment overrides included."""
    data = KeepsakeConfig().to_dict()
    if ctx.obj.get("json"):
        click.echo(json_mod.dumps(data, indent=2))
        return

    console = get_console(no_color=ctx.obj.get("no_color", False))
    for section, values in data.items():
        rows = [[key, value] for key, value in values.items()]
        console.print(build_table(section, ["Key", "Value"], rows))
