"""CLI application — Click-based command hierarchy for Keepsake.

The main CLI group and global flags. Subcommand modules register
themselves by importing and adding to the group.
"""

from __future__ import annotations

import logging

import click

from keepsake import __version__
from keepsake.main import configure_logging


@click.group()
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output")
@click.option("--verbose", "-v", is_flag=True, help="Log component activity")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors")
@click.version_option(version=__version__, prog_name="keepsake")
@click.pass_context
def cli(ctx: click.Context, json_output: bool, verbose: bool, no_color: bool) -> None:
    """Keepsake - what you keep, and who you become."""
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    ctx.obj["verbose"] = verbose
    ctx.obj["no_color"] = no_color

    configure_logging(level=logging.INFO if verbose else logging.WARNING, colors=not no_color)


# ---------------------------------------------------------------------------
# Register subcommand modules
# ---------------------------------------------------------------------------

def _register_subcommands() -> None:
    """Import and register all subcommands."""
    from keepsake.cli.info import catalog_cmd, config_cmd
    from keepsake.cli.simulate import simulate_cmd

    cli.add_command(catalog_cmd)
    cli.add_command(config_cmd)
    cli.add_command(simulate_cmd)


_register_subcommands()
