"""
nebula-machine CLI — drive the OpenNebula provider by hand.

The main Click group is defined here and all subcommands are registered
via register functions.

Entry point: nebula_machine.cli:main
"""

from __future__ import annotations

import logging

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="nebula-machine")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """nebula-machine — OpenNebula machines from declarative manifests."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .machine import register_machine_commands
from .flatcar import register_flatcar_commands

register_machine_commands(main)
register_flatcar_commands(main)
