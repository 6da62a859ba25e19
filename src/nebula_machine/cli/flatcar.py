"""Flatcar commands: show the effective operating system settings."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
from rich.markup import escape

from ..machine.schema import CloudProvider
from ._common import console


def register_flatcar_commands(main: click.Group) -> None:
    """Register the flatcar command group."""

    @main.group()
    def flatcar():
        """Flatcar provisioning settings."""

    @flatcar.command("show")
    @click.argument("spec_file", required=False, type=click.Path(exists=True))
    @click.option(
        "--cloud", default="",
        type=click.Choice([""] + [c.value for c in CloudProvider]),
        help="Target cloud; selects the default when no spec is given.",
    )
    def flatcar_show(spec_file: Optional[str], cloud: str):
        """Decode a Flatcar operatingSystemSpec and print the result.

        Without SPEC_FILE, prints the default settings for --cloud.

        Example:

            nebula-machine flatcar show --cloud aws
        """
        from ..errors import FlatcarConfigError
        from ..userdata.flatcar import load_config

        raw = Path(spec_file).read_bytes() if spec_file else None
        try:
            cfg = load_config(raw, cloud)
        except FlatcarConfigError as exc:
            console.print(f"[red]{escape(str(exc))}[/]")
            raise SystemExit(1)

        console.print_json(cfg.spec().decode())
