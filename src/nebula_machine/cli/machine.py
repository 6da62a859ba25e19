"""Machine commands: list, validate, create, get, delete."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..errors import InstanceNotFoundError, NebulaMachineError
from ._common import MANIFEST_HOME, console, load, provider_for, status_label


def _fail(exc: Exception) -> None:
    console.print(f"\n  [red]{escape(str(exc))}[/]\n")
    raise SystemExit(1)


def register_machine_commands(main: click.Group) -> None:
    """Register the machine command group."""

    @main.group()
    def machine():
        """Manage OpenNebula machines described by YAML manifests.

        \b
        Check:    nebula-machine machine validate worker.yaml
        Create:   nebula-machine machine create worker.yaml --userdata boot.ign
        Status:   nebula-machine machine get worker.yaml
        Delete:   nebula-machine machine delete worker.yaml

        Credentials left out of a manifest are read from ONE_USERNAME,
        ONE_PASSWORD and ONE_ENDPOINT.
        """

    @machine.command("list")
    @click.option("--home", default=MANIFEST_HOME, type=click.Path())
    def machine_list(home: str):
        """List the manifests stored in the manifest home."""
        from ..machine import list_manifests

        paths = list_manifests(Path(home).expanduser())
        if not paths:
            console.print("\n  [dim]No machine manifests found.[/]\n")
            return

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Manifest", style="bold cyan")
        table.add_column("Path", style="dim")
        for path in paths:
            table.add_row(path.stem, str(path))
        console.print(table)

    @machine.command("validate")
    @click.argument("manifest")
    @click.option("--home", default=MANIFEST_HOME, type=click.Path())
    def machine_validate(manifest: str, home: str):
        """Check that a manifest's provider spec resolves."""
        try:
            m = load(manifest, home)
            provider_for(m).validate(m.spec)
        except NebulaMachineError as exc:
            _fail(exc)

        console.print(f"\n  [green]Machine {m.metadata.name} is valid.[/]\n")

    @machine.command("create")
    @click.argument("manifest")
    @click.option("--home", default=MANIFEST_HOME, type=click.Path())
    @click.option(
        "--userdata", "userdata_file", default=None, type=click.Path(exists=True),
        help="File with the first-boot provisioning data.",
    )
    def machine_create(manifest: str, home: str, userdata_file: Optional[str]):
        """Create the VM for a machine unless it already exists."""
        userdata = Path(userdata_file).read_text() if userdata_file else ""

        try:
            m = load(manifest, home)
            provider = provider_for(m)
            provider.validate(m.spec)
            try:
                instance = provider.get(m)
                console.print(
                    f"\n  [yellow]Machine {m.metadata.name} already exists "
                    f"as VM {instance.id}.[/]\n"
                )
                return
            except InstanceNotFoundError:
                pass
            instance = provider.create(m, userdata)
        except NebulaMachineError as exc:
            _fail(exc)

        console.print(Panel(
            f"[bold green]VM created[/]\n"
            f"Name: {instance.name}\n"
            f"ID: {instance.id}\n"
            f"Provider ID: [cyan]{instance.provider_id}[/]\n"
            f"Status: {status_label(instance.status())}",
            title="Machine Created",
            border_style="green",
        ))

    @machine.command("get")
    @click.argument("manifest")
    @click.option("--home", default=MANIFEST_HOME, type=click.Path())
    def machine_get(manifest: str, home: str):
        """Show the VM backing a machine."""
        try:
            m = load(manifest, home)
            instance = provider_for(m).get(m)
        except InstanceNotFoundError:
            console.print(f"\n  [dim]No VM found for machine {manifest}.[/]\n")
            raise SystemExit(1)
        except NebulaMachineError as exc:
            _fail(exc)

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Name", style="bold cyan")
        table.add_column("ID", justify="right")
        table.add_column("Provider ID")
        table.add_column("Status")
        table.add_row(
            instance.name, instance.id, instance.provider_id,
            status_label(instance.status()),
        )
        console.print(table)

    @machine.command("delete")
    @click.argument("manifest")
    @click.option("--home", default=MANIFEST_HOME, type=click.Path())
    def machine_delete(manifest: str, home: str):
        """Terminate the VM backing a machine."""
        try:
            m = load(manifest, home)
            provider_for(m).cleanup(m)
        except NebulaMachineError as exc:
            _fail(exc)

        console.print(f"\n  [green]Machine {m.metadata.name} deleted.[/]\n")
