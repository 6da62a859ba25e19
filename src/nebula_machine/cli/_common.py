"""Shared utilities for all CLI command modules.

Provides the Rich console instance, status formatting and the provider
factory used by every command group.
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from .. import MANIFEST_HOME
from ..cloudprovider.instance import InstanceStatus
from ..errors import ManifestError
from ..machine import Machine, load_machine
from ..machine.schema import CloudProvider
from ..opennebula import OpenNebulaProvider
from ..providerconfig import ConfigVarResolver

console = Console()


def status_label(status: InstanceStatus) -> str:
    """Map an instance status to a Rich-formatted label.

    Args:
        status: Instance lifecycle status.

    Returns:
        str: Rich markup string for the status.
    """
    return {
        InstanceStatus.RUNNING: "[bold green]RUNNING[/]",
        InstanceStatus.CREATING: "[bold cyan]CREATING[/]",
        InstanceStatus.DELETING: "[bold yellow]DELETING[/]",
        InstanceStatus.DELETED: "[dim]DELETED[/]",
    }.get(status, "[bold red]UNKNOWN[/]")


def load(ref: str, home: str) -> Machine:
    """Load a manifest, resolving bare names against the manifest home."""
    return load_machine(ref, home=Path(home).expanduser())


def provider_for(machine: Machine) -> OpenNebulaProvider:
    """Return the provider for a machine's cloud.

    Raises:
        ManifestError: If the machine targets a cloud other than OpenNebula.
    """
    cloud = (machine.spec.provider_spec.value or {}).get("cloudProvider")
    if cloud not in (None, CloudProvider.OPENNEBULA.value):
        raise ManifestError(
            f"machine {machine.metadata.name} targets unsupported cloud '{cloud}'"
        )
    return OpenNebulaProvider(ConfigVarResolver())


__all__ = ["MANIFEST_HOME", "console", "load", "provider_for", "status_label"]
