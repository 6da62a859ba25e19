"""
Machine resources — schema and manifest loading.
"""

from .manifest import list_manifests, load_machine
from .schema import (
    CloudProvider,
    ConfigVarBool,
    ConfigVarString,
    Machine,
    MachineSpec,
    ObjectMeta,
    OperatingSystem,
    ProviderConfig,
    ProviderSpec,
    get_provider_config,
)

__all__ = [
    "CloudProvider",
    "ConfigVarBool",
    "ConfigVarString",
    "Machine",
    "MachineSpec",
    "ObjectMeta",
    "OperatingSystem",
    "ProviderConfig",
    "ProviderSpec",
    "get_provider_config",
    "list_manifests",
    "load_machine",
]
