"""
OpenNebula provider — machines backed by OpenNebula virtual machines.
"""

from .client import OpenNebulaClient, VMSnapshot
from .provider import (
    Config,
    LCMState,
    OpenNebulaInstance,
    OpenNebulaProvider,
    VMState,
    map_status,
)

__all__ = [
    "Config",
    "LCMState",
    "OpenNebulaClient",
    "OpenNebulaInstance",
    "OpenNebulaProvider",
    "VMSnapshot",
    "VMState",
    "map_status",
]
