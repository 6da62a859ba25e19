"""Instance state as seen by the machine controller."""

from __future__ import annotations

from enum import Enum
from typing import Dict


class InstanceStatus(str, Enum):
    """Coarse lifecycle status of a remote instance."""

    CREATING = "creating"
    RUNNING = "running"
    DELETING = "deleting"
    DELETED = "deleted"
    UNKNOWN = "unknown"


class NodeAddressType(str, Enum):
    """Kind of address reported for a node."""

    HOSTNAME = "Hostname"
    INTERNAL_IP = "InternalIP"
    EXTERNAL_IP = "ExternalIP"
    INTERNAL_DNS = "InternalDNS"
    EXTERNAL_DNS = "ExternalDNS"


class Instance:
    """A remote compute instance backing a machine.

    Providers return subclasses from create() and get().
    """

    @property
    def name(self) -> str:
        raise NotImplementedError

    @property
    def id(self) -> str:
        raise NotImplementedError

    @property
    def provider_id(self) -> str:
        """Provider-qualified identifier, ``<provider>://<id>``."""
        raise NotImplementedError

    def addresses(self) -> Dict[str, NodeAddressType]:
        """Map of address to address type."""
        raise NotImplementedError

    def status(self) -> InstanceStatus:
        raise NotImplementedError
