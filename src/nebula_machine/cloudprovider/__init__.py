"""
Cloud provider interface — what the controller expects from a provider.
"""

from .instance import Instance, InstanceStatus, NodeAddressType
from .types import Provider

__all__ = ["Instance", "InstanceStatus", "NodeAddressType", "Provider"]
