"""
Userdata settings — operating system specific provisioning options.
"""

from .flatcar import FlatcarConfig, ProvisioningUtility, load_config

__all__ = ["FlatcarConfig", "ProvisioningUtility", "load_config"]
