"""
nebula-machine — OpenNebula provider for a machine-lifecycle controller.

Turns declarative Machine resources into OpenNebula virtual machines
and renders the Flatcar provisioning settings used at first boot.
"""

import os

__version__ = "0.1.0"
__author__ = "nebula-machine developers"

MANIFEST_HOME = os.environ.get("NEBULA_MACHINE_HOME", "~/.nebula-machine")
