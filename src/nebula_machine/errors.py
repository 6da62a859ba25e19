"""
Error types shared by the provider, the config resolver and the CLI.

Two tiers matter to the owning controller:

- TerminalError: the machine's configuration is unusable. The caller
  must not retry and surfaces the reason to the end user.
- everything else raised from a remote call (OpenNebulaAPIError) is
  transient and left to the caller's reconciliation loop.

InstanceNotFoundError is neither. It is the signal that no remote
instance belongs to the machine, which the caller uses to decide between
creating, reconciling or finishing a deletion.
"""

from __future__ import annotations

from enum import Enum


class MachineErrorReason(str, Enum):
    """Reason codes attached to terminal machine errors."""

    INVALID_CONFIGURATION = "InvalidConfiguration"
    UNSUPPORTED_CHANGE = "UnsupportedChange"
    INSUFFICIENT_RESOURCES = "InsufficientResources"
    CREATE_MACHINE = "CreateError"
    UPDATE_MACHINE = "UpdateError"
    DELETE_MACHINE = "DeleteError"


class NebulaMachineError(Exception):
    """Base class for every error raised by nebula-machine."""


class TerminalError(NebulaMachineError):
    """A non-retriable failure caused by the machine's configuration.

    Args:
        reason: Reason code reported on the machine's status.
        message: Human-readable explanation.
    """

    def __init__(self, reason: MachineErrorReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message

    def __str__(self) -> str:
        return f"An error of type {self.reason.value} occurred: {self.message}"


class InstanceNotFoundError(NebulaMachineError):
    """No remote instance matches the machine's name and UID."""

    def __str__(self) -> str:
        return "instance not found"


class ConfigVarError(NebulaMachineError):
    """A config variable could not be resolved."""


class ProviderConfigError(NebulaMachineError):
    """The provider spec payload could not be decoded."""


class ManifestError(NebulaMachineError):
    """A machine manifest file is missing or invalid."""


class FlatcarConfigError(NebulaMachineError):
    """The Flatcar operating system spec could not be decoded or encoded."""


class OpenNebulaAPIError(NebulaMachineError):
    """An OpenNebula API call failed.

    The message keeps the server's error code in brackets, e.g.
    ``OpenNebula error [NO_EXISTS]: [one.vm.info] Error getting virtual
    machine [42].``
    """


def invalid_configuration(message: str) -> TerminalError:
    """Build a TerminalError with the InvalidConfiguration reason."""
    return TerminalError(MachineErrorReason.INVALID_CONFIGURATION, message)
