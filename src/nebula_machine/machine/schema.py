"""
Pydantic models for the Machine resource consumed by the provider.

A Machine describes one compute instance the controller should keep
alive. Its provider spec is an opaque payload: the generic part
(cloud provider, operating system, SSH keys) is decoded here, the
cloud-specific part stays a raw mapping until a provider decodes it.

Field names follow the camelCase keys of the YAML/JSON manifests; the
Python attributes are snake_case.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..errors import ProviderConfigError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class CloudProvider(str, Enum):
    """Cloud providers a machine can be placed on."""

    AWS = "aws"
    AZURE = "azure"
    DIGITALOCEAN = "digitalocean"
    GCE = "gce"
    HETZNER = "hetzner"
    KUBEVIRT = "kubevirt"
    LINODE = "linode"
    NUTANIX = "nutanix"
    OPENNEBULA = "opennebula"
    OPENSTACK = "openstack"
    VSPHERE = "vsphere"
    FAKE = "fake"


class OperatingSystem(str, Enum):
    """Operating systems the controller can provision."""

    FLATCAR = "flatcar"
    UBUNTU = "ubuntu"
    CENTOS = "centos"
    AMAZON_LINUX2 = "amzn2"
    RHEL = "rhel"
    ROCKY_LINUX = "rockylinux"
    SLES = "sles"


# ---------------------------------------------------------------------------
# Config variables
# ---------------------------------------------------------------------------

class ConfigVarString(BaseModel):
    """A string setting given inline.

    Manifests may write either ``username: admin`` or
    ``username: {value: admin}``.
    """

    value: str = ""

    @model_validator(mode="before")
    @classmethod
    def _from_scalar(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, (str, int, float)) and not isinstance(data, bool):
            return {"value": str(data)}
        return data


class ConfigVarBool(BaseModel):
    """A boolean setting given inline; ``None`` means unset."""

    value: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def _from_scalar(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, bool):
            return {"value": data}
        return data


# ---------------------------------------------------------------------------
# Provider spec
# ---------------------------------------------------------------------------

class ProviderConfig(BaseModel):
    """The decoded, provider-independent part of a provider spec."""

    model_config = ConfigDict(populate_by_name=True)

    cloud_provider: CloudProvider = Field(alias="cloudProvider")
    cloud_provider_spec: Dict[str, Any] = Field(
        default_factory=dict,
        alias="cloudProviderSpec",
        description="Cloud-specific settings, decoded by the provider",
    )
    operating_system: Optional[OperatingSystem] = Field(
        default=None, alias="operatingSystem",
    )
    operating_system_spec: Optional[Dict[str, Any]] = Field(
        default=None,
        alias="operatingSystemSpec",
        description="OS-specific settings, decoded by the userdata loaders",
    )
    ssh_public_keys: List[str] = Field(default_factory=list, alias="sshPublicKeys")


class ProviderSpec(BaseModel):
    """Opaque provider payload embedded in a machine spec."""

    value: Optional[Dict[str, Any]] = None


class ObjectMeta(BaseModel):
    """Identity of a machine resource."""

    name: str
    namespace: str = ""
    uid: str = ""


class MachineSpec(BaseModel):
    """Desired state of a machine."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    provider_spec: ProviderSpec = Field(
        default_factory=ProviderSpec, alias="providerSpec",
    )
    versions: Dict[str, str] = Field(
        default_factory=dict,
        description="Component versions, e.g. {'kubelet': '1.27.4'}",
    )


class Machine(BaseModel):
    """A declarative compute instance."""

    metadata: ObjectMeta
    spec: MachineSpec = Field(default_factory=MachineSpec)

    @model_validator(mode="after")
    def _default_spec_name(self) -> "Machine":
        if not self.spec.name:
            self.spec.name = self.metadata.name
        return self


def get_provider_config(provider_spec: ProviderSpec) -> ProviderConfig:
    """Decode the generic part of a provider spec.

    Args:
        provider_spec: The machine's provider spec.

    Returns:
        The decoded ProviderConfig.

    Raises:
        ProviderConfigError: If the payload is absent or malformed.
    """
    if provider_spec.value is None:
        raise ProviderConfigError("machine.spec.providerconfig.value is nil")
    try:
        return ProviderConfig.model_validate(provider_spec.value)
    except ValidationError as exc:
        raise ProviderConfigError(f"failed to decode provider config: {exc}") from exc
