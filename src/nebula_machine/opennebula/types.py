"""Raw OpenNebula settings as written in a machine's cloudProviderSpec."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ProviderConfigError
from ..machine.schema import ConfigVarBool, ConfigVarString, ProviderConfig


class RawConfig(BaseModel):
    """Unresolved OpenNebula settings.

    Credentials may be omitted and supplied through ONE_USERNAME,
    ONE_PASSWORD and ONE_ENDPOINT instead.
    """

    model_config = ConfigDict(populate_by_name=True)

    # Auth details
    username: ConfigVarString = Field(default_factory=ConfigVarString)
    password: ConfigVarString = Field(default_factory=ConfigVarString)
    endpoint: ConfigVarString = Field(
        default_factory=ConfigVarString,
        description="XML-RPC endpoint, e.g. http://one.example.com:2633/RPC2",
    )

    # Machine details
    cpu: Optional[float] = Field(default=None, description="Physical CPU share")
    vcpu: Optional[int] = Field(default=None, description="Virtual CPUs")
    memory: Optional[int] = Field(default=None, description="Memory in MB")
    image: ConfigVarString = Field(default_factory=ConfigVarString)
    datastore: ConfigVarString = Field(default_factory=ConfigVarString)
    disk_size: Optional[int] = Field(
        default=None, alias="diskSize", description="Disk size in MB",
    )
    network: ConfigVarString = Field(default_factory=ConfigVarString)
    enable_vnc: ConfigVarBool = Field(default_factory=ConfigVarBool, alias="enableVNC")


class CloudProviderSpec(BaseModel):
    """Controller-level switches carried next to the raw settings."""

    model_config = ConfigDict(populate_by_name=True)

    pass_validation: bool = Field(default=False, alias="passValidation")


def get_config(provider_config: ProviderConfig) -> RawConfig:
    """Decode the OpenNebula part of a provider config.

    Raises:
        ProviderConfigError: If the cloudProviderSpec is malformed.
    """
    try:
        return RawConfig.model_validate(provider_config.cloud_provider_spec)
    except ValidationError as exc:
        raise ProviderConfigError(
            f"failed to decode opennebula cloudProviderSpec: {exc}"
        ) from exc
