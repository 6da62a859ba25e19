"""
Flatcar operating system settings.

Decodes the ``operatingSystemSpec`` of a Flatcar machine::

    {"disableAutoUpdate": true, "provisioningUtility": "cloud-init"}

When a machine carries no spec at all, a zero-value spec is used,
except on AWS where Flatcar images boot with cloud-init instead of
Ignition.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import FlatcarConfigError
from ..machine.schema import CloudProvider

logger = logging.getLogger(__name__)

RawSpec = Optional[Union[bytes, str]]


class ProvisioningUtility(str, Enum):
    """Tool that applies the first-boot provisioning data."""

    IGNITION = "ignition"
    CLOUD_INIT = "cloud-init"


class FlatcarConfig(BaseModel):
    """Flatcar-specific machine settings."""

    model_config = ConfigDict(populate_by_name=True)

    disable_auto_update: bool = Field(default=False, alias="disableAutoUpdate")
    disable_locksmith_d: bool = Field(default=False, alias="disableLocksmithD")
    disable_update_engine: bool = Field(default=False, alias="disableUpdateEngine")
    provisioning_utility: Optional[ProvisioningUtility] = Field(
        default=None,
        alias="provisioningUtility",
        description="cloud-init or ignition; unset means ignition",
    )

    @field_validator("provisioning_utility", mode="before")
    @classmethod
    def _empty_utility_is_unset(cls, v: Any) -> Any:
        return None if v == "" else v

    def spec(self) -> bytes:
        """Encode the settings as the JSON operatingSystemSpec.

        Raises:
            FlatcarConfigError: If the settings cannot be serialized.
        """
        try:
            return self.model_dump_json(by_alias=True, exclude_none=True).encode()
        except ValueError as exc:
            raise FlatcarConfigError(str(exc)) from exc


def default_config(raw: RawSpec) -> RawSpec:
    """Fill in the zero-value spec when none is given."""
    return default_config_for_cloud(raw, "")


def default_config_for_cloud(
    raw: RawSpec, cloud_provider: Union[CloudProvider, str],
) -> RawSpec:
    """Fill in the cloud-specific default spec when none is given.

    Args:
        raw: The machine's raw operatingSystemSpec, or None.
        cloud_provider: Target cloud.

    Returns:
        ``raw`` unchanged when present, otherwise the encoded default.
    """
    if raw is not None:
        return raw

    defaults = FlatcarConfig()
    if cloud_provider == CloudProvider.AWS:
        defaults.provisioning_utility = ProvisioningUtility.CLOUD_INIT
    return defaults.spec()


def load_config(
    raw: RawSpec, cloud_provider: Union[CloudProvider, str] = "",
) -> FlatcarConfig:
    """Decode a Flatcar operatingSystemSpec.

    Args:
        raw: JSON bytes or text, or None for the default spec.
        cloud_provider: Target cloud, used only for the default.

    Raises:
        FlatcarConfigError: If the spec is not valid JSON or has
            invalid values. The decoder's message is kept verbatim.
    """
    raw = default_config_for_cloud(raw, cloud_provider)
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise FlatcarConfigError(str(exc)) from exc

    if data is None:
        data = {}
    try:
        cfg = FlatcarConfig.model_validate(data)
    except ValidationError as exc:
        raise FlatcarConfigError(str(exc)) from exc

    logger.debug("Loaded flatcar config: %s", cfg)
    return cfg
