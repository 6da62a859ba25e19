"""
Config variable resolution for provider specs.

Providers hold a ConfigVarResolver and ask it for the concrete value of
each setting. Credentials may be left out of the manifest and supplied
through the environment instead.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional, Tuple

from .errors import ConfigVarError
from .machine.schema import ConfigVarBool, ConfigVarString

logger = logging.getLogger(__name__)


class ConfigVarResolver:
    """Resolves ConfigVar settings to plain values.

    Args:
        environ: Environment to read fallbacks from. Defaults to
            ``os.environ`` at lookup time.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        self._environ = environ

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def get_string_value(self, var: Optional[ConfigVarString]) -> str:
        """Return the inline value, or an empty string when unset."""
        if var is None:
            return ""
        return var.value

    def get_string_value_or_env(
        self, var: Optional[ConfigVarString], env_name: str,
    ) -> str:
        """Return the inline value, falling back to an environment variable.

        Args:
            var: The configured value.
            env_name: Environment variable consulted when the inline
                value is empty.

        Returns:
            The resolved, non-empty value.

        Raises:
            ConfigVarError: If neither source provides a value.
        """
        value = self.get_string_value(var)
        if value:
            return value

        env_value = self.environ.get(env_name, "")
        if not env_value:
            raise ConfigVarError(
                f"no value given and environment variable {env_name} is not set"
            )
        logger.debug("Resolved value from environment variable %s", env_name)
        return env_value

    def get_bool_value(self, var: Optional[ConfigVarBool]) -> Tuple[bool, bool]:
        """Return ``(value, is_set)`` for a boolean setting."""
        if var is None or var.value is None:
            return False, False
        return var.value, True
