"""
OpenNebula API client — a thin wrapper over the pyone XML-RPC SDK.

Exposes the four calls the provider needs and converts the SDK's
generated objects into plain VMSnapshot records, so nothing outside
this module touches pyone directly.

Prerequisites:
- pyone installed (``pip install pyone``)
- Network access to the OpenNebula XML-RPC endpoint (typically
  ``http://<frontend>:2633/RPC2``)
"""

from __future__ import annotations

import logging
import xmlrpc.client
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..errors import OpenNebulaAPIError

logger = logging.getLogger(__name__)

# Pool filter flags for one.vmpool.info: all resources, whole id range,
# any state except DONE.
_POOL_FILTER_ALL = -2
_POOL_STATE_ANY = -1

# pyone exception class -> OpenNebula error code. Subclasses come before
# the OneException base, which pyone raises for faults and unknown codes.
_ERROR_CODES = (
    ("OneAuthenticationException", "AUTHENTICATION"),
    ("OneAuthorizationException", "AUTHORIZATION"),
    ("OneNoExistsException", "NO_EXISTS"),
    ("OneActionException", "ACTION"),
    ("OneApiException", "XML_RPC_API"),
    ("OneInternalException", "INTERNAL"),
    ("OneException", "ONE"),
)


@dataclass
class VMSnapshot:
    """Read-only view of a virtual machine as reported by OpenNebula."""

    id: int
    name: str
    state: int
    lcm_state: int
    context: Dict[str, str] = field(default_factory=dict)
    nics: List[Dict[str, str]] = field(default_factory=list)

    def get_context(self, key: str) -> str:
        """Return a CONTEXT entry.

        Raises:
            KeyError: If the VM has no such context entry.
        """
        if key not in self.context:
            raise KeyError(f"key {key} not found in CONTEXT")
        return str(self.context[key])


def _as_list(value: Any) -> List[Any]:
    # xml-to-dict collapses single-element vectors into a bare mapping
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def snapshot_from_sdk(vm: Any) -> VMSnapshot:
    """Convert a pyone VM object into a VMSnapshot."""
    template = getattr(vm, "TEMPLATE", None) or {}
    context = template.get("CONTEXT") or {}
    nics = [dict(nic) for nic in _as_list(template.get("NIC"))]
    return VMSnapshot(
        id=int(vm.ID),
        name=str(vm.NAME),
        state=int(vm.STATE),
        lcm_state=int(vm.LCM_STATE),
        context=dict(context),
        nics=nics,
    )


class OpenNebulaClient:
    """Short-lived handle to one OpenNebula frontend.

    Args:
        username: OpenNebula user.
        password: Password or login token.
        endpoint: XML-RPC endpoint URL.
    """

    def __init__(self, username: str, password: str, endpoint: str) -> None:
        self._username = username
        self._password = password
        self._endpoint = endpoint
        self._server: Optional[Any] = None
        self._sdk: Optional[Any] = None

    def _one(self) -> Any:
        """Create (once) the pyone server proxy.

        Raises:
            RuntimeError: If pyone is not installed.
        """
        if self._server is None:
            try:
                import pyone
            except ImportError:
                raise RuntimeError(
                    "OpenNebula provider requires pyone: pip install pyone"
                )
            self._sdk = pyone
            self._server = pyone.OneServer(
                self._endpoint, session=f"{self._username}:{self._password}",
            )
        return self._server

    def _error_code(self, exc: Exception) -> Optional[str]:
        """Return the OpenNebula error code for a pyone exception, if it is one."""
        for class_name, code in _ERROR_CODES:
            exc_class = getattr(self._sdk, class_name, None)
            if isinstance(exc_class, type) and isinstance(exc, exc_class):
                return code
        return None

    def _call(self, method: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Invoke an SDK call, normalizing its errors to OpenNebulaAPIError."""
        logger.debug("one.%s%r", method, args)
        try:
            return fn(*args)
        except OSError as exc:
            raise OpenNebulaAPIError(
                f"OpenNebula error [CONNECTION]: [one.{method}] {exc}"
            ) from exc
        except xmlrpc.client.ProtocolError as exc:
            raise OpenNebulaAPIError(
                f"OpenNebula error [HTTP {exc.errcode}]: [one.{method}] {exc.errmsg}"
            ) from exc
        except xmlrpc.client.Error as exc:
            raise OpenNebulaAPIError(
                f"OpenNebula error [XML_RPC]: [one.{method}] {exc}"
            ) from exc
        except Exception as exc:
            code = self._error_code(exc)
            if code is None:
                raise
            raise OpenNebulaAPIError(
                f"OpenNebula error [{code}]: [one.{method}] {exc}"
            ) from exc

    def list_vms(self) -> List[VMSnapshot]:
        """List every VM visible to the user, excluding DONE ones."""
        one = self._one()
        pool = self._call(
            "vmpool.info", one.vmpool.info,
            _POOL_FILTER_ALL, -1, -1, _POOL_STATE_ANY,
        )
        return [snapshot_from_sdk(vm) for vm in (getattr(pool, "VM", None) or [])]

    def vm_info(self, vm_id: int) -> VMSnapshot:
        """Fetch the full record of one VM, including its CONTEXT."""
        one = self._one()
        return snapshot_from_sdk(self._call("vm.info", one.vm.info, vm_id))

    def allocate(self, template: str, hold: bool = False) -> int:
        """Create a VM from a rendered template and return its id."""
        one = self._one()
        return int(self._call("vm.allocate", one.vm.allocate, template, hold))

    def terminate_hard(self, vm_id: int) -> None:
        """Immediately power off and delete a VM."""
        one = self._one()
        self._call("vm.action", one.vm.action, "terminate-hard", vm_id)
