"""
OpenNebula template builder.

Renders the native template syntax accepted by ``one.vm.allocate``::

    NAME="worker-1"
    DISK=[
      IMAGE="flatcar",
      DEV_PREFIX="vd" ]
"""

from __future__ import annotations

from typing import Any, List, Tuple, Union

# Template keys
NAME = "NAME"
CPU = "CPU"
VCPU = "VCPU"
MEMORY = "MEMORY"

DISK = "DISK"
IMAGE = "IMAGE"
DATASTORE = "DATASTORE"
DEV_PREFIX = "DEV_PREFIX"
SIZE = "SIZE"

NIC = "NIC"
NETWORK = "NETWORK"
MODEL = "MODEL"
IP = "IP"

GRAPHICS = "GRAPHICS"
GRAPHICS_TYPE = "TYPE"
LISTEN = "LISTEN"

CONTEXT = "CONTEXT"
NETWORK_CTX = "NETWORK"
SSH_PUBLIC_KEY = "SSH_PUBLIC_KEY"


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "YES" if value else "NO"
    if isinstance(value, float):
        return format(value, "g")
    return str(value)


def _quote(value: Any) -> str:
    text = _format_value(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


class TemplateVector:
    """A bracketed section such as DISK or CONTEXT."""

    def __init__(self, key: str) -> None:
        self.key = key
        self.pairs: List[Tuple[str, Any]] = []

    def add(self, key: str, value: Any) -> "TemplateVector":
        self.pairs.append((key, value))
        return self

    def render(self) -> str:
        body = ",\n".join(f"  {k}={_quote(v)}" for k, v in self.pairs)
        return f"{self.key}=[\n{body} ]"


class VMTemplate:
    """Ordered collection of template attributes and vectors."""

    def __init__(self) -> None:
        self._elements: List[Union[Tuple[str, Any], TemplateVector]] = []

    def add(self, key: str, value: Any) -> "VMTemplate":
        self._elements.append((key, value))
        return self

    def cpu(self, value: float) -> "VMTemplate":
        return self.add(CPU, value)

    def vcpu(self, value: int) -> "VMTemplate":
        return self.add(VCPU, value)

    def memory(self, value: int) -> "VMTemplate":
        return self.add(MEMORY, value)

    def add_vector(self, key: str) -> TemplateVector:
        vector = TemplateVector(key)
        self._elements.append(vector)
        return vector

    def _singleton_vector(self, key: str) -> TemplateVector:
        for element in self._elements:
            if isinstance(element, TemplateVector) and element.key == key:
                return element
        return self.add_vector(key)

    def add_disk(self) -> TemplateVector:
        return self.add_vector(DISK)

    def add_nic(self) -> TemplateVector:
        return self.add_vector(NIC)

    def add_graphics(self, key: str, value: Any) -> "VMTemplate":
        self._singleton_vector(GRAPHICS).add(key, value)
        return self

    def add_context(self, key: str, value: Any) -> "VMTemplate":
        self._singleton_vector(CONTEXT).add(key, value)
        return self

    def render(self) -> str:
        lines = []
        for element in self._elements:
            if isinstance(element, TemplateVector):
                lines.append(element.render())
            else:
                key, value = element
                lines.append(f"{key}={_quote(value)}")
        return "\n".join(lines) + "\n"

    __str__ = render
