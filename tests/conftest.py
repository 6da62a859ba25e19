"""Shared test fixtures for nebula-machine."""

from __future__ import annotations

import re
import types
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock, patch

import pytest

from nebula_machine.errors import OpenNebulaAPIError
from nebula_machine.machine.schema import Machine
from nebula_machine.opennebula.client import VMSnapshot

_DEFAULT_SPEC: Dict[str, Any] = {
    "username": "oneadmin",
    "password": "s3cret",
    "endpoint": "http://one.test:2633/RPC2",
    "cpu": 0.5,
    "vcpu": 2,
    "memory": 2048,
    "image": "flatcar-stable",
    "datastore": "default",
    "diskSize": 20480,
    "network": "public",
}


class FakeOneClient:
    """In-memory stand-in for OpenNebulaClient."""

    def __init__(self, vms: Optional[List[VMSnapshot]] = None) -> None:
        self.vms: Dict[int, VMSnapshot] = {vm.id: vm for vm in vms or []}
        self.allocated: List[str] = []
        self.terminated: List[int] = []
        self.terminate_error: Optional[Exception] = None

    def list_vms(self) -> List[VMSnapshot]:
        # The pool listing omits CONTEXT.
        return [
            VMSnapshot(id=vm.id, name=vm.name, state=vm.state, lcm_state=vm.lcm_state)
            for vm in self.vms.values()
        ]

    def vm_info(self, vm_id: int) -> VMSnapshot:
        if vm_id not in self.vms:
            raise OpenNebulaAPIError(
                f"OpenNebula error [NO_EXISTS]: [one.vm.info] "
                f"Error getting virtual machine [{vm_id}]."
            )
        return self.vms[vm_id]

    def allocate(self, template: str, hold: bool = False) -> int:
        self.allocated.append(template)
        vm_id = max(self.vms, default=-1) + 1
        name = re.search(r'^NAME="([^"]*)"', template, re.M).group(1)
        uid = re.search(r'K8S_MACHINE_UID="([^"]*)"', template).group(1)
        self.vms[vm_id] = VMSnapshot(
            id=vm_id, name=name, state=1, lcm_state=0,
            context={"K8S_MACHINE_UID": uid},
        )
        return vm_id

    def terminate_hard(self, vm_id: int) -> None:
        if self.terminate_error is not None:
            raise self.terminate_error
        if vm_id not in self.vms:
            raise OpenNebulaAPIError(
                f"OpenNebula error [NO_EXISTS]: [one.vm.action] "
                f"Error getting virtual machine [{vm_id}]."
            )
        del self.vms[vm_id]
        self.terminated.append(vm_id)


@pytest.fixture
def fake_client() -> FakeOneClient:
    """An empty fake OpenNebula frontend."""
    return FakeOneClient()


@pytest.fixture
def make_machine() -> Callable[..., Machine]:
    """Build a Machine; spec overrides set to None drop the key."""

    def _make(
        name: str = "worker-1",
        uid: str = "uid-1",
        **overrides: Any,
    ) -> Machine:
        spec = dict(_DEFAULT_SPEC)
        spec.update(overrides)
        spec = {k: v for k, v in spec.items() if v is not None}
        return Machine.model_validate({
            "metadata": {"name": name, "uid": uid},
            "spec": {
                "providerSpec": {
                    "value": {
                        "cloudProvider": "opennebula",
                        "operatingSystem": "flatcar",
                        "cloudProviderSpec": spec,
                    },
                },
            },
        })

    return _make


@pytest.fixture
def manifest_home(tmp_path):
    """A manifest home with one OpenNebula machine manifest."""
    import yaml

    home = tmp_path / ".nebula-machine"
    (home / "machines").mkdir(parents=True)
    manifest = {
        "metadata": {"name": "worker-1", "uid": "uid-1"},
        "spec": {
            "providerSpec": {
                "value": {
                    "cloudProvider": "opennebula",
                    "operatingSystem": "flatcar",
                    "cloudProviderSpec": dict(_DEFAULT_SPEC),
                },
            },
        },
    }
    (home / "machines" / "worker-1.yaml").write_text(
        yaml.dump(manifest, default_flow_style=False)
    )
    return home


# pyone's exception hierarchy, reproduced for the stub SDK module.
class OneException(Exception):
    pass


class OneAuthenticationException(OneException):
    pass


class OneAuthorizationException(OneException):
    pass


class OneNoExistsException(OneException):
    pass


class OneActionException(OneException):
    pass


class OneApiException(OneException):
    pass


class OneInternalException(OneException):
    pass


@pytest.fixture
def one_server() -> MagicMock:
    """The XML-RPC server proxy handed out by the stub pyone."""
    return MagicMock()


@pytest.fixture
def stub_pyone(one_server):
    """Install a stub pyone module whose OneServer returns ``one_server``."""
    module = types.ModuleType("pyone")
    module.OneServer = MagicMock(return_value=one_server)
    for exc_class in (
        OneException,
        OneAuthenticationException,
        OneAuthorizationException,
        OneNoExistsException,
        OneActionException,
        OneApiException,
        OneInternalException,
    ):
        setattr(module, exc_class.__name__, exc_class)
    with patch.dict("sys.modules", {"pyone": module}):
        yield module
