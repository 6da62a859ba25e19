"""
OpenNebula Provider — back machines with OpenNebula virtual machines.

Creates one VM per machine from a template built out of the machine's
cloudProviderSpec, finds it again on every reconcile, and hard-terminates
it on deletion.

OpenNebula only indexes VMs by name, and names are not unique. Every VM
therefore carries the machine's UID in its CONTEXT section
(``K8S_MACHINE_UID``), and a VM belongs to a machine only when both the
name and that UID match.

Credentials come from the cloudProviderSpec or, when left empty there,
from the ONE_USERNAME, ONE_PASSWORD and ONE_ENDPOINT environment
variables.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..cloudprovider.instance import Instance, InstanceStatus, NodeAddressType
from ..cloudprovider.types import Provider
from ..errors import (
    ConfigVarError,
    InstanceNotFoundError,
    OpenNebulaAPIError,
    ProviderConfigError,
    invalid_configuration,
)
from ..machine.schema import (
    Machine,
    MachineSpec,
    ProviderConfig,
    ProviderSpec,
    get_provider_config,
)
from ..providerconfig import ConfigVarResolver
from . import template as tpl_keys
from .client import OpenNebulaClient, VMSnapshot
from .template import VMTemplate
from .types import CloudProviderSpec, get_config

logger = logging.getLogger(__name__)

PROVIDER_NAME = "opennebula"
MACHINE_UID_CONTEXT_KEY = "K8S_MACHINE_UID"
USER_DATA_CONTEXT_KEY = "USER_DATA"

# OpenNebula error code for a missing object. terminate-hard reports a
# VM that vanished between lookup and delete only through the message
# text, e.g. "OpenNebula error [NO_EXISTS]: [one.vm.action] Error
# getting virtual machine [42]."
_NO_EXISTS = "NO_EXISTS"


# ---------------------------------------------------------------------------
# Remote state
# ---------------------------------------------------------------------------

class VMState(IntEnum):
    """Top-level VM state."""

    INIT = 0
    PENDING = 1
    HOLD = 2
    ACTIVE = 3
    STOPPED = 4
    SUSPENDED = 5
    DONE = 6
    FAILED = 7
    POWEROFF = 8
    UNDEPLOYED = 9
    CLONING = 10
    CLONING_FAILURE = 11


class LCMState(IntEnum):
    """Life-cycle manager sub-state, meaningful only while ACTIVE."""

    LCM_INIT = 0
    PROLOG = 1
    BOOT = 2
    RUNNING = 3
    MIGRATE = 4
    SAVE_STOP = 5
    SAVE_SUSPEND = 6
    SAVE_MIGRATE = 7
    PROLOG_MIGRATE = 8
    PROLOG_RESUME = 9
    EPILOG_STOP = 10
    EPILOG = 11
    SHUTDOWN = 12
    CLEANUP_RESUBMIT = 15
    UNKNOWN = 16
    HOTPLUG = 17
    SHUTDOWN_POWEROFF = 18
    BOOT_UNKNOWN = 19
    BOOT_POWEROFF = 20
    BOOT_SUSPENDED = 21
    BOOT_STOPPED = 22
    CLEANUP_DELETE = 23


def map_status(state: int, lcm_state: int) -> InstanceStatus:
    """Map OpenNebula's (state, lcm_state) pair to an InstanceStatus.

    Unrecognized values map to UNKNOWN.
    """
    if state in (VMState.INIT, VMState.PENDING, VMState.HOLD):
        return InstanceStatus.CREATING
    if state == VMState.ACTIVE:
        if lcm_state in (LCMState.LCM_INIT, LCMState.PROLOG, LCMState.BOOT):
            return InstanceStatus.CREATING
        if lcm_state == LCMState.EPILOG:
            return InstanceStatus.DELETING
        return InstanceStatus.RUNNING
    if state == VMState.DONE:
        return InstanceStatus.DELETED
    return InstanceStatus.UNKNOWN


# ---------------------------------------------------------------------------
# Resolved configuration
# ---------------------------------------------------------------------------

@dataclass
class Config:
    """Fully resolved OpenNebula settings for one call."""

    # Auth details
    username: str
    password: str
    endpoint: str

    # Machine details
    cpu: Optional[float] = None
    vcpu: Optional[int] = None
    memory: Optional[int] = None
    image: str = ""
    datastore: str = ""
    disk_size: Optional[int] = None
    network: str = ""
    enable_vnc: bool = False


def build_template(machine: Machine, config: Config, userdata: str) -> VMTemplate:
    """Build the VM template for a machine.

    Requires cpu, vcpu and memory to be set on ``config``.
    """
    tpl = VMTemplate()
    tpl.add(tpl_keys.NAME, machine.spec.name)
    tpl.cpu(config.cpu).memory(config.memory).vcpu(config.vcpu)

    disk = tpl.add_disk()
    disk.add(tpl_keys.IMAGE, config.image)
    disk.add(tpl_keys.DATASTORE, config.datastore)
    disk.add(tpl_keys.DEV_PREFIX, "vd")
    if config.disk_size is not None:
        disk.add(tpl_keys.SIZE, config.disk_size)

    nic = tpl.add_nic()
    nic.add(tpl_keys.NETWORK, config.network)
    nic.add(tpl_keys.MODEL, "virtio")

    if config.enable_vnc:
        tpl.add_graphics(tpl_keys.GRAPHICS_TYPE, "VNC")
        tpl.add_graphics(tpl_keys.LISTEN, "0.0.0.0")

    tpl.add_context(tpl_keys.NETWORK_CTX, "YES")
    tpl.add_context(tpl_keys.SSH_PUBLIC_KEY, "$USER[SSH_PUBLIC_KEY]")
    tpl.add_context(MACHINE_UID_CONTEXT_KEY, machine.metadata.uid)
    tpl.add_context(USER_DATA_CONTEXT_KEY, userdata)
    return tpl


# ---------------------------------------------------------------------------
# Instance
# ---------------------------------------------------------------------------

class OpenNebulaInstance(Instance):
    """A machine's OpenNebula VM."""

    def __init__(self, vm: VMSnapshot) -> None:
        self.vm = vm

    @property
    def name(self) -> str:
        return self.vm.name

    @property
    def id(self) -> str:
        return str(self.vm.id)

    @property
    def provider_id(self) -> str:
        return f"{PROVIDER_NAME}://{self.vm.id}"

    def addresses(self) -> Dict[str, NodeAddressType]:
        addresses: Dict[str, NodeAddressType] = {}
        for nic in self.vm.nics:
            ip = nic.get(tpl_keys.IP, "")
            addresses[ip] = NodeAddressType.EXTERNAL_IP

        # TODO: return the collected NIC addresses once the node address
        # consumers are confirmed to accept ExternalIP for these VMs.
        return {}

    def status(self) -> InstanceStatus:
        return map_status(self.vm.state, self.vm.lcm_state)


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

class OpenNebulaProvider(Provider):
    """Manage machines as OpenNebula VMs.

    Args:
        resolver: Resolves config variables in the provider spec.
    """

    name = PROVIDER_NAME

    def __init__(self, resolver: ConfigVarResolver) -> None:
        self._resolver = resolver

    def _get_config(self, provider_spec: ProviderSpec) -> Tuple[Config, ProviderConfig]:
        """Resolve the provider spec into a Config.

        Raises:
            ProviderConfigError: If the payload is absent or malformed.
            ConfigVarError: If a credential cannot be resolved.
        """
        pconfig = get_provider_config(provider_spec)
        raw = get_config(pconfig)
        resolver = self._resolver

        credentials = {}
        for field_name, env_name in (
            ("username", "ONE_USERNAME"),
            ("password", "ONE_PASSWORD"),
            ("endpoint", "ONE_ENDPOINT"),
        ):
            try:
                credentials[field_name] = resolver.get_string_value_or_env(
                    getattr(raw, field_name), env_name,
                )
            except ConfigVarError as exc:
                raise ConfigVarError(
                    f'failed to get the value of "{field_name}" field, error = {exc}'
                ) from exc

        enable_vnc, _ = resolver.get_bool_value(raw.enable_vnc)
        config = Config(
            cpu=raw.cpu,
            vcpu=raw.vcpu,
            memory=raw.memory,
            image=resolver.get_string_value(raw.image),
            datastore=resolver.get_string_value(raw.datastore),
            disk_size=raw.disk_size,
            network=resolver.get_string_value(raw.network),
            enable_vnc=enable_vnc,
            **credentials,
        )
        return config, pconfig

    def _config_or_terminal(self, machine: Machine) -> Config:
        try:
            config, _ = self._get_config(machine.spec.provider_spec)
        except (ProviderConfigError, ConfigVarError) as exc:
            raise invalid_configuration(
                f"Failed to parse MachineSpec, due to {exc}"
            ) from exc
        return config

    def _client(self, config: Config) -> OpenNebulaClient:
        return OpenNebulaClient(config.username, config.password, config.endpoint)

    # ------------------------------------------------------------------
    # Provider interface
    # ------------------------------------------------------------------

    def validate(self, spec: MachineSpec) -> None:
        """Check that the provider spec resolves and decodes.

        Raises:
            ProviderConfigError: If it does not.
        """
        try:
            _, pconfig = self._get_config(spec.provider_spec)
        except (ProviderConfigError, ConfigVarError) as exc:
            raise ProviderConfigError(f"failed to parse config: {exc}") from exc

        try:
            CloudProviderSpec.model_validate(pconfig.cloud_provider_spec)
        except ValidationError as exc:
            raise ProviderConfigError(f"failed to parse config: {exc}") from exc

    def get_cloud_config(self, spec: MachineSpec) -> Tuple[str, str]:
        return "", ""

    def create(self, machine: Machine, userdata: str) -> OpenNebulaInstance:
        """Allocate a VM for the machine and return its first snapshot.

        SDK failures propagate as OpenNebulaAPIError so the caller can
        retry; configuration problems raise TerminalError.
        """
        config = self._config_or_terminal(machine)

        missing = [n for n in ("cpu", "vcpu", "memory") if getattr(config, n) is None]
        if missing:
            raise invalid_configuration(
                f"Failed to parse MachineSpec, due to missing {', '.join(missing)}"
            )

        client = self._client(config)
        tpl = build_template(machine, config, userdata)

        logger.info(
            "Creating VM %s (cpu=%s vcpu=%d memory=%dMB image=%s network=%s)",
            machine.spec.name, config.cpu, config.vcpu, config.memory,
            config.image, config.network,
        )
        vm_id = client.allocate(tpl.render(), hold=False)
        vm = client.vm_info(vm_id)
        logger.info("Created VM %s with id %d", vm.name, vm.id)
        return OpenNebulaInstance(vm)

    def get(self, machine: Machine) -> OpenNebulaInstance:
        """Find the VM carrying the machine's name and UID.

        Raises:
            InstanceNotFoundError: If none does.
            TerminalError: If the VMs cannot be listed or read.
        """
        config = self._config_or_terminal(machine)
        client = self._client(config)
        return self.lookup_instance(client, machine.spec.name, machine.metadata.uid)

    def cleanup(self, machine: Machine) -> bool:
        """Hard-terminate the machine's VM.

        Returns True when the VM is gone, including when it never
        existed or vanished before the terminate call landed.
        """
        try:
            instance = self.get(machine)
        except InstanceNotFoundError:
            logger.debug("No VM for machine %s, nothing to delete", machine.spec.name)
            return True

        config = self._config_or_terminal(machine)
        client = self._client(config)

        try:
            client.terminate_hard(instance.vm.id)
        except OpenNebulaAPIError as exc:
            if _NO_EXISTS in str(exc):
                logger.info("VM %d already deleted", instance.vm.id)
                return True
            raise invalid_configuration(
                f"failed to delete virtual machine, due to {exc}"
            ) from exc

        logger.info("Terminated VM %s (id %d)", instance.name, instance.vm.id)
        return True

    def migrate_uid(self, machine: Machine, new_uid: str) -> None:
        # TODO: rewrite K8S_MACHINE_UID in the VM's CONTEXT via one.vm.updateconf
        return None

    # ------------------------------------------------------------------
    # Two-phase lookup hooks
    # ------------------------------------------------------------------

    def _candidate_ids(self, client: OpenNebulaClient, name: str) -> List[int]:
        # The pool listing carries no CONTEXT, so only names can be compared here.
        try:
            vms = client.list_vms()
        except OpenNebulaAPIError as exc:
            raise invalid_configuration(
                f"failed to list virtual machines, due to {exc}"
            ) from exc
        return [vm.id for vm in vms if vm.name == name]

    def _confirm_identity(
        self, client: OpenNebulaClient, candidate_id: int, uid: str,
    ) -> Optional[OpenNebulaInstance]:
        try:
            vm = client.vm_info(candidate_id)
        except OpenNebulaAPIError as exc:
            raise invalid_configuration(
                f"failed to get info for VM {candidate_id}, due to {exc}"
            ) from exc

        try:
            vm_uid = vm.get_context(MACHINE_UID_CONTEXT_KEY)
        except KeyError:
            return None

        if vm_uid == uid:
            return OpenNebulaInstance(vm)
        return None
