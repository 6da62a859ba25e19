"""
Provider interface (abstract base).

Each cloud implements these methods. The owning controller calls them
in sequence: validate, then create once, then get on every poll, then
cleanup when the machine is deleted.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..errors import InstanceNotFoundError
from ..machine.schema import Machine, MachineSpec
from .instance import Instance

logger = logging.getLogger(__name__)


class Provider:
    """Abstract base for cloud providers.

    Remote platforms that index instances by a non-unique name implement
    ``_candidate_ids`` and ``_confirm_identity`` and get a two-phase
    lookup from ``lookup_instance``.
    """

    name: str = ""

    def validate(self, spec: MachineSpec) -> None:
        """Check the machine spec; raise if it cannot be provisioned."""
        raise NotImplementedError

    def get_cloud_config(self, spec: MachineSpec) -> Tuple[str, str]:
        """Return ``(config, name)`` of the cloud config for the kubelet."""
        raise NotImplementedError

    def create(self, machine: Machine, userdata: str) -> Instance:
        """Create the remote instance for a machine.

        Args:
            machine: The machine to create.
            userdata: Rendered first-boot provisioning data.

        Returns:
            The created instance.
        """
        raise NotImplementedError

    def get(self, machine: Machine) -> Instance:
        """Find the remote instance belonging to a machine.

        Raises:
            InstanceNotFoundError: If no instance belongs to the machine.
        """
        raise NotImplementedError

    def cleanup(self, machine: Machine) -> bool:
        """Delete the remote instance.

        Returns:
            True once the instance is gone.
        """
        raise NotImplementedError

    def add_defaults(self, spec: MachineSpec) -> MachineSpec:
        return spec

    def migrate_uid(self, machine: Machine, new_uid: str) -> None:
        """Re-tag the remote instance after the machine's UID changed."""

    def machine_metrics_labels(self, machine: Machine) -> Dict[str, str]:
        return {}

    def set_metrics_for_machines(self, machines: Iterable[Machine]) -> None:
        """Publish provider-specific metrics for the given machines."""

    # ------------------------------------------------------------------
    # Two-phase identity lookup
    # ------------------------------------------------------------------

    def _candidate_ids(self, client: Any, name: str) -> List[Any]:
        """Return ids of remote instances named ``name``."""
        raise NotImplementedError

    def _confirm_identity(
        self, client: Any, candidate_id: Any, uid: str,
    ) -> Optional[Instance]:
        """Return the candidate if it carries ``uid``, else None."""
        raise NotImplementedError

    def lookup_instance(self, client: Any, name: str, uid: str) -> Instance:
        """Find the instance whose name and embedded UID both match.

        Narrows by name first (the bulk listing lacks the UID), then
        fetches each candidate to confirm the UID. The first confirmed
        candidate wins.

        Raises:
            InstanceNotFoundError: If no candidate carries the UID.
        """
        candidates = self._candidate_ids(client, name)
        logger.debug("%d candidate(s) named %s", len(candidates), name)

        for candidate_id in candidates:
            found = self._confirm_identity(client, candidate_id, uid)
            if found is not None:
                return found

        raise InstanceNotFoundError()
