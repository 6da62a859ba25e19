"""
Machine manifests — load Machine resources from YAML files.

Searches the manifest home (``~/.nebula-machine/machines``) when given a
bare name, otherwise reads the path as given.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import ValidationError

from ..errors import ManifestError
from .schema import Machine

logger = logging.getLogger(__name__)


def _resolve_path(ref: str, home: Optional[Path]) -> Path:
    path = Path(ref).expanduser()
    if path.exists() or home is None:
        return path
    for suffix in ("", ".yaml", ".yml"):
        candidate = home / "machines" / f"{ref}{suffix}"
        if candidate.exists():
            return candidate
    return path


def load_machine(ref: str, home: Optional[Path] = None) -> Machine:
    """Load and validate a single machine manifest.

    Args:
        ref: Path to a YAML file, or a manifest name under ``home``.
        home: Manifest home directory.

    Returns:
        The validated Machine.

    Raises:
        ManifestError: If the file is missing, not YAML, or not a Machine.
    """
    path = _resolve_path(ref, home)
    if not path.is_file():
        raise ManifestError(f"manifest not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ManifestError(f"{path}: invalid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestError(f"{path}: expected a mapping at the top level")

    try:
        machine = Machine.model_validate(data)
    except ValidationError as exc:
        raise ManifestError(f"{path}: {exc}") from exc

    logger.debug("Loaded machine %s from %s", machine.metadata.name, path)
    return machine


def list_manifests(home: Path) -> List[Path]:
    """Return the manifest files stored under ``home/machines``."""
    machines_dir = home / "machines"
    if not machines_dir.is_dir():
        return []
    return sorted(
        p for p in machines_dir.iterdir() if p.suffix in (".yaml", ".yml")
    )
