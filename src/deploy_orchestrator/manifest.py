"""Deployment manifest files for deploy-orchestrator."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .checkpoint import checkpoint_addresses, now_ms
from .constants import MANIFEST_KEYS
from .exceptions import ConfigError, ConfigNotFoundError
from .paths import get_manifest_path
from .types import ContinuationRef

logger = logging.getLogger(__name__)


def build_manifest(
    network: str,
    deployer_address: str,
    checkpoint: Mapping[str, Any],
    completed_at: int,
    previous: Optional[ContinuationRef] = None,
) -> Dict[str, Any]:
    """
    Assemble the manifest document for a completed run.

    Args:
        network: Network name
        deployer_address: Deployer account
        checkpoint: Final checkpoint document (source of the address map)
        completed_at: Completion timestamp in milliseconds
        previous: Deployment this run extended, if any

    Returns:
        Manifest dictionary
    """
    manifest: Dict[str, Any] = {
        "network": network,
        "deployerAddress": deployer_address,
        "startedAt": checkpoint.get("startedAt"),
        "completedAt": completed_at,
    }
    manifest.update(checkpoint_addresses(checkpoint))
    if previous is not None:
        manifest["previous"] = previous.to_dict()
    return manifest


def write_manifest(
    deployments_dir: Union[Path, str],
    network: str,
    deployer_address: str,
    checkpoint: Mapping[str, Any],
    previous: Optional[ContinuationRef] = None,
    completed_at: Optional[int] = None,
) -> Path:
    """
    Write the manifest under `deployments_dir`, never overwriting an existing one.

    Creates the directory if it doesn't exist. If the timestamped name is
    taken, the timestamp is bumped until a free name is found.

    Returns:
        Path of the written manifest
    """
    deployments_dir = Path(deployments_dir)
    deployments_dir.mkdir(parents=True, exist_ok=True)

    if completed_at is None:
        completed_at = now_ms()

    while True:
        path = get_manifest_path(deployments_dir, network, completed_at)
        manifest = build_manifest(network, deployer_address, checkpoint, completed_at, previous)
        try:
            with open(path, "x") as f:
                json.dump(manifest, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
        except FileExistsError:
            completed_at += 1
            continue
        break

    logger.info("Wrote deployment manifest %s", path)
    return path


def manifest_addresses(manifest: Mapping[str, Any]) -> Dict[str, str]:
    """Return only the contract-name -> address entries of a manifest document."""
    return {k: v for k, v in manifest.items() if k not in MANIFEST_KEYS}


def load_continuation(path: Union[Path, str]) -> tuple[ContinuationRef, Dict[str, str]]:
    """
    Load a previous manifest to continue from.

    Args:
        path: Path to a manifest JSON file

    Returns:
        Tuple of (reference to the manifest, its contract address map)

    Raises:
        ConfigNotFoundError: If the file doesn't exist
        ConfigError: If the file is not a manifest
    """
    path = Path(path)
    if not path.exists():
        raise ConfigNotFoundError(f"Previous deployment file not found at {path}")

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Previous deployment file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict) or "network" not in data or "completedAt" not in data:
        raise ConfigError(f"Previous deployment file {path} is missing network or completedAt")

    completed_at = data["completedAt"]
    if isinstance(completed_at, bool) or not isinstance(completed_at, int):
        raise ConfigError(f"Previous deployment file {path} has a non-integer completedAt: {completed_at!r}")
    if not isinstance(data["network"], str):
        raise ConfigError(f"Previous deployment file {path} has an invalid network: {data['network']!r}")

    ref = ContinuationRef(network=data["network"], completed_at=completed_at)
    return ref, manifest_addresses(data)
