"""Path management utilities for deploy-orchestrator."""

from pathlib import Path
from typing import Optional, Union


def get_default_root() -> Path:
    """
    Get default project root (current working directory).

    Returns:
        Path to the directory the command runs in
    """
    return Path.cwd()


def get_default_paths(root: Optional[Union[Path, str]] = None) -> dict[str, Path]:
    """
    Get default file locations used by a deployment run.

    Args:
        root: Custom project root (defaults to the working directory)

    Returns:
        Dictionary with config, checkpoint, artifacts and deployments paths
    """
    if root is None:
        root = get_default_root()
    else:
        root = Path(root).absolute()

    return {
        "config": root / "deploy_config.py",
        "checkpoint": root / ".deploy-checkpoint.json",
        "artifacts": root / "artifacts",
        "deployments": root / "deployments",
    }


def get_manifest_path(deployments_dir: Union[Path, str], network: str, completed_at: int) -> Path:
    """
    Get the manifest path for a completed run.

    Args:
        deployments_dir: Directory holding deployment manifests
        network: Network name
        completed_at: Completion timestamp in milliseconds

    Returns:
        Path to {network}-{completed_at}.json inside deployments_dir
    """
    return Path(deployments_dir) / f"{network}-{completed_at}.json"
