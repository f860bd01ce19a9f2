"""Checkpoint persistence for deploy-orchestrator."""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .constants import CHECKPOINT_KEYS
from .exceptions import DeploymentError

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current UTC time as Unix milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def _write_json_atomic(path: Path, data: Mapping[str, Any]) -> None:
    """Write JSON so that readers see either the old or the new document, never a torn one."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class CheckpointStore:
    """
    Durable record of one in-flight deployment run.

    The document holds `startedAt`, optionally `network` and
    `continuationRef`, and one `{contract name: address}` entry per
    contract whose address has been predicted or bound.
    """

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def create(self, initial: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Start a new checkpoint, replacing any existing one.

        Args:
            initial: Extra fields for the new document

        Returns:
            The document as written
        """
        data: Dict[str, Any] = {"startedAt": now_ms()}
        if initial:
            data.update(initial)
        _write_json_atomic(self.path, data)
        logger.debug("Created checkpoint at %s", self.path)
        return data

    def read(self) -> Optional[Dict[str, Any]]:
        """
        Load the checkpoint document.

        Returns:
            The document, or None if no run is in flight

        Raises:
            DeploymentError: If the file exists but is not a JSON object
        """
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            raise DeploymentError(f"Checkpoint file {self.path} is corrupted: {e}") from e

        if not isinstance(data, dict):
            raise DeploymentError(f"Checkpoint file {self.path} is not a JSON object")
        return data

    def write(self, patch: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Merge `patch` into the stored document and persist it before returning.

        Returns:
            The merged document
        """
        data = self.read()
        if data is None:
            data = {"startedAt": now_ms()}
        data.update(patch)
        _write_json_atomic(self.path, data)
        return data

    def delete(self) -> None:
        try:
            self.path.unlink()
            logger.debug("Deleted checkpoint at %s", self.path)
        except FileNotFoundError:
            pass


def checkpoint_addresses(data: Mapping[str, Any]) -> Dict[str, str]:
    """Return only the contract-name -> address entries of a checkpoint document."""
    return {k: v for k, v in data.items() if k not in CHECKPOINT_KEYS}
