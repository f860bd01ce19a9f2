"""Compiled contract artifact loading for deploy-orchestrator."""

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from eth_abi import encode

from .exceptions import ArtifactNotFoundError, ConfigError


class ArtifactFormat(Enum):
    """
    Compiler output formats understood by ArtifactStore.

    Value strings are the `_format` markers written by the toolchain.
    """

    HARDHAT = "hh-sol-artifact-1"
    HARDHAT_DEBUG = "hh-sol-dbg-1"


def abi_type(param: Dict[str, Any]) -> str:
    """
    Canonical type string of an ABI parameter, expanding tuples.

    Args:
        param: ABI input/output entry

    Returns:
        Type string usable by eth_abi and in function signatures,
        e.g. "(address,uint256)[]"
    """
    type_str: str = param["type"]
    if type_str.startswith("tuple"):
        components = ",".join(abi_type(c) for c in param.get("components", []))
        return f"({components}){type_str[len('tuple'):]}"
    return type_str


@dataclass
class ContractArtifact:
    """Compiled contract: ABI, creation bytecode and where its build info lives."""

    name: str
    abi: List[Dict[str, Any]]
    bytecode: str  # Creation bytecode, 0x-prefixed
    source_name: Optional[str] = None  # e.g., "contracts/Token.sol"
    build_info_path: Optional[Path] = None

    @property
    def fully_qualified_name(self) -> str:
        if self.source_name:
            return f"{self.source_name}:{self.name}"
        return self.name

    def constructor_inputs(self) -> List[Dict[str, Any]]:
        for item in self.abi:
            if item.get("type") == "constructor":
                return item.get("inputs", [])
        return []

    def encode_constructor_args(self, args: Sequence[Any]) -> str:
        """
        ABI-encode constructor arguments.

        Returns:
            Hex string without 0x prefix (empty when there are no arguments)

        Raises:
            ValueError: If the argument count does not match the constructor
        """
        inputs = self.constructor_inputs()
        if len(args) != len(inputs):
            raise ValueError(
                f"{self.name} constructor takes {len(inputs)} arguments, got {len(args)}"
            )
        if not inputs:
            return ""
        return encode([abi_type(i) for i in inputs], list(args)).hex()

    def deployment_data(self, args: Sequence[Any]) -> str:
        """Creation transaction payload: bytecode followed by encoded arguments."""
        if "__$" in self.bytecode:
            raise ValueError(f"{self.name} has unlinked libraries; link before deploying")
        return self.bytecode + self.encode_constructor_args(args)

    def load_build_info(self) -> Dict[str, Any]:
        """
        Load the compiler build info (solc version and standard JSON input).

        Raises:
            ArtifactNotFoundError: If the artifact has no build info
            ConfigError: If the build info is not valid JSON
        """
        if self.build_info_path is None or not self.build_info_path.exists():
            raise ArtifactNotFoundError(f"No build info found for {self.name}")
        try:
            with open(self.build_info_path) as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Build info file {self.build_info_path} is not valid JSON: {e}") from e


def parse_hardhat_artifact(file_path: Path) -> ContractArtifact:
    """
    Parse a hardhat artifact JSON file.

    The sibling `{Name}.dbg.json` file, if present, points at the build info.

    Args:
        file_path: Path to artifacts/<source>/<Name>.json

    Returns:
        ContractArtifact

    Raises:
        ConfigError: If the file is not valid JSON or required fields are missing
    """
    try:
        with open(file_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Artifact file {file_path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Artifact file {file_path} is not a JSON object")

    artifact_format = data.get("_format", ArtifactFormat.HARDHAT.value)
    if artifact_format != ArtifactFormat.HARDHAT.value:
        raise ConfigError(f"Unsupported artifact format '{artifact_format}' in {file_path}")

    if "abi" not in data or "bytecode" not in data:
        raise ConfigError(f"Artifact file {file_path} is missing abi or bytecode")

    bytecode = data["bytecode"] or "0x"
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode

    build_info_path = None
    dbg_file = file_path.with_name(f"{file_path.stem}.dbg.json")
    if dbg_file.exists():
        try:
            with open(dbg_file) as f:
                dbg = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Debug file {dbg_file} is not valid JSON: {e}") from e
        if isinstance(dbg, dict) and dbg.get("_format") == ArtifactFormat.HARDHAT_DEBUG.value and "buildInfo" in dbg:
            build_info_path = (dbg_file.parent / dbg["buildInfo"]).resolve()

    return ContractArtifact(
        name=data.get("contractName", file_path.stem),
        abi=data["abi"],
        bytecode=bytecode,
        source_name=data.get("sourceName"),
        build_info_path=build_info_path,
    )


class ArtifactStore:
    """Looks up compiled artifacts by contract name under an artifacts directory."""

    def __init__(self, artifacts_dir: Union[Path, str]):
        self.artifacts_dir = Path(artifacts_dir)
        self._cache: Dict[str, ContractArtifact] = {}

    def _candidates(self, name: str) -> List[Path]:
        source_name = None
        if ":" in name:
            source_name, name = name.rsplit(":", 1)

        found = []
        for path in sorted(self.artifacts_dir.rglob(f"{name}.json")):
            if "build-info" in path.parts:
                continue
            if source_name and not path.parent.as_posix().endswith(source_name):
                continue
            found.append(path)
        return found

    def get(self, name: str) -> ContractArtifact:
        """
        Get the artifact for a contract name.

        Accepts plain names ("Token") or fully qualified names
        ("contracts/Token.sol:Token").

        Raises:
            ArtifactNotFoundError: If no artifact matches
            ConfigError: If more than one artifact matches a plain name
        """
        if name in self._cache:
            return self._cache[name]

        if not self.artifacts_dir.exists():
            raise ArtifactNotFoundError(f"Artifacts directory not found at {self.artifacts_dir}")

        candidates = self._candidates(name)
        if not candidates:
            raise ArtifactNotFoundError(f"No compiled artifact found for '{name}'")
        if len(candidates) > 1:
            raise ConfigError(
                f"Artifact name '{name}' is ambiguous; use a fully qualified name: "
                + ", ".join(str(p.relative_to(self.artifacts_dir)) for p in candidates)
            )

        artifact = parse_hardhat_artifact(candidates[0])
        self._cache[name] = artifact
        return artifact
