"""Configuration document loading for deploy-orchestrator."""

import importlib.util
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .constants import RESERVED_KEYS
from .exceptions import ConfigError, ConfigNotFoundError, NoContractsError
from .types import ContractSpec, DeploymentConfig

logger = logging.getLogger(__name__)

_CONTRACT_KEYS = {
    "depends_on",
    "constructor_arguments",
    "value",
    "display_properties",
    "after_deploy",
    "artifact",
}


def parse_contract_spec(name: str, data: Mapping[str, Any]) -> ContractSpec:
    """
    Build a ContractSpec from one entry of the `contracts` mapping.

    Args:
        name: Contract name (mapping key)
        data: Per-contract settings

    Returns:
        Immutable ContractSpec

    Raises:
        ConfigError: If the entry has unknown keys or wrongly typed values
    """
    if not isinstance(data, Mapping):
        raise ConfigError(f"Contract '{name}' must be configured with a mapping")

    unknown = set(data) - _CONTRACT_KEYS
    if unknown:
        raise ConfigError(f"Contract '{name}' has unknown settings: {', '.join(sorted(unknown))}")

    kwargs: Dict[str, Any] = {"name": name}

    depends_on = data.get("depends_on") or ()
    if isinstance(depends_on, str):
        depends_on = (depends_on,)
    kwargs["depends_on"] = tuple(depends_on)

    for hook_key in ("constructor_arguments", "after_deploy"):
        hook = data.get(hook_key)
        if hook is not None:
            if not callable(hook):
                raise ConfigError(f"Contract '{name}': {hook_key} must be callable")
            kwargs[hook_key] = hook

    value = data.get("value", 0) or 0
    if not isinstance(value, int) or value < 0:
        raise ConfigError(f"Contract '{name}': value must be a non-negative integer (wei)")
    kwargs["value"] = value

    display_properties = data.get("display_properties") or ()
    if isinstance(display_properties, str):
        display_properties = (display_properties,)
    kwargs["display_properties"] = tuple(display_properties)

    if data.get("artifact") is not None:
        kwargs["artifact"] = str(data["artifact"])

    return ContractSpec(**kwargs)


def build_config(
    contracts: Mapping[str, Mapping[str, Any]],
    deployer_address: Any,
    context: Optional[Dict[str, Any]] = None,
    source: Optional[str] = None,
) -> DeploymentConfig:
    """
    Validate raw settings and assemble a DeploymentConfig.

    Raises:
        NoContractsError: If no contracts are declared
        ConfigError: If any contract or the deployer resolver is invalid
    """
    if not contracts:
        raise NoContractsError("No contracts defined in the config")

    specs: Dict[str, ContractSpec] = {}
    for name, data in contracts.items():
        if name in RESERVED_KEYS:
            raise ConfigError(f"Contract name '{name}' is reserved")
        specs[name] = parse_contract_spec(name, data)

    for spec in specs.values():
        for dependency in spec.depends_on:
            if dependency not in specs:
                raise ConfigError(
                    f"Contract '{spec.name}' depends on '{dependency}', which is not declared"
                )

    if deployer_address is None or not callable(deployer_address):
        raise ConfigError("No deployer address resolver defined in the config")

    if context is None:
        context = {}
    if not isinstance(context, dict):
        raise ConfigError("Config context must be a dict")

    return DeploymentConfig(
        contracts=specs,
        deployer_address=deployer_address,
        context=context,
        source=source,
    )


def load_config(config_path: Union[Path, str]) -> DeploymentConfig:
    """
    Load a configuration document written as a Python module.

    The module defines `contracts`, `deployer_address` and optionally `context`.

    Args:
        config_path: Path to the config module

    Returns:
        Validated DeploymentConfig

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigError: If the module cannot be executed or is invalid
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigNotFoundError(f"Config file not found at {path}")

    module_spec = importlib.util.spec_from_file_location("_deploy_config", path)
    if module_spec is None or module_spec.loader is None:
        raise ConfigError(f"Cannot load config file {path}")

    module = importlib.util.module_from_spec(module_spec)
    try:
        module_spec.loader.exec_module(module)
    except Exception as e:
        raise ConfigError(f"Failed to execute config file {path}: {e}") from e

    logger.debug("Loaded config from %s", path)

    return build_config(
        contracts=getattr(module, "contracts", None) or {},
        deployer_address=getattr(module, "deployer_address", None),
        context=getattr(module, "context", None),
        source=str(path),
    )
