"""CLI entry point for deploy-orchestrator.

Invoked as::

    deploy-orchestrator [OPTIONS]

or, during development::

    python -m deploy_orchestrator.cli
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .artifacts import ArtifactStore
from .chain import JsonRpcChainClient
from .checkpoint import CheckpointStore, now_ms
from .config import load_config
from .constants import DEPLOYER_PRIVATE_KEY_ENV, EXPLORER_API_KEY_ENV, NETWORK_CONFIG
from .exceptions import ConfigError, DeploymentError
from .manifest import load_continuation
from .orchestrator import Orchestrator, is_ephemeral
from .paths import get_default_paths
from .verification import EtherscanVerifier

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

_DEFAULTS = get_default_paths()


def format_ago(started_at_ms: int, now: Optional[int] = None) -> str:
    """Render how long ago a millisecond timestamp was, e.g. "5 minutes ago"."""
    if now is None:
        now = now_ms()
    seconds = max(0, (now - started_at_ms) // 1000)
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def resolve_rpc_url(network: str, rpc_url: Optional[str]) -> str:
    """
    Pick the RPC endpoint: explicit option, then the network's environment
    variable, then the network's built-in default.

    Raises:
        ConfigError: If no endpoint is known for the network
    """
    if rpc_url:
        return rpc_url
    network_config: Dict[str, Any] = NETWORK_CONFIG.get(network, {})
    env_name = network_config.get("default_rpc_env")
    if env_name and os.environ.get(env_name):
        return os.environ[env_name]
    if network_config.get("default_rpc_url"):
        return network_config["default_rpc_url"]
    raise ConfigError(
        f"RPC URL required for network '{network}': pass --rpc-url"
        + (f" or set ${env_name}" if env_name else "")
    )


def build_verifier(network: str, explorer_api_url: Optional[str]) -> Optional[EtherscanVerifier]:
    if is_ephemeral(network):
        return None
    api_url = explorer_api_url or NETWORK_CONFIG.get(network, {}).get("explorer_api_url")
    api_key = os.environ.get(EXPLORER_API_KEY_ENV)
    if not api_url or not api_key:
        logger.warning(
            "Explorer verification disabled for %s: set $%s%s",
            network,
            EXPLORER_API_KEY_ENV,
            "" if api_url else " and pass --explorer-api-url",
        )
        return None
    return EtherscanVerifier(api_url, api_key)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-c", "--config", "config_path", type=click.Path(path_type=Path), default=_DEFAULTS["config"], show_default=True, help="Config file path.")
@click.option("-t", "--checkpoint", "checkpoint_path", type=click.Path(path_type=Path), default=_DEFAULTS["checkpoint"], show_default=True, help="Checkpoint file path.")
@click.option("-d", "--deployments", "deployments_dir", type=click.Path(path_type=Path), default=_DEFAULTS["deployments"], show_default=True, help="Deployments folder path.")
@click.option("-a", "--artifacts", "artifacts_dir", type=click.Path(path_type=Path), default=_DEFAULTS["artifacts"], show_default=True, help="Compiled artifacts folder path.")
@click.option("-n", "--network", default="localhost", show_default=True, help="Network to deploy into (e.g. localhost, sepolia).")
@click.option("--rpc-url", default=None, help="RPC endpoint (defaults to the network's environment variable).")
@click.option("--explorer-api-url", default=None, help="Etherscan-compatible API for networks not in the built-in table.")
@click.option("--save/--no-save", default=True, show_default=True, help="Save the deployment file after success.")
@click.option("-p", "--continue-from", "continue_path", type=click.Path(path_type=Path), default=None, help="Deployment file path to continue from.")
@click.option("-y", "--yes", is_flag=True, help="Resume an interrupted run without asking.")
@click.option("--fresh", is_flag=True, help="Discard an interrupted run without asking.")
@click.option("--grace-period", type=float, default=None, help="Seconds to wait before explorer verification.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(
    config_path: Path,
    checkpoint_path: Path,
    deployments_dir: Path,
    artifacts_dir: Path,
    network: str,
    rpc_url: Optional[str],
    explorer_api_url: Optional[str],
    save: bool,
    continue_path: Optional[Path],
    yes: bool,
    fresh: bool,
    grace_period: Optional[float],
    verbose: bool,
) -> None:
    """Deploys smart contracts to an Ethereum network, resuming interrupted runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )

    if yes and fresh:
        raise click.UsageError("--yes and --fresh are mutually exclusive")

    def confirm_resume(checkpoint: Dict[str, Any]) -> bool:
        if yes:
            return True
        if fresh:
            return False
        console.print()
        return click.confirm(
            "It appears that the last deployment routine execution "
            f"{format_ago(checkpoint.get('startedAt', now_ms()))} was interrupted. "
            "Do you wish to continue it?",
            default=True,
        )

    try:
        config = load_config(config_path)

        continuation = None
        previous_addresses = None
        if continue_path is not None:
            continuation, previous_addresses = load_continuation(continue_path)

        chain = JsonRpcChainClient(
            resolve_rpc_url(network, rpc_url),
            private_key=os.environ.get(DEPLOYER_PRIVATE_KEY_ENV) or None,
        )

        kwargs: Dict[str, Any] = {}
        if grace_period is not None:
            kwargs["grace_period"] = grace_period

        orchestrator = Orchestrator(
            config=config,
            chain=chain,
            artifacts=ArtifactStore(artifacts_dir),
            checkpoint=CheckpointStore(checkpoint_path),
            network=network,
            deployments_dir=deployments_dir,
            save=save,
            continuation=continuation,
            previous_addresses=previous_addresses,
            verifier=build_verifier(network, explorer_api_url),
            confirm_resume=confirm_resume,
            console=console,
            **kwargs,
        )
        result = orchestrator.run()
    except DeploymentError as e:
        err_console.print(f"[bold red]ERROR:[/bold red] {escape(str(e))}", highlight=False)
        sys.exit(1)

    if result.manifest_path is not None:
        console.print(f"Deployment file written to {result.manifest_path}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
