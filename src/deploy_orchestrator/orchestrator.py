"""Main API for deploy-orchestrator."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from eth_utils import from_wei, to_checksum_address
from rich.console import Console

from .artifacts import ArtifactStore
from .chain import ChainClient
from .checkpoint import CheckpointStore, checkpoint_addresses
from .constants import NETWORK_CONFIG, VERIFICATION_GRACE_PERIOD
from .exceptions import DeployerNotFoundError, VerificationError
from .executor import DeploymentExecutor
from .manifest import write_manifest
from .reconciler import Reconciler, check_known_contracts, check_lineage
from .resolver import resolve_order
from .types import ContinuationRef, DeployedContract, DeploymentConfig, VerificationResult
from .verification import Verifier, verify_all

logger = logging.getLogger(__name__)


def is_ephemeral(network: str) -> bool:
    """True for local networks that have no block explorer."""
    return bool(NETWORK_CONFIG.get(network, {}).get("ephemeral", False))


@dataclass
class RunResult:
    """Outcome of a successful deployment run."""

    order: List[str]
    deployer_address: str
    deployed: Dict[str, DeployedContract]
    manifest_path: Optional[Path] = None
    verification: Dict[str, VerificationResult] = field(default_factory=dict)


class Orchestrator:
    """
    Runs one ordered, resumable deployment.

    Pipeline: resolve order, reconcile against the checkpoint or a
    previous deployment, deploy what is left, write the manifest and
    drop the checkpoint, then verify on explorer-backed networks.
    """

    def __init__(
        self,
        config: DeploymentConfig,
        chain: ChainClient,
        artifacts: ArtifactStore,
        checkpoint: CheckpointStore,
        network: str,
        deployments_dir: Optional[Path] = None,
        save: bool = True,
        continuation: Optional[ContinuationRef] = None,
        previous_addresses: Optional[Mapping[str, str]] = None,
        verifier: Optional[Verifier] = None,
        grace_period: float = VERIFICATION_GRACE_PERIOD,
        confirm_resume: Optional[Callable[[Dict[str, Any]], bool]] = None,
        console: Optional[Console] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.config = config
        self.chain = chain
        self.artifacts = artifacts
        self.checkpoint = checkpoint
        self.network = network
        self.deployments_dir = deployments_dir
        self.save = save
        self.continuation = continuation
        self.previous_addresses = dict(previous_addresses or {})
        self.verifier = verifier
        self.grace_period = grace_period
        self.confirm_resume = confirm_resume or (lambda checkpoint: True)
        self.console = console or Console()
        self._sleep = sleep

    def _prepare(self) -> tuple[List[str], Optional[Dict[str, Any]]]:
        """
        Everything that must pass before the first chain call.

        Returns:
            Tuple of (deployment order, checkpoint being resumed or None)
        """
        order = resolve_order({name: spec.depends_on for name, spec in self.config.contracts.items()})

        for spec in self.config.contracts.values():
            self.artifacts.get(spec.artifact_name)

        checkpoint = self.checkpoint.read()
        if checkpoint is not None:
            if self.confirm_resume(checkpoint):
                self.console.print("Continuing progress from the previous attempt...")
            else:
                checkpoint = None

        check_lineage(checkpoint, self.continuation, self.network)

        if checkpoint is not None:
            check_known_contracts(checkpoint_addresses(checkpoint), self.config, "checkpoint")
        elif self.continuation is not None:
            check_known_contracts(self.previous_addresses, self.config, "previous deployment")

        return order, checkpoint

    def resolve_deployer(self) -> str:
        """
        Raises:
            DeployerNotFoundError: If the config resolver returns nothing
        """
        accounts = self.chain.accounts()
        deployer = self.config.deployer_address(accounts)
        if not deployer:
            raise DeployerNotFoundError("No deployer address defined in the config")
        return to_checksum_address(deployer)

    def run(self) -> RunResult:
        """
        Execute the deployment.

        Returns:
            RunResult with the registry, manifest path and verification results

        Raises:
            DeploymentError: On any fatal condition; the checkpoint is left in
                             place whenever deployment did not complete
        """
        order, checkpoint = self._prepare()

        self.console.print(f'Starting the deployment into the "{self.network}" network...')
        self.console.print()
        self.console.print("Deploying contracts in the following order:")
        for i, name in enumerate(order, start=1):
            self.console.print(f"{i}) {name}")
        self.console.print()

        deployer = self.resolve_deployer()
        nonce = self.chain.get_transaction_count(deployer)
        balance = from_wei(self.chain.get_balance(deployer), "ether")
        self.console.print(f"deployer account: {deployer}; nonce: {nonce}; balance: {balance} ETH")

        reconciler = Reconciler(self.chain, self.artifacts, self.config, self.console)

        if checkpoint is not None:
            reconciled = reconciler.reconcile(order, checkpoint)
            if checkpoint.get("network") is None:
                self.checkpoint.write({"network": self.network})
        else:
            initial: Dict[str, Any] = {"network": self.network}
            if self.continuation is not None:
                self.console.print()
                self.console.print(f"Continuing deployment from {self.continuation.identity}...")
                reconciled = reconciler.reconcile(order, None, self.previous_addresses)
                initial["continuationRef"] = self.continuation.identity
                initial.update({name: d.address for name, d in reconciled.bound.items()})
            else:
                reconciled = reconciler.reconcile(order, None)
            self.checkpoint.create(initial)

        logger.info("Resuming at %d of %d contracts", reconciled.resume_index, len(order))

        executor = DeploymentExecutor(
            self.chain, self.artifacts, self.config, self.checkpoint, deployer, self.console
        )
        deployed = executor.run(order, reconciled.resume_index, dict(reconciled.bound))

        result = RunResult(order=order, deployer_address=deployer, deployed=deployed)

        if self.save:
            result.manifest_path = write_manifest(
                self.deployments_dir or Path.cwd() / "deployments",
                self.network,
                deployer,
                self.checkpoint.read() or {},
                previous=self.continuation,
            )
            self.checkpoint.delete()

        if self.verifier is not None and not is_ephemeral(self.network):
            verify_kwargs: Dict[str, Any] = {
                "artifact_names": {n: s.artifact_name for n, s in self.config.contracts.items()},
                "grace_period": self.grace_period,
            }
            if self._sleep is not None:
                verify_kwargs["sleep"] = self._sleep
            try:
                result.verification = verify_all(self.verifier, deployed, self.artifacts, **verify_kwargs)
            except VerificationError as e:
                record = result.manifest_path or self.checkpoint.path
                raise VerificationError(f"{e}; deployment recorded in {record}", results=e.results) from e

        # Without a manifest the checkpoint is the only record until verification passes
        self.checkpoint.delete()

        self.console.print("Deployment routine finished successfully!")
        return result
