"""Reconciliation of planned deployments against the chain."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from rich.console import Console

from .addresses import has_code
from .artifacts import ArtifactStore
from .chain import ChainClient, ContractHandle
from .checkpoint import checkpoint_addresses
from .display import show_contract
from .exceptions import CheckpointMismatchError, ContinuationMismatchError, UnknownContractError
from .types import ContinuationRef, DeployedContract, DeploymentConfig

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Where deployment resumes and what was bound on the way there."""

    resume_index: int
    bound: Dict[str, DeployedContract] = field(default_factory=dict)


def check_lineage(
    checkpoint: Optional[Mapping[str, Any]],
    continuation: Optional[ContinuationRef],
    network: str,
) -> None:
    """
    Ensure a resumed checkpoint belongs to the same network and previous deployment.

    Must run before any chain interaction.

    Raises:
        ContinuationMismatchError: If the checkpoint and invocation disagree on the
                                   previous deployment (either side missing, or different)
        CheckpointMismatchError: If the checkpoint was recorded on another network
    """
    if checkpoint is None:
        return

    recorded_network = checkpoint.get("network")
    if recorded_network is not None and recorded_network != network:
        raise CheckpointMismatchError(
            f"Last deployment routine ran on network '{recorded_network}' "
            f"but now trying to run on '{network}'"
        )

    recorded = checkpoint.get("continuationRef")
    current = continuation.identity if continuation is not None else None

    if recorded and current is None:
        raise ContinuationMismatchError(
            f"Last deployment routine used previous deployment {recorded} "
            "but now trying to run without a previous deployment. "
            "Please provide the correct previous deployment to be able to continue"
        )
    if current and not recorded:
        raise ContinuationMismatchError(
            "Last deployment routine did not use a previous deployment "
            f"but now trying to run with previous deployment {current}. "
            "Please do not use the previous deployment to be able to continue"
        )
    if recorded != current:
        raise ContinuationMismatchError(
            f"Last deployment routine used previous deployment {recorded} "
            f"but now trying to run with previous deployment {current}. "
            "Please provide the correct previous deployment to be able to continue"
        )


def check_known_contracts(addresses: Mapping[str, str], config: DeploymentConfig, source: str) -> None:
    """
    Raises:
        UnknownContractError: If `addresses` names a contract the config does not declare
    """
    unknown = [name for name in addresses if name not in config.contracts]
    if unknown:
        raise UnknownContractError(
            f"Contract(s) {', '.join(unknown)} exist on {source} file but not on config file"
        )


class Reconciler:
    """Finds the prefix of the deployment order that is already live on-chain."""

    def __init__(
        self,
        chain: ChainClient,
        artifacts: ArtifactStore,
        config: DeploymentConfig,
        console: Console,
    ):
        self.chain = chain
        self.artifacts = artifacts
        self.config = config
        self.console = console

    def bind_prefix(
        self,
        order: List[str],
        addresses: Mapping[str, str],
        start: int = 0,
    ) -> ReconcileResult:
        """
        Walk `order` from `start`, binding each contract whose recorded address holds code.

        Stops at the first contract that is unrecorded or has no code; that
        index is where deployment resumes. A recorded address is never trusted
        without observing code there.
        """
        result = ReconcileResult(resume_index=start)

        for index in range(start, len(order)):
            name = order[index]
            address = addresses.get(name)
            if not address or not has_code(self.chain.get_code(address)):
                if address:
                    logger.info("No code at recorded address %s for %s; it will be redeployed", address, name)
                break

            spec = self.config.contracts[name]
            artifact = self.artifacts.get(spec.artifact_name)
            handle = ContractHandle(name, address, artifact.abi, self.chain)
            result.bound[name] = DeployedContract(name=name, handle=handle, bound=True)

            self.console.print()
            show_contract(self.console, name, handle, spec.display_properties, already_deployed=True)
            result.resume_index = index + 1

        return result

    def reconcile(
        self,
        order: List[str],
        checkpoint: Optional[Mapping[str, Any]],
        previous_addresses: Optional[Mapping[str, str]] = None,
    ) -> ReconcileResult:
        """
        Determine the resume index for this run.

        Args:
            order: Resolved deployment order
            checkpoint: Checkpoint document being resumed, or None for a fresh run
            previous_addresses: Address map of the deployment being continued, if any

        Returns:
            ReconcileResult with resume index and bound contracts
        """
        if checkpoint is not None:
            addresses = checkpoint_addresses(checkpoint)
            check_known_contracts(addresses, self.config, "checkpoint")
            return self.bind_prefix(order, addresses)

        if previous_addresses is not None:
            check_known_contracts(previous_addresses, self.config, "previous deployment")
            return self.bind_prefix(order, previous_addresses)

        return ReconcileResult(resume_index=0)
