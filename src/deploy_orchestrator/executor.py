"""Sequential contract deployment for deploy-orchestrator."""

import logging
from typing import Dict, List

from eth_utils import to_checksum_address
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

from .addresses import predict_contract_address
from .artifacts import ArtifactStore
from .chain import ChainClient, ContractHandle
from .checkpoint import CheckpointStore
from .display import show_contract
from .exceptions import DeploymentError, HookError, TransactionRevertedError
from .types import BuildContext, DeployedContract, DeploymentConfig

logger = logging.getLogger(__name__)


class DeploymentExecutor:
    """
    Deploys contracts one at a time from the deployer account.

    For each contract the predicted address is persisted to the checkpoint
    before the creation transaction is submitted, so an interrupted run can
    be reconciled later.
    """

    def __init__(
        self,
        chain: ChainClient,
        artifacts: ArtifactStore,
        config: DeploymentConfig,
        checkpoint: CheckpointStore,
        deployer_address: str,
        console: Console,
    ):
        self.chain = chain
        self.artifacts = artifacts
        self.config = config
        self.checkpoint = checkpoint
        self.deployer_address = deployer_address
        self.console = console

    def build_context(self, registry: Dict[str, DeployedContract]) -> BuildContext:
        return BuildContext(
            chain=self.chain,
            deployer_address=self.deployer_address,
            contracts={name: deployed.handle for name, deployed in registry.items()},
            context=self.config.context,
        )

    def deploy_one(self, name: str, registry: Dict[str, DeployedContract]) -> DeployedContract:
        """
        Deploy a single contract and add it to `registry`.

        Raises:
            DeploymentError: If arguments cannot be built or encoded
            RpcError: On chain I/O failure
            TransactionRevertedError: If the creation transaction fails
            ConfirmationTimeoutError: If the creation is not confirmed in time
            HookError: If the after-deploy hook fails
        """
        spec = self.config.contracts[name]
        artifact = self.artifacts.get(spec.artifact_name)

        nonce = self.chain.get_transaction_count(self.deployer_address)
        expected_address = predict_contract_address(self.deployer_address, nonce)
        self.console.print(f"Deploying {name} to {expected_address}")
        self.checkpoint.write({name: expected_address})

        try:
            constructor_args = list(spec.constructor_arguments(self.build_context(registry)))
            data = artifact.deployment_data(constructor_args)
        except Exception as e:
            raise DeploymentError(f"Cannot build constructor arguments for {name}: {e}") from e

        tx_hash = self.chain.send_transaction(self.deployer_address, data, value=spec.value)
        logger.debug("%s creation sent in %s", name, tx_hash)
        receipt = self.chain.wait_for_receipt(tx_hash)

        if not receipt.get("contractAddress"):
            raise TransactionRevertedError(f"Creation of {name} produced no contract", tx_hash=tx_hash)

        address = to_checksum_address(receipt["contractAddress"])
        if address != expected_address:
            logger.warning(
                "%s deployed at %s instead of predicted %s; was another transaction sent from %s?",
                name,
                address,
                expected_address,
                self.deployer_address,
            )
            self.checkpoint.write({name: address})

        handle = ContractHandle(name, address, artifact.abi, self.chain)
        deployed = DeployedContract(name=name, handle=handle, constructor_args=constructor_args)
        registry[name] = deployed

        logger.debug("%s constructor arguments: %s", name, constructor_args)
        show_contract(self.console, name, handle, spec.display_properties)

        if spec.after_deploy is not None:
            try:
                spec.after_deploy(self.build_context(registry))
            except Exception as e:
                raise HookError(f"after_deploy hook for {name} failed: {e}") from e

        return deployed

    def run(
        self,
        order: List[str],
        start: int,
        registry: Dict[str, DeployedContract],
    ) -> Dict[str, DeployedContract]:
        """
        Deploy `order[start:]` strictly in sequence.

        Args:
            order: Resolved deployment order
            start: Index of the first contract to deploy
            registry: Contracts already bound or deployed (updated in place)

        Returns:
            The registry
        """
        with Progress(
            TextColumn("PROGRESS"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("Contracts"),
            console=self.console,
        ) as progress:
            task = progress.add_task("deploy", total=len(order), completed=start)
            for name in order[start:]:
                self.console.print()
                self.deploy_one(name, registry)
                progress.advance(task)

        return registry
