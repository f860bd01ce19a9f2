"""Shared pytest fixtures for deploy-orchestrator tests."""

import io
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
from eth_abi import encode
from eth_utils import keccak, to_checksum_address
from rich.console import Console

from deploy_orchestrator.addresses import predict_contract_address
from deploy_orchestrator.artifacts import ArtifactStore
from deploy_orchestrator.chain import ChainClient
from deploy_orchestrator.checkpoint import CheckpointStore
from deploy_orchestrator.config import build_config
from deploy_orchestrator.exceptions import RpcError, TransactionRevertedError
from deploy_orchestrator.types import DeploymentConfig

DEPLOYER = to_checksum_address("0x6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0")
DEPLOYED_CODE = "0x6080604052"

TOKEN_ABI = [
    {
        "type": "constructor",
        "inputs": [
            {"name": "name_", "type": "string"},
            {"name": "supply", "type": "uint256"},
        ],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "totalSupply",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "setMinter",
        "inputs": [{"name": "minter", "type": "address"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]

SPLITTER_ABI = [
    {
        "type": "constructor",
        "inputs": [{"name": "token", "type": "address"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "token",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
    },
]

MINTER_ABI = [
    {
        "type": "function",
        "name": "owner",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
    },
]


class FakeChain(ChainClient):
    """In-memory chain: contract creations land at the nonce-derived address."""

    def __init__(self, accounts: Optional[List[str]] = None):
        self._accounts = accounts if accounts is not None else [DEPLOYER]
        self.nonces: Dict[str, int] = {}
        self.code: Dict[str, str] = {}
        self.balances: Dict[str, int] = {DEPLOYER: 10**18}
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self.call_results: Dict[Tuple[str, str], str] = {}
        self.sent: List[Dict[str, Any]] = []
        self.interactions: List[str] = []
        self.revert_creations = False
        self.fail_on_send = False

    def accounts(self) -> List[str]:
        self.interactions.append("accounts")
        return list(self._accounts)

    def get_transaction_count(self, address: str) -> int:
        self.interactions.append("get_transaction_count")
        return self.nonces.get(to_checksum_address(address), 0)

    def get_balance(self, address: str) -> int:
        self.interactions.append("get_balance")
        return self.balances.get(to_checksum_address(address), 0)

    def get_code(self, address: str) -> str:
        self.interactions.append("get_code")
        return self.code.get(to_checksum_address(address), "0x")

    def send_transaction(self, sender: str, data: str, to: Optional[str] = None, value: int = 0) -> str:
        self.interactions.append("send_transaction")
        if self.fail_on_send:
            raise RpcError("connection refused")

        sender = to_checksum_address(sender)
        nonce = self.nonces.get(sender, 0)
        self.nonces[sender] = nonce + 1
        tx_hash = "0x" + keccak(text=f"{sender}:{nonce}").hex()
        self.sent.append({"from": sender, "to": to, "data": data, "value": value, "hash": tx_hash})

        receipt: Dict[str, Any] = {"transactionHash": tx_hash, "status": "0x1", "contractAddress": None}
        if to is None:
            if self.revert_creations:
                receipt["status"] = "0x0"
            else:
                address = predict_contract_address(sender, nonce)
                self.code[address] = DEPLOYED_CODE
                receipt["contractAddress"] = address.lower()
        self.receipts[tx_hash] = receipt
        return tx_hash

    def wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        self.interactions.append("wait_for_receipt")
        receipt = self.receipts[tx_hash]
        if receipt["status"] == "0x0":
            raise TransactionRevertedError(f"Transaction {tx_hash} reverted", tx_hash=tx_hash)
        return receipt

    def call(self, to: str, data: str) -> str:
        self.interactions.append("call")
        return self.call_results.get((to_checksum_address(to), data), "0x" + encode(["uint256"], [0]).hex())

    def deploy_existing(self, address: str) -> None:
        """Pretend a contract already lives at `address`."""
        self.code[to_checksum_address(address)] = DEPLOYED_CODE


def write_artifact(artifacts_dir: Path, name: str, abi: List[Dict[str, Any]], with_build_info: bool = True) -> Path:
    """Write a hardhat-style artifact (and debug file pointing at build info)."""
    source_name = f"contracts/{name}.sol"
    contract_dir = artifacts_dir / source_name
    contract_dir.mkdir(parents=True, exist_ok=True)
    artifact_path = contract_dir / f"{name}.json"
    with open(artifact_path, "w") as f:
        json.dump(
            {
                "_format": "hh-sol-artifact-1",
                "contractName": name,
                "sourceName": source_name,
                "abi": abi,
                "bytecode": "0x60806040",
                "deployedBytecode": DEPLOYED_CODE,
                "linkReferences": {},
                "deployedLinkReferences": {},
            },
            f,
            indent=2,
        )

    if with_build_info:
        build_info_dir = artifacts_dir / "build-info"
        build_info_dir.mkdir(parents=True, exist_ok=True)
        with open(build_info_dir / f"{name.lower()}.json", "w") as f:
            json.dump(
                {
                    "_format": "hh-sol-build-info-1",
                    "solcVersion": "0.8.13",
                    "solcLongVersion": "0.8.13+commit.abaa5c0e",
                    "input": {"language": "Solidity", "sources": {source_name: {"content": "// src"}}},
                },
                f,
            )
        with open(contract_dir / f"{name}.dbg.json", "w") as f:
            json.dump(
                {"_format": "hh-sol-dbg-1", "buildInfo": f"../../build-info/{name.lower()}.json"},
                f,
            )
    return artifact_path


@pytest.fixture
def deployer() -> str:
    return DEPLOYER


@pytest.fixture
def fake_chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    """Artifacts directory with Token, Splitter and Minter compiled."""
    artifacts = tmp_path / "artifacts"
    write_artifact(artifacts, "Token", TOKEN_ABI)
    write_artifact(artifacts, "Splitter", SPLITTER_ABI)
    write_artifact(artifacts, "Minter", MINTER_ABI)
    return artifacts


@pytest.fixture
def artifact_store(artifacts_dir: Path) -> ArtifactStore:
    return ArtifactStore(artifacts_dir)


@pytest.fixture
def checkpoint_store(tmp_path: Path) -> CheckpointStore:
    return CheckpointStore(tmp_path / ".deploy-checkpoint.json")


@pytest.fixture
def deployments_dir(tmp_path: Path) -> Path:
    return tmp_path / "deployments"


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=200, force_terminal=False)


@pytest.fixture
def sample_config() -> DeploymentConfig:
    """Token <- Splitter, Minter independent; Splitter wires the token address."""

    def splitter_args(ctx):
        return [ctx.contracts["Token"].address]

    def after_splitter(ctx):
        ctx.context["splitter"] = ctx.contracts["Splitter"].address

    return build_config(
        contracts={
            "Token": {
                "constructor_arguments": lambda ctx: ["Revenue", 1000],
                "display_properties": ["totalSupply"],
            },
            "Splitter": {
                "depends_on": ["Token"],
                "constructor_arguments": splitter_args,
                "after_deploy": after_splitter,
            },
            "Minter": {"display_properties": ["owner", "missingAccessor"]},
        },
        deployer_address=lambda accounts: accounts[0] if accounts else None,
    )
