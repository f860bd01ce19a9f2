"""
deploy-orchestrator: ordered, resumable smart contract deployments
"""

from importlib.metadata import PackageNotFoundError, version

from .addresses import predict_contract_address
from .artifacts import ArtifactStore, ContractArtifact
from .chain import ChainClient, ContractHandle, JsonRpcChainClient
from .checkpoint import CheckpointStore
from .config import build_config, load_config
from .exceptions import (
    ArtifactNotFoundError,
    CheckpointMismatchError,
    ConfigError,
    ConfigNotFoundError,
    ConfirmationTimeoutError,
    ContinuationMismatchError,
    CyclicDependencyError,
    DeployerNotFoundError,
    DeploymentError,
    HookError,
    NoContractsError,
    RpcError,
    TransactionRevertedError,
    UnknownContractError,
    VerificationError,
)
from .manifest import load_continuation, write_manifest
from .orchestrator import Orchestrator, RunResult
from .resolver import resolve_order
from .types import (
    BuildContext,
    ContinuationRef,
    ContractSpec,
    DeployedContract,
    DeploymentConfig,
    VerificationResult,
)
from .verification import EtherscanVerifier, Verifier, verify_all

try:
    __version__ = version("deploy-orchestrator")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "Orchestrator",
    "RunResult",
    "load_config",
    "build_config",
    "resolve_order",
    "predict_contract_address",
    "CheckpointStore",
    "ArtifactStore",
    "ContractArtifact",
    "ChainClient",
    "JsonRpcChainClient",
    "ContractHandle",
    "Verifier",
    "EtherscanVerifier",
    "verify_all",
    "write_manifest",
    "load_continuation",
    "BuildContext",
    "ContractSpec",
    "DeploymentConfig",
    "ContinuationRef",
    "DeployedContract",
    "VerificationResult",
    "DeploymentError",
    "ConfigError",
    "ConfigNotFoundError",
    "NoContractsError",
    "CyclicDependencyError",
    "DeployerNotFoundError",
    "ContinuationMismatchError",
    "CheckpointMismatchError",
    "UnknownContractError",
    "ArtifactNotFoundError",
    "RpcError",
    "TransactionRevertedError",
    "ConfirmationTimeoutError",
    "HookError",
    "VerificationError",
]
