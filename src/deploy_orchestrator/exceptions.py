"""Custom exception classes for deploy-orchestrator."""

from typing import Any, Dict, List, Optional


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    pass


class ConfigError(DeploymentError, ValueError):
    """Raised when the configuration document is missing or invalid."""

    pass


class ConfigNotFoundError(ConfigError, FileNotFoundError):
    """Raised when the configuration document does not exist."""

    pass


class NoContractsError(ConfigError):
    """Raised when the configuration declares no contracts."""

    pass


class CyclicDependencyError(ConfigError):
    """Raised when contract dependencies cannot be linearly ordered."""

    def __init__(self, message: str, cycle: Optional[List[str]] = None):
        super().__init__(message)
        self.cycle = cycle or []


class DeployerNotFoundError(ConfigError):
    """Raised when the configuration resolves no deployer address."""

    pass


class ContinuationMismatchError(DeploymentError, ValueError):
    """Raised when the checkpoint and the invocation disagree on the previous deployment."""

    pass


class CheckpointMismatchError(DeploymentError, ValueError):
    """Raised when a checkpoint was recorded against a different network."""

    pass


class UnknownContractError(DeploymentError, ValueError):
    """Raised when a checkpoint or continuation names a contract the config does not declare."""

    pass


class ArtifactNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when no compiled artifact exists for a configured contract."""

    pass


class RpcError(DeploymentError, RuntimeError):
    """Raised when a JSON-RPC request fails or returns an error."""

    pass


class TransactionRevertedError(DeploymentError, RuntimeError):
    """Raised when a submitted transaction is mined with a failure status."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class ConfirmationTimeoutError(DeploymentError, TimeoutError):
    """Raised when a transaction receipt is not observed in time."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class HookError(DeploymentError, RuntimeError):
    """Raised when an after-deploy hook fails."""

    pass


class VerificationError(DeploymentError, RuntimeError):
    """Raised when one or more explorer verifications fail."""

    def __init__(self, message: str, results: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.results = results or {}
