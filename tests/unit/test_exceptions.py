"""Unit tests for custom exception classes."""

import pytest

from deploy_orchestrator.exceptions import (
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


class TestExceptionCatching:
    """Test that exceptions can be caught as their base types."""

    def test_catch_config_not_found_as_file_not_found_error(self):
        """Test that ConfigNotFoundError can be caught as FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            raise ConfigNotFoundError("test")

    def test_catch_config_not_found_as_config_error(self):
        """Test that ConfigNotFoundError can be caught as ConfigError."""
        with pytest.raises(ConfigError):
            raise ConfigNotFoundError("test")

    def test_catch_cyclic_dependency_as_value_error(self):
        """Test that CyclicDependencyError can be caught as ValueError."""
        with pytest.raises(ValueError):
            raise CyclicDependencyError("test")

    def test_catch_artifact_not_found_as_file_not_found_error(self):
        """Test that ArtifactNotFoundError can be caught as FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            raise ArtifactNotFoundError("test")

    def test_catch_confirmation_timeout_as_timeout_error(self):
        """Test that ConfirmationTimeoutError can be caught as TimeoutError."""
        with pytest.raises(TimeoutError):
            raise ConfirmationTimeoutError("test")

    def test_catch_rpc_error_as_runtime_error(self):
        """Test that RpcError can be caught as RuntimeError."""
        with pytest.raises(RuntimeError):
            raise RpcError("test")

    def test_catch_all_as_deployment_error(self):
        """Test that all custom exceptions can be caught as DeploymentError."""
        exceptions = [
            ConfigError("test"),
            ConfigNotFoundError("test"),
            NoContractsError("test"),
            CyclicDependencyError("test"),
            DeployerNotFoundError("test"),
            ContinuationMismatchError("test"),
            CheckpointMismatchError("test"),
            UnknownContractError("test"),
            ArtifactNotFoundError("test"),
            RpcError("test"),
            TransactionRevertedError("test"),
            ConfirmationTimeoutError("test"),
            HookError("test"),
            VerificationError("test"),
        ]

        for exc in exceptions:
            with pytest.raises(DeploymentError):
                raise exc


class TestExceptionAttributes:
    """Test extra context carried by some exceptions."""

    def test_cyclic_dependency_carries_cycle(self):
        exc = CyclicDependencyError("cycle", cycle=["A", "B"])
        assert exc.cycle == ["A", "B"]
        assert str(exc) == "cycle"

    def test_cyclic_dependency_defaults_to_empty_cycle(self):
        assert CyclicDependencyError("cycle").cycle == []

    def test_transaction_errors_carry_hash(self):
        assert TransactionRevertedError("reverted", tx_hash="0xabc").tx_hash == "0xabc"
        assert ConfirmationTimeoutError("timeout", tx_hash="0xdef").tx_hash == "0xdef"

    def test_verification_error_carries_results(self):
        exc = VerificationError("failed", results={"Token": "nope"})
        assert exc.results == {"Token": "nope"}
        assert VerificationError("failed").results == {}
