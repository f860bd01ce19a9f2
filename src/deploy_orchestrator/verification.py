"""Block explorer source verification for deploy-orchestrator."""

import json
import logging
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Mapping, Optional

import requests

from .artifacts import ArtifactStore, ContractArtifact
from .constants import VERIFICATION_GRACE_PERIOD
from .exceptions import RpcError, VerificationError
from .types import DeployedContract, VerificationResult

logger = logging.getLogger(__name__)


class Verifier(ABC):
    """Submits one deployed contract for source verification."""

    @abstractmethod
    def verify(
        self, name: str, artifact: ContractArtifact, address: str, constructor_args: List[Any]
    ) -> VerificationResult:
        ...


class EtherscanVerifier(Verifier):
    """Verifier for Etherscan-compatible explorer APIs."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        poll_interval: float = 5.0,
        max_polls: int = 60,
        request_timeout: int = 30,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.request_timeout = request_timeout
        self._sleep = sleep

    def _check_response(self, response: requests.Response) -> Dict[str, Any]:
        if response.status_code != 200:
            raise RpcError(f"Explorer request failed with status {response.status_code}")
        result = response.json()
        if not isinstance(result, dict):
            raise RpcError("Explorer response is not a JSON object")
        return result

    def submit(self, artifact: ContractArtifact, address: str, constructor_args: List[Any]) -> Dict[str, Any]:
        """
        Send the verifysourcecode request.

        Returns:
            Explorer response with `status`, `message` and `result`
        """
        build_info = artifact.load_build_info()
        try:
            response = requests.post(
                self.api_url,
                data={
                    "apikey": self.api_key,
                    "module": "contract",
                    "action": "verifysourcecode",
                    "contractaddress": address,
                    "sourceCode": json.dumps(build_info["input"]),
                    "codeformat": "solidity-standard-json-input",
                    "contractname": artifact.fully_qualified_name,
                    "compilerversion": f"v{build_info.get('solcLongVersion', build_info.get('solcVersion'))}",
                    # Misspelling is part of the Etherscan API
                    "constructorArguements": artifact.encode_constructor_args(constructor_args),
                },
                timeout=self.request_timeout,
            )
            return self._check_response(response)
        except requests.RequestException as e:
            raise RpcError(f"Network error during verification of {address}: {e}") from e

    def check_status(self, guid: str) -> Dict[str, Any]:
        try:
            response = requests.get(
                self.api_url,
                params={
                    "apikey": self.api_key,
                    "module": "contract",
                    "action": "checkverifystatus",
                    "guid": guid,
                },
                timeout=self.request_timeout,
            )
            return self._check_response(response)
        except requests.RequestException as e:
            raise RpcError(f"Network error while checking verification {guid}: {e}") from e

    def verify(
        self, name: str, artifact: ContractArtifact, address: str, constructor_args: List[Any]
    ) -> VerificationResult:
        submitted = self.submit(artifact, address, constructor_args)
        result = str(submitted.get("result", ""))

        if submitted.get("status") != "1":
            if "already verified" in result.lower():
                return VerificationResult(name, address, True, result)
            return VerificationResult(name, address, False, result)

        guid = result
        for _ in range(self.max_polls):
            self._sleep(self.poll_interval)
            status = self.check_status(guid)
            message = str(status.get("result", ""))
            if "pending" in message.lower():
                continue
            success = status.get("status") == "1" or "already verified" in message.lower()
            return VerificationResult(name, address, success, message)

        return VerificationResult(name, address, False, f"Verification {guid} still pending")


def verify_all(
    verifier: Verifier,
    deployed: Mapping[str, DeployedContract],
    artifacts: ArtifactStore,
    artifact_names: Optional[Mapping[str, str]] = None,
    grace_period: float = VERIFICATION_GRACE_PERIOD,
    sleep: Callable[[float], None] = time.sleep,
    max_workers: Optional[int] = None,
) -> Dict[str, VerificationResult]:
    """
    Verify every contract created in this run, concurrently.

    Contracts bound to an existing address are skipped since their
    constructor arguments are unknown.

    Args:
        verifier: Explorer client
        deployed: Registry from the executor
        artifacts: Artifact lookup
        artifact_names: Maps contract name -> artifact name where they differ
        grace_period: Seconds to wait first so the explorer can index the contracts
        sleep: Sleep function (injectable for tests)
        max_workers: Thread pool size (defaults to one per contract)

    Returns:
        Maps contract name -> VerificationResult

    Raises:
        VerificationError: If any verification failed; carries all results
    """
    targets = {name: d for name, d in deployed.items() if not d.bound}
    if not targets:
        return {}

    artifact_names = artifact_names or {}

    logger.info("Waiting %ss for contract deployments to propagate on the explorer", grace_period)
    sleep(grace_period)

    def run_one(name: str, contract: DeployedContract) -> VerificationResult:
        try:
            artifact = artifacts.get(artifact_names.get(name, name))
            return verifier.verify(name, artifact, contract.address, contract.constructor_args or [])
        except Exception as e:
            logger.debug("Verification of %s raised", name, exc_info=True)
            return VerificationResult(name, contract.address, False, str(e))

    with ThreadPoolExecutor(max_workers=max_workers or len(targets)) as pool:
        futures = {name: pool.submit(run_one, name, d) for name, d in targets.items()}
        results = {name: future.result() for name, future in futures.items()}

    for result in results.values():
        if result.success:
            logger.info("Verified %s at %s", result.name, result.address)
        else:
            logger.error("Verification of %s at %s failed: %s", result.name, result.address, result.message)

    failed = [name for name, r in results.items() if not r.success]
    if failed:
        raise VerificationError(f"Verification failed for {', '.join(failed)}", results=results)

    return results
