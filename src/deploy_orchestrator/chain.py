"""JSON-RPC chain access for deploy-orchestrator."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests
from eth_abi import decode, encode
from eth_account import Account
from eth_utils import keccak, to_checksum_address, to_hex

from .artifacts import ContractArtifact, abi_type
from .constants import CONFIRMATION_TIMEOUT, MAX_POLL_INTERVAL, POLL_INTERVAL
from .exceptions import ConfirmationTimeoutError, RpcError, TransactionRevertedError

logger = logging.getLogger(__name__)


class ChainClient(ABC):
    """Capabilities the orchestrator needs from a chain node."""

    @abstractmethod
    def accounts(self) -> List[str]:
        """Addresses able to sign transactions through this client."""

    @abstractmethod
    def get_transaction_count(self, address: str) -> int:
        ...

    @abstractmethod
    def get_balance(self, address: str) -> int:
        ...

    @abstractmethod
    def get_code(self, address: str) -> str:
        ...

    @abstractmethod
    def send_transaction(
        self, sender: str, data: str, to: Optional[str] = None, value: int = 0
    ) -> str:
        """Submit a transaction (a contract creation when `to` is None) and return its hash."""

    @abstractmethod
    def wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        """Block until the transaction is mined and return its receipt."""

    @abstractmethod
    def call(self, to: str, data: str) -> str:
        """Execute a read-only call and return the raw hex result."""


class JsonRpcChainClient(ChainClient):
    """
    Chain client speaking Ethereum JSON-RPC over HTTP.

    Without a private key, transactions are signed by the node
    (`eth_sendTransaction` from one of its unlocked accounts). With a
    private key, they are signed locally and sent raw.
    """

    def __init__(
        self,
        rpc_url: str,
        private_key: Optional[str] = None,
        request_timeout: int = 30,
        confirmation_timeout: float = CONFIRMATION_TIMEOUT,
        poll_interval: float = POLL_INTERVAL,
        max_poll_interval: float = MAX_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.rpc_url = rpc_url
        self.request_timeout = request_timeout
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.max_poll_interval = max_poll_interval
        self._sleep = sleep
        self._account = Account.from_key(private_key) if private_key else None
        self._request_id = 0
        self._chain_id: Optional[int] = None

    def _request(self, method: str, params: Sequence[Any]) -> Any:
        """
        Perform one JSON-RPC call.

        Raises:
            RpcError: On HTTP failure, network failure or an RPC error object
        """
        self._request_id += 1
        try:
            response = requests.post(
                self.rpc_url,
                json={
                    "jsonrpc": "2.0",
                    "method": method,
                    "params": list(params),
                    "id": self._request_id,
                },
                timeout=self.request_timeout,
            )

            if response.status_code != 200:
                raise RpcError(f"RPC request {method} failed with status {response.status_code}")

            result = response.json()
        except requests.RequestException as e:
            raise RpcError(f"Network error during RPC call {method}: {e}") from e

        if not isinstance(result, dict):
            raise RpcError(f"RPC response to {method} is not a JSON object")

        if "error" in result:
            raise RpcError(f"RPC error in {method}: {result['error']}")

        return result.get("result")

    def accounts(self) -> List[str]:
        if self._account is not None:
            return [self._account.address]
        return [to_checksum_address(a) for a in self._request("eth_accounts", [])]

    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(self._request("eth_chainId", []), 16)
        return self._chain_id

    def get_transaction_count(self, address: str, block: str = "latest") -> int:
        return int(self._request("eth_getTransactionCount", [address, block]), 16)

    def get_balance(self, address: str) -> int:
        return int(self._request("eth_getBalance", [address, "latest"]), 16)

    def get_code(self, address: str) -> str:
        return self._request("eth_getCode", [address, "latest"])

    def send_transaction(
        self, sender: str, data: str, to: Optional[str] = None, value: int = 0
    ) -> str:
        tx: Dict[str, Any] = {"from": sender, "data": data, "value": hex(value)}
        if to is not None:
            tx["to"] = to

        if self._account is None:
            return self._request("eth_sendTransaction", [tx])

        if to_checksum_address(sender) != self._account.address:
            raise RpcError(f"Cannot sign for {sender}; the configured key belongs to {self._account.address}")

        gas = int(self._request("eth_estimateGas", [tx]), 16)
        raw_tx: Dict[str, Any] = {
            "nonce": self.get_transaction_count(sender, "pending"),
            "chainId": self.chain_id(),
            "gas": int(gas * 1.2),
            "gasPrice": int(self._request("eth_gasPrice", []), 16),
            "data": data,
            "value": value,
        }
        if to is not None:
            raw_tx["to"] = to_checksum_address(to)

        signed = self._account.sign_transaction(raw_tx)
        return self._request("eth_sendRawTransaction", [to_hex(signed.raw_transaction)])

    def wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        """
        Poll for a receipt with exponential backoff.

        Raises:
            ConfirmationTimeoutError: If no receipt appears within confirmation_timeout
            TransactionRevertedError: If the transaction was mined with status 0
        """
        deadline = time.monotonic() + self.confirmation_timeout
        interval = self.poll_interval

        while True:
            receipt = self._request("eth_getTransactionReceipt", [tx_hash])
            if receipt is not None:
                break
            if time.monotonic() + interval > deadline:
                raise ConfirmationTimeoutError(
                    f"Transaction {tx_hash} not confirmed after {self.confirmation_timeout}s",
                    tx_hash=tx_hash,
                )
            self._sleep(interval)
            interval = min(interval * 2, self.max_poll_interval)

        if receipt.get("status") in ("0x0", 0):
            raise TransactionRevertedError(f"Transaction {tx_hash} reverted", tx_hash=tx_hash)

        return receipt

    def call(self, to: str, data: str) -> str:
        return self._request("eth_call", [{"to": to, "data": data}, "latest"])


def function_signature(item: Dict[str, Any]) -> str:
    inputs = ",".join(abi_type(i) for i in item.get("inputs", []))
    return f"{item['name']}({inputs})"


def function_selector(item: Dict[str, Any]) -> bytes:
    return keccak(text=function_signature(item))[:4]


def format_value(value: Any) -> str:
    """Render a decoded ABI value for display."""
    if isinstance(value, bytes):
        return to_hex(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    return str(value)


class ContractHandle:
    """
    A contract bound to an address, with its ABI as interface descriptor.

    Accessors are looked up in the ABI rather than probed on-chain, so a
    missing accessor is known before any call is made.
    """

    def __init__(self, name: str, address: str, abi: List[Dict[str, Any]], chain: ChainClient):
        self.name = name
        self.address = to_checksum_address(address)
        self.abi = abi
        self.chain = chain

    @classmethod
    def from_artifact(cls, artifact: ContractArtifact, address: str, chain: ChainClient) -> "ContractHandle":
        return cls(artifact.name, address, artifact.abi, chain)

    def __repr__(self) -> str:
        return f"ContractHandle({self.name!r}, {self.address!r})"

    def _function(self, name: str, arg_count: int) -> Dict[str, Any]:
        for item in self.abi:
            if (
                item.get("type") == "function"
                and item.get("name") == name
                and len(item.get("inputs", [])) == arg_count
            ):
                return item
        raise AttributeError(f"{self.name} has no function {name} taking {arg_count} arguments")

    def has_accessor(self, name: str) -> bool:
        """True if the ABI declares a read-only function `name` taking no arguments."""
        for item in self.abi:
            if (
                item.get("type") == "function"
                and item.get("name") == name
                and not item.get("inputs")
                and item.get("stateMutability") in ("view", "pure")
            ):
                return True
        return False

    def encode_call(self, name: str, args: Sequence[Any] = ()) -> str:
        item = self._function(name, len(args))
        data = function_selector(item)
        if args:
            data += encode([abi_type(i) for i in item["inputs"]], list(args))
        return to_hex(data)

    def call(self, name: str, *args: Any) -> Any:
        """
        Call a read-only function and decode its result.

        Returns:
            The single return value, or a tuple for multiple outputs
        """
        item = self._function(name, len(args))
        raw = self.chain.call(self.address, self.encode_call(name, args))
        outputs = item.get("outputs", [])
        if not outputs:
            return None
        values = decode([abi_type(o) for o in outputs], bytes.fromhex(raw[2:] if raw.startswith("0x") else raw))
        return values[0] if len(values) == 1 else values

    def transact(self, name: str, *args: Any, sender: str, value: int = 0) -> Dict[str, Any]:
        """Send a state-changing call and wait for its receipt."""
        tx_hash = self.chain.send_transaction(sender, self.encode_call(name, args), to=self.address, value=value)
        logger.info("%s.%s sent in %s", self.name, name, tx_hash)
        return self.chain.wait_for_receipt(tx_hash)
