"""Contract address derivation for deploy-orchestrator."""

import rlp
from eth_utils import keccak, to_canonical_address, to_checksum_address


def predict_contract_address(deployer_address: str, nonce: int) -> str:
    """
    Compute the address the next contract creation from an account will get.

    The address is the low 20 bytes of keccak256(rlp([sender, nonce])).

    https://ethereum.stackexchange.com/questions/760/how-is-the-address-of-an-ethereum-contract-computed

    Args:
        deployer_address: Hex address of the creating account
        nonce: Transaction count of the account before the creation

    Returns:
        Checksummed contract address
    """
    if nonce < 0:
        raise ValueError(f"Nonce must be non-negative, got {nonce}")

    encoded = rlp.encode([to_canonical_address(deployer_address), nonce])
    return to_checksum_address(keccak(encoded)[12:])


def has_code(code: str) -> bool:
    """Return True if `eth_getCode` output denotes a deployed contract."""
    return bool(code) and code not in ("0x", "0x0")
