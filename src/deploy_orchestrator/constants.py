"""Configuration constants for deploy-orchestrator."""

# Network configuration based on ethereum-lists/chains
# Ephemeral networks have no block explorer and are never verified
NETWORK_CONFIG = {
    "hardhat": {
        "chain_id": 31337,
        "chain_name": "Hardhat Network",
        "default_rpc_url": "http://127.0.0.1:8545",
        "default_rpc_env": "HARDHAT_RPC_URL",
        "ephemeral": True,
    },
    "localhost": {
        "chain_id": 31337,
        "chain_name": "Localhost",
        "default_rpc_url": "http://127.0.0.1:8545",
        "default_rpc_env": "LOCALHOST_RPC_URL",
        "ephemeral": True,
    },
    "mainnet": {
        "chain_id": 1,
        "chain_name": "Ethereum Mainnet",
        "default_rpc_env": "MAINNET_RPC_URL",
        "block_explorer_url": "https://etherscan.io",
        "explorer_api_url": "https://api.etherscan.io/api",
        "ephemeral": False,
    },
    "sepolia": {
        "chain_id": 11155111,
        "chain_name": "Sepolia",
        "default_rpc_env": "SEPOLIA_RPC_URL",
        "block_explorer_url": "https://sepolia.etherscan.io",
        "explorer_api_url": "https://api-sepolia.etherscan.io/api",
        "ephemeral": False,
    },
    "gnosis": {
        "chain_id": 100,
        "chain_name": "Gnosis Chain",
        "default_rpc_env": "GNO_RPC_URL",
        "block_explorer_url": "https://gnosisscan.io",
        "explorer_api_url": "https://api.gnosisscan.io/api",
        "ephemeral": False,
    },
}

EXPLORER_API_KEY_ENV = "ETHERSCAN_API_KEY"
DEPLOYER_PRIVATE_KEY_ENV = "DEPLOYER_PRIVATE_KEY"

# Top-level keys of checkpoint and manifest documents that are not contract names
CHECKPOINT_KEYS = frozenset({"startedAt", "network", "continuationRef"})
MANIFEST_KEYS = frozenset({"network", "deployerAddress", "startedAt", "completedAt", "previous"})
RESERVED_KEYS = CHECKPOINT_KEYS | MANIFEST_KEYS

# Seconds to wait before verifying, so the explorer can index the new contracts
VERIFICATION_GRACE_PERIOD = 120

# Receipt polling policy (seconds)
CONFIRMATION_TIMEOUT = 600
POLL_INTERVAL = 1.0
MAX_POLL_INTERVAL = 15.0

# Padding after the longest accessor name when printing contract properties
PROPERTY_PADDING = 3
