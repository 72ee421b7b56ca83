"""Blockchain constants."""

# Chain IDs per supported network
CHAIN_IDS = {
    "mainnet": 1,
    "goerli": 5,
    "holesky": 17000,
    "sepolia": 11155111,
}

# Wallet generation
MNEMONIC_WORDS = 12
DEFAULT_DERIVATION_PATH = "m/44'/60'/0'/0/0"

# Confirmation
DEFAULT_CONFIRMATIONS = 1
RECEIPT_POLL_INTERVAL = 2.0  # seconds

# Explorer
EXPLORER_TIMEOUT = 30  # seconds
EXPLORER_END_BLOCK = 99999999
