"""Threshold-tx protocol configuration constants.

Changing any width, salt or tag here is a breaking protocol version: every
derived address and previously collected signature becomes invalid.
"""

# Keys / signatures
PUBLIC_KEY_LENGTH = 32
PRIVATE_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64
ADDRESS_LENGTH = 32

# Threshold identity
MULTI_ED25519_SCHEME = 0x01
MIN_THRESHOLD = 1
BITMAP_NUM_OF_BYTES = 4
MAX_MEMBERS = BITMAP_NUM_OF_BYTES * 8  # 32

# Domain separation
RAW_TRANSACTION_SALT = b"APTOS::RawTransaction"
TRANSACTION_SALT = b"APTOS::Transaction"

# Encoding limits
MAX_IDENTIFIER_LENGTH = 255
MAX_SEQUENCE_LENGTH = (1 << 31) - 1
MAX_ARGUMENT_SIZE = 64 * 1024
MAX_TYPE_TAG_DEPTH = 8
U8_MAX = (1 << 8) - 1
U64_MAX = (1 << 64) - 1

# Payload variants
PAYLOAD_MULTISIG = 3
MULTISIG_PAYLOAD_ENTRY_FUNCTION = 0
TRANSACTION_VARIANT_USER = 0
AUTHENTICATOR_MULTI_ED25519 = 1

# Framework
CORE_ADDRESS = bytes(31) + b"\x01"
NATIVE_COIN_TYPE = "0x1::aptos_coin::AptosCoin"

# Gas defaults
DEFAULT_MAX_GAS_UNITS = 5_000
DEFAULT_GAS_UNIT_PRICE = 100
DEFAULT_EXPIRATION_SECONDS = 10
MAX_GAS_UNITS_BOUND = 2_000_000
TRANSFER_GAS_UNITS = 6

# Confirmation tracking defaults (seconds)
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_MAX_POLL_INTERVAL = 5.0
DEFAULT_BACKOFF_FACTOR = 1.0
DEFAULT_CONFIRMATION_TIMEOUT = 20.0
DEFAULT_REQUEST_TIMEOUT = 30.0

# Endpoints
DEFAULT_NODE_URL = "https://fullnode.devnet.aptoslabs.com/v1"
DEFAULT_FAUCET_URL = "https://faucet.devnet.aptoslabs.com"

# Chain / network
CHAIN_ID_MAINNET = 1
CHAIN_ID_TESTNET = 2
CHAIN_ID_DEVNET = 3
CHAIN_ID_LOCAL = 4
