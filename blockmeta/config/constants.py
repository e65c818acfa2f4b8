"""
Storage and protocol constants.

Single source of truth for limits shared by the storage layer and the
RPC service.
"""

# Largest slot span a single range query may cover
MAX_GET_CONFIRMED_BLOCKS_RANGE = 500_000

# 50 KiB
MAX_REQUEST_BODY_SIZE = 50 * (1 << 10)

DEFAULT_RPC_PORT = 8899
DEFAULT_BIND_ADDRESS = "0.0.0.0"

# MySQL defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3306
DEFAULT_MYSQL_TIMEOUT_SECONDS = 5

# Slot 0 block time (genesis)
GENESIS_CREATION_TIME = 0

# Unsigned 64-bit slot bound
U64_MAX = (1 << 64) - 1

# Tables
BLOCK_TABLE = "sol_mainnet_block"
BLOCK_HEIGHT_TABLE = "solana_blocks"
