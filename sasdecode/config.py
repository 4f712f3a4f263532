"""Default endpoints and client constants."""
from sasdecode.account.constants import SAS_PROGRAM_ID

# Public RPC endpoints
MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
DEVNET_RPC_URL = "https://api.devnet.solana.com"
DEFAULT_RPC_URL = MAINNET_RPC_URL

DEFAULT_PROGRAM_ID = SAS_PROGRAM_ID
DEFAULT_COMMITMENT = "confirmed"
DEFAULT_TIMEOUT_SECONDS = 10.0

# Retry policy for transient RPC failures
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_MS = 200
DEFAULT_MAX_DELAY_MS = 5000
RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})

# App name for click.get_app_dir
APP_NAME = "sasdecode"
