# config.py
"""
Gateway configuration loaded from the environment.

All settings are read once at import time (after loading `.env`) and exposed
as module-level constants. `validate_settings()` is called at startup and is
the only place where missing configuration stops the process.
"""
import os
from decimal import Decimal

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class ConfigError(RuntimeError):
     """Raised at startup when required configuration is missing or invalid."""


# Auth
API_KEY = os.getenv("API_KEY", "")

# Chain
RPC_HTTP = os.getenv("RPC_HTTP")
HOT_WALLET_PRIVATE_KEY = os.getenv("HOT_WALLET_PRIVATE_KEY")
USDT_CONTRACT = os.getenv("USDT_CONTRACT", "0x55d398326f99059fF775485246999027B3197955")
DEFAULT_TOKEN_DECIMALS = int(os.getenv("DEFAULT_TOKEN_DECIMALS", "18"))

# Transfer feed
BSCSCAN_API_KEY = os.getenv("BSCSCAN_API_KEY")
BSCSCAN_API_URL = os.getenv("BSCSCAN_API_URL", "https://api.bscscan.com/api")
FEED_PAGE_SIZE = int(os.getenv("FEED_PAGE_SIZE", "50"))
FEED_TIMEOUT_SECONDS = float(os.getenv("FEED_TIMEOUT_SECONDS", "15"))

# Reconciliation
POLL_MS = int(os.getenv("POLL_MS", "12000"))
DEDUP_RETENTION_DAYS = int(os.getenv("DEDUP_RETENTION_DAYS", "30"))

# Unique amount tags like 10.001, 10.002 ...
TAG_STEP = Decimal(os.getenv("TAG_STEP", "0.001"))
TAG_MAX = Decimal(os.getenv("TAG_MAX", "0.099"))

# Server
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

REQUIRED_SETTINGS = ("API_KEY", "RPC_HTTP", "HOT_WALLET_PRIVATE_KEY", "BSCSCAN_API_KEY")


def validate_settings() -> None:
     """
     Check that every required setting is present.

     Raises:
          ConfigError: listing every missing variable, or describing a bad tag grid.
     """
     missing = [name for name in REQUIRED_SETTINGS if not globals().get(name)]
     if missing:
          raise ConfigError(f"Missing required settings: {', '.join(missing)}")

     if POLL_MS <= 0:
          raise ConfigError("POLL_MS must be > 0")

     if TAG_STEP <= 0 or TAG_MAX < TAG_STEP:
          raise ConfigError("TAG_STEP must be > 0 and TAG_MAX >= TAG_STEP")
