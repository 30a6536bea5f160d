"""
Project configuration file for the Account Enricher.

This module centralises all user-modifiable settings such as RPC
endpoints, the token metadata service, token program identifiers and
batch limits.  You can edit these values directly or set environment
variables to override them.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _parse_float(name: str, default: str, *, low: float = 0.0, high: float = 1.0) -> float:
    """Parse an env var as a float and validate it within [low, high]."""
    raw = os.getenv(name, default)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.error("Invalid value for %s: %r – using default %s", name, raw, default)
        value = float(default)
    if not (low <= value <= high):
        logger.warning("%s=%.4f is outside [%.1f, %.1f] – clamped", name, value, low, high)
        value = max(low, min(value, high))
    return value


def _parse_int(name: str, default: str, *, minimum: int = 1, maximum: int | None = None) -> int:
    """Parse an env var as an int and enforce a minimum (and optional maximum)."""
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.error("Invalid value for %s: %r – using default %s", name, raw, default)
        value = int(default)
    if value < minimum:
        logger.warning("%s=%d is below minimum %d – clamped", name, value, minimum)
        value = minimum
    if maximum is not None and value > maximum:
        logger.warning("%s=%d is above maximum %d – clamped", name, value, maximum)
        value = maximum
    return value


# ---------------------------------------------------------------------------
# Solana RPC (account blob source)
# ---------------------------------------------------------------------------
SOLANA_RPC_ENDPOINT: str = os.getenv(
    "SOLANA_RPC_ENDPOINT",
    "https://api.mainnet-beta.solana.com",
)

# ---------------------------------------------------------------------------
# Token metadata service
# ---------------------------------------------------------------------------
TOKEN_METADATA_URL: str = os.getenv(
    "TOKEN_METADATA_URL",
    "http://localhost:3000/api/token-metadata",
)
TOKEN_ICON_BASE_URL: str = os.getenv(
    "TOKEN_ICON_BASE_URL",
    "https://xcdlwgvabmruuularsvn.supabase.co/storage/v1/object/public/p0-tokens",
).rstrip("/")

# ---------------------------------------------------------------------------
# Token programs recognised by the classifier
# ---------------------------------------------------------------------------
TOKEN_PROGRAM_ID: str = os.getenv(
    "TOKEN_PROGRAM_ID", "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
)
TOKEN_2022_PROGRAM_ID: str = os.getenv(
    "TOKEN_2022_PROGRAM_ID", "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
)

# ---------------------------------------------------------------------------
# Batching  (getMultipleAccounts caps at 100, the metadata service at 50)
# ---------------------------------------------------------------------------
ACCOUNT_BATCH_SIZE: int = _parse_int("ACCOUNT_BATCH_SIZE", "100", minimum=1, maximum=100)
METADATA_BATCH_SIZE: int = _parse_int("METADATA_BATCH_SIZE", "50", minimum=1, maximum=50)
MAX_IN_FLIGHT_BATCHES: int = _parse_int("MAX_IN_FLIGHT_BATCHES", "1", minimum=1)
REQUEST_TIMEOUT: int = _parse_int("REQUEST_TIMEOUT", "15", minimum=1)

# ---------------------------------------------------------------------------
# Retry backoff (seconds)
# ---------------------------------------------------------------------------
RETRY_BACKOFF_BASE: float = _parse_float("RETRY_BACKOFF_BASE", "1.0", low=0.0, high=30.0)

# ---------------------------------------------------------------------------
# Circuit breaker
# ---------------------------------------------------------------------------
CB_FAILURE_THRESHOLD: int = _parse_int("CB_FAILURE_THRESHOLD", "8", minimum=1)
CB_RECOVERY_TIMEOUT: float = _parse_float("CB_RECOVERY_TIMEOUT", "60", low=0.0, high=3600.0)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT: str = os.getenv("LOG_FORMAT", "text")  # "text" or "json"
