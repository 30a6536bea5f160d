"""
Singleton HTTP client management for the Account Enricher.

Provides lazy-initialised clients for the Solana RPC account resolver and
the token metadata service, each guarded by its own circuit breaker.

``close_clients`` should be called once the caller is done enriching.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..circuit_breaker import CircuitBreaker
from ..data_sources.solana_rpc import SolanaRpcClient
from ..data_sources.token_metadata import TokenMetadataClient
from config import (
    CB_FAILURE_THRESHOLD,
    CB_RECOVERY_TIMEOUT,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF_BASE,
    SOLANA_RPC_ENDPOINT,
    TOKEN_METADATA_URL,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level singletons (created once, reused)
# ---------------------------------------------------------------------------
_rpc_client: Optional[SolanaRpcClient] = None
_metadata_client: Optional[TokenMetadataClient] = None

cb_solana_rpc = CircuitBreaker(
    "solana_rpc",
    failure_threshold=CB_FAILURE_THRESHOLD,
    recovery_timeout=CB_RECOVERY_TIMEOUT,
)
cb_token_metadata = CircuitBreaker(
    "token_metadata",
    failure_threshold=CB_FAILURE_THRESHOLD,
    recovery_timeout=CB_RECOVERY_TIMEOUT,
)


def get_rpc_client() -> SolanaRpcClient:
    global _rpc_client
    if _rpc_client is None:
        _rpc_client = SolanaRpcClient(
            endpoint=SOLANA_RPC_ENDPOINT,
            timeout=REQUEST_TIMEOUT,
            circuit_breaker=cb_solana_rpc,
            backoff_base=RETRY_BACKOFF_BASE * 1.5,
        )
    return _rpc_client


def get_metadata_client() -> TokenMetadataClient:
    global _metadata_client
    if _metadata_client is None:
        _metadata_client = TokenMetadataClient(
            base_url=TOKEN_METADATA_URL,
            timeout=REQUEST_TIMEOUT,
            circuit_breaker=cb_token_metadata,
            backoff_base=RETRY_BACKOFF_BASE,
        )
    return _metadata_client


async def close_clients() -> None:
    """Close singleton HTTP clients gracefully."""
    global _rpc_client, _metadata_client
    if _rpc_client is not None:
        await _rpc_client.close()
        _rpc_client = None
    if _metadata_client is not None:
        await _metadata_client.close()
        _metadata_client = None
    logger.debug("HTTP clients closed")
