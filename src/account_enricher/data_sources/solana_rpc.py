"""
Solana RPC account resolver for the Account Enricher.

Uses the standard JSON-RPC ``getMultipleAccounts`` method with base64
encoding.  Uses ``httpx`` for async HTTP with retry + exponential backoff.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ._retry import async_http_post_json
from ..circuit_breaker import CircuitBreaker, CircuitOpenError
from ..classifier import decode_account_data
from ..models import AccountBlob

logger = logging.getLogger(__name__)

# Retry configuration
_MAX_RETRIES = 3
_BACKOFF_BASE = 1.5  # seconds

# getMultipleAccounts hard limit
MAX_ACCOUNTS_PER_CALL = 100


class SolanaRpcClient:
    """Async Solana JSON-RPC client."""

    def __init__(
        self,
        endpoint: str,
        timeout: int = 15,
        circuit_breaker: CircuitBreaker | None = None,
        *,
        backoff_base: float = _BACKOFF_BASE,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None
        self._id_counter = 0
        self._cb = circuit_breaker
        self._backoff_base = backoff_base

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_multiple_accounts(
        self, addresses: list[str]
    ) -> Optional[list[Optional[AccountBlob]]]:
        """Fetch owner + raw data for up to 100 accounts in one call.

        The returned list is aligned with *addresses*; ``None`` entries are
        accounts that do not exist.  Returns ``None`` when the call itself
        failed, so the caller can tell "absent" from "unknown".
        """
        if not addresses:
            return []
        if len(addresses) > MAX_ACCOUNTS_PER_CALL:
            raise ValueError(
                f"getMultipleAccounts accepts at most {MAX_ACCOUNTS_PER_CALL} keys, "
                f"got {len(addresses)}"
            )

        result = await self._call(
            "getMultipleAccounts",
            [addresses, {"encoding": "base64", "commitment": "confirmed"}],
        )
        if not isinstance(result, dict) or not isinstance(result.get("value"), list):
            return None

        values: list[Any] = result["value"]
        if len(values) != len(addresses):
            logger.warning(
                "getMultipleAccounts returned %d entries for %d keys",
                len(values), len(addresses),
            )

        blobs: list[Optional[AccountBlob]] = []
        for i in range(len(addresses)):
            info = values[i] if i < len(values) else None
            blobs.append(self._to_blob(info))
        return blobs

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _to_blob(info: Any) -> Optional[AccountBlob]:
        if not isinstance(info, dict):
            return None
        owner = info.get("owner")
        if not isinstance(owner, str):
            return None
        return AccountBlob(owner=owner, data=decode_account_data(info.get("data")))

    async def _call(self, method: str, params: list[Any] | dict) -> Any:
        """JSON-RPC call with retry + exponential backoff, guarded by circuit breaker."""
        self._id_counter += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._id_counter,
            "method": method,
            "params": params,
        }
        client = await self._get_client()

        async def _do() -> Any:
            result = await async_http_post_json(
                client, self._endpoint, json_payload=payload,
                max_retries=_MAX_RETRIES, backoff_base=self._backoff_base,
                label=f"Solana RPC ({method})",
            )
            if result is None:
                raise httpx.RequestError(f"Solana RPC {method}: all retries exhausted")
            return result

        try:
            if self._cb is not None:
                return await self._cb.call(_do)
            return await _do()
        except CircuitOpenError:
            logger.warning("Solana RPC circuit OPEN – fast-failing %s", method)
            return None
        except httpx.HTTPError:
            return None
