"""
Token metadata client for the Account Enricher.

Talks to the browsing UI's token metadata endpoint, which proxies an
upstream token API and accepts at most 50 mints per request::

    GET <TOKEN_METADATA_URL>?list=<mint>,<mint>,...
    → {"success": true, "data": {"<mint>": {"symbol": ..., "decimals": ..., "name": ...}}}
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ._retry import async_http_get
from ..circuit_breaker import CircuitBreaker, CircuitOpenError

logger = logging.getLogger(__name__)

# Retry configuration
_MAX_RETRIES = 3
_BACKOFF_BASE = 1.0

# Upstream size limit per request
MAX_MINTS_PER_CALL = 50


class TokenMetadataClient:
    """Async client for the token metadata endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: int = 15,
        circuit_breaker: CircuitBreaker | None = None,
        *,
        backoff_base: float = _BACKOFF_BASE,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None
        self._cb = circuit_breaker
        self._backoff_base = backoff_base

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get(self, params: dict[str, Any]) -> Any:
        """GET with retry + exponential backoff, guarded by circuit breaker."""
        client = await self._get_client()

        async def _do() -> Any:
            result = await async_http_get(
                client, self._base_url, params=params,
                max_retries=_MAX_RETRIES, backoff_base=self._backoff_base,
                label="Token metadata",
            )
            if result is None:
                raise httpx.RequestError("Token metadata: all retries exhausted")
            return result

        try:
            if self._cb is not None:
                return await self._cb.call(_do)
            return await _do()
        except CircuitOpenError:
            logger.warning("Token metadata circuit OPEN – fast-failing")
            return None
        except httpx.HTTPError:
            return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def lookup(self, mints: list[str]) -> Optional[dict[str, dict[str, Any]]]:
        """Fetch raw metadata entries for up to 50 mints.

        Returns a dict mapping mint → payload entry (mints the service
        does not know are simply missing), or ``None`` when the request
        failed or the response envelope was not a success.
        """
        if not mints:
            return {}
        if len(mints) > MAX_MINTS_PER_CALL:
            raise ValueError(
                f"metadata lookup accepts at most {MAX_MINTS_PER_CALL} mints, got {len(mints)}"
            )

        body = await self._get({"list": ",".join(mints)})
        if not isinstance(body, dict) or not body.get("success"):
            return None
        data = body.get("data")
        if not isinstance(data, dict):
            return None
        return {
            mint: entry
            for mint, entry in data.items()
            if isinstance(entry, dict)
        }
