"""
Shared async retry utility with exponential backoff.

Used by the Solana RPC account resolver and the token metadata client.
Both return ``None`` once retries are exhausted so that one failed batch
degrades to "nothing resolved" instead of aborting enrichment.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

logger = logging.getLogger(__name__)


def _parse_retry_after(resp: httpx.Response, default: float) -> float:
    """Extract wait time from a ``Retry-After`` header, or use *default*.

    Only the integer-seconds form is handled.
    """
    raw = resp.headers.get("retry-after")
    if raw is not None:
        try:
            return max(float(raw), 0.5)
        except (ValueError, TypeError):
            pass
    return default


async def _with_retry(
    send: Callable[[], Awaitable[httpx.Response]],
    *,
    max_retries: int,
    backoff_base: float,
    label: str,
) -> Optional[httpx.Response]:
    """Run *send* until it yields a 2xx response.

    429 waits for ``Retry-After`` (or the backoff) and retries; 403 gives
    up immediately; other HTTP and transport errors back off and retry.
    """
    for attempt in range(max_retries):
        delay = backoff_base * (2 ** attempt)
        try:
            resp = await send()
            if resp.status_code == 429:
                wait = _parse_retry_after(resp, delay)
                logger.warning("%s rate-limited, retry in %.1fs", label, wait)
                await asyncio.sleep(wait)
                continue
            if resp.status_code == 403:
                logger.warning("%s 403 – endpoint refused the request", label)
                return None
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as exc:
            logger.warning("%s HTTP %s", label, exc.response.status_code)
        except httpx.RequestError as exc:
            logger.warning("%s request failed: %s", label, exc)
        if attempt < max_retries - 1:
            await asyncio.sleep(delay)
    return None


async def async_http_get(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Optional[dict[str, Any]] = None,
    max_retries: int = 3,
    backoff_base: float = 1.0,
    label: str = "HTTP",
) -> Optional[Any]:
    """GET *url* with retry; returns parsed JSON or ``None``."""
    resp = await _with_retry(
        lambda: client.get(url, params=params),
        max_retries=max_retries, backoff_base=backoff_base, label=label,
    )
    if resp is None:
        return None
    try:
        return resp.json()
    except ValueError:
        logger.warning("%s returned a non-JSON body", label)
        return None


async def async_http_post_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    json_payload: Any,
    max_retries: int = 3,
    backoff_base: float = 1.5,
    label: str = "RPC",
) -> Optional[Any]:
    """POST a JSON-RPC *json_payload* with retry.

    Returns the ``result`` member of the body, or ``None`` on exhausted
    retries or a JSON-RPC ``error`` body.
    """
    resp = await _with_retry(
        lambda: client.post(url, json=json_payload),
        max_retries=max_retries, backoff_base=backoff_base, label=label,
    )
    if resp is None:
        return None
    try:
        body = resp.json()
    except ValueError:
        logger.warning("%s returned a non-JSON body", label)
        return None
    if not isinstance(body, dict):
        return body
    if "error" in body:
        logger.warning("%s error: %s", label, body["error"])
        return None
    return body.get("result", body)
