"""
Batched mint metadata lookup.

Splits a mint set into service-sized batches, looks each batch up and
merges the answers into ``MintMetadata`` records.  A failed batch is
logged and skipped; its mints stay absent from the result and callers
fall back to ``default_metadata``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Protocol

from .batching import BatchPolicy
from .constants import MAX_DECIMALS, UNKNOWN_SYMBOL
from .models import MintMetadata

logger = logging.getLogger(__name__)


class MetadataSource(Protocol):
    async def lookup(self, mints: list[str]) -> Optional[dict[str, dict[str, Any]]]:
        ...


def icon_url_for(mint: str, icon_base_url: str) -> str:
    return f"{icon_base_url.rstrip('/')}/{mint}.png"


def default_metadata(mint: str, icon_base_url: str) -> MintMetadata:
    """Metadata used when the service has nothing for *mint*."""
    return MintMetadata(
        symbol=UNKNOWN_SYMBOL,
        decimals=0,
        icon_url=icon_url_for(mint, icon_base_url),
    )


def _parse_decimals(mint: str, value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        decimals = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid decimals %r for mint %s – using 0", value, mint)
        return 0
    if not 0 <= decimals <= MAX_DECIMALS:
        logger.warning("Out-of-range decimals %d for mint %s – using 0", decimals, mint)
        return 0
    return decimals


def parse_metadata_entry(
    mint: str, entry: Optional[dict[str, Any]], icon_base_url: str
) -> MintMetadata:
    """Build ``MintMetadata`` from one service entry (or ``None``).

    The icon URL is always derived from the mint, whatever the service
    returns.
    """
    if not entry:
        return default_metadata(mint, icon_base_url)
    name = entry.get("name")
    return MintMetadata(
        symbol=entry.get("symbol") or UNKNOWN_SYMBOL,
        decimals=_parse_decimals(mint, entry.get("decimals")),
        name=name if isinstance(name, str) and name else None,
        icon_url=icon_url_for(mint, icon_base_url),
    )


async def fetch_mint_metadata(
    mints: Iterable[str],
    source: MetadataSource,
    *,
    policy: BatchPolicy,
    icon_base_url: str,
) -> dict[str, MintMetadata]:
    """Look up metadata for *mints*, one request per batch.

    Every mint of a successful batch appears in the result (defaulted
    when the service omitted it); mints of a failed batch do not.
    """
    ordered = list(dict.fromkeys(mints))
    if not ordered:
        return {}

    async def _lookup(batch: list[str]) -> tuple[list[str], Optional[dict[str, dict[str, Any]]]]:
        try:
            return batch, await source.lookup(batch)
        except Exception as exc:
            logger.warning("Metadata lookup raised %s", exc, exc_info=True)
            return batch, None

    result: dict[str, MintMetadata] = {}
    for batch, payload in await policy.run(ordered, _lookup):
        if payload is None:
            logger.warning("Metadata lookup failed for a batch of %d mints – skipped", len(batch))
            continue
        for mint in batch:
            result[mint] = parse_metadata_entry(mint, payload.get(mint), icon_base_url)

    logger.debug("Resolved metadata for %d/%d mints", len(result), len(ordered))
    return result
