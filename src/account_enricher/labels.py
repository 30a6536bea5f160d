"""
Label lookups for enrichment.

A label lookup is a plain synchronous callable ``address -> label | None``
supplied by the caller (user-defined labels live outside the engine).
This module provides the building blocks:

- ``known_label``: static table of well-known programs and mints
- ``static_label_lookup``: wrap any ``{address: label}`` mapping
- ``load_label_file``: read such a mapping from a JSON file
- ``chain_label_lookups``: first non-empty answer wins
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Mapping, Optional

logger = logging.getLogger(__name__)

LabelLookup = Callable[[str], Optional[str]]


# ---------------------------------------------------------------------------
# Well-known addresses
# ---------------------------------------------------------------------------

KNOWN_LABELS: dict[str, str] = {
    # ── Solana system programs ────────────────────────────────────────────
    "11111111111111111111111111111111":             "System Program",
    "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA": "SPL Token Program",
    "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb": "Token-2022 Program",
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJe8bv": "Associated Token Program",
    "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s": "Metaplex Metadata",
    "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr": "Memo Program",
    "ComputeBudget111111111111111111111111111111":  "Compute Budget",
    "BPFLoaderUpgradeab1e11111111111111111111111":  "BPF Loader",
    "SysvarC1ock11111111111111111111111111111111":  "Sysvar Clock",
    "SysvarRent111111111111111111111111111111111":  "Sysvar Rent",

    # ── Common mints ──────────────────────────────────────────────────────
    "So11111111111111111111111111111111111111112":  "Wrapped SOL",
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": "USDC Mint",
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": "USDT Mint",

    # ── DEX / aggregator programs ─────────────────────────────────────────
    "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4":  "Jupiter V6",
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8": "Raydium AMM V4",
    "CAMMCzo5YL8w4VFF8KVHrK22GGUsp5VTaW7grrKgrWqK": "Raydium CLMM",
    "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc":  "Orca Whirlpool",
    "LBUZKhRxPF3XUpBCjp4YzTKgLLjeyegsnkragy77ohVb": "Meteora DLMM",
    "PhoeNiXZ8ByJGLkxNfZRnkUfjvmuYqLR89jjFHGqdXY":  "Phoenix DEX",
    "opnb2LAfJYbRMAg2CDFLbyEkPnXHeCzHWMFnmCJLFEe":  "OpenBook V2",
}


def known_label(address: str) -> Optional[str]:
    """Label for a well-known program or mint, else ``None``."""
    return KNOWN_LABELS.get(address)


def static_label_lookup(labels: Mapping[str, str]) -> LabelLookup:
    """Wrap a ``{address: label}`` mapping; blank labels count as absent."""
    table = {addr: label.strip() for addr, label in labels.items() if label and label.strip()}
    return table.get


def chain_label_lookups(*lookups: Optional[LabelLookup]) -> LabelLookup:
    """Combine lookups; the first one returning a label wins."""
    active = [lookup for lookup in lookups if lookup is not None]

    def _lookup(address: str) -> Optional[str]:
        for lookup in active:
            label = lookup(address)
            if label:
                return label
        return None

    return _lookup


def load_label_file(path: str | Path) -> dict[str, str]:
    """Read ``{address: label}`` pairs from a JSON object file.

    Non-string entries are skipped with a warning.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object of address → label")
    labels: dict[str, str] = {}
    for address, label in raw.items():
        if not isinstance(label, str):
            logger.warning("Skipping non-string label for %s in %s", address, path)
            continue
        labels[address] = label
    return labels
