"""
Centralized constants for the Account Enricher.

This file contains:
- Token program addresses (immutable protocol constants)
- Fixed account layout sizes and field offsets used by the classifier
- The address shape pattern shared by the extractor and injector

Runtime-tunable values (endpoints, batch sizes) live in ``config.py``.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Token programs
# ---------------------------------------------------------------------------

# Fixed-layout SPL Token program
TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
# Token Extensions program: accounts may carry appended extension data
TOKEN_2022_PROGRAM = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"

# ---------------------------------------------------------------------------
# Account layouts
# ---------------------------------------------------------------------------

MINT_ACCOUNT_SIZE = 82
TOKEN_ACCOUNT_SIZE = 165

# Token account: mint (0..32) | owner (32..64) | amount u64 LE (64..72)
TOKEN_ACCOUNT_MINT_OFFSET = 0
TOKEN_ACCOUNT_AMOUNT_OFFSET = 64
PUBKEY_LENGTH = 32

# u8 decimals ceiling
MAX_DECIMALS = 255

# ---------------------------------------------------------------------------
# Address shape
# ---------------------------------------------------------------------------

# Base-58 alphabet (no 0, O, I, l), 32 to 44 characters
ADDRESS_PATTERN: re.Pattern[str] = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

# Legacy pre-formatted leaves such as "Vault (<address>)"
WRAPPED_ADDRESS_PATTERN: re.Pattern[str] = re.compile(r"\((.*)\)$")

# ---------------------------------------------------------------------------
# Serialised annotation markers (wire shape shared with the browsing UI)
# ---------------------------------------------------------------------------

ENRICHED_MARKER = "__isEnriched"
ANNOTATION_TYPE_KEY = "__type"
ANNOTATION_ADDRESS_KEY = "pubkey"

UNKNOWN_SYMBOL = "Unknown"
