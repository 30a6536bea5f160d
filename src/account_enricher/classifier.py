"""
Token account classification.

Decides whether a raw account blob is a token holding account, a token
mint, or neither.  Accounts owned by the fixed-layout token program are
classified by exact size.  Accounts owned by the extension-capable
program may carry appended extension data, so:

- 82 <= size < 165 can only be a mint (a holding account is never
  shorter than 165 bytes)
- size > 165 is ambiguous and is resolved by a byte-pattern heuristic

The heuristic is pluggable; every classification it decides is flagged
``ambiguous`` so callers can log it.
"""

from __future__ import annotations

import base64
import binascii
import logging
import struct
from typing import Any, Callable

import base58

from .constants import (
    MINT_ACCOUNT_SIZE,
    PUBKEY_LENGTH,
    TOKEN_2022_PROGRAM,
    TOKEN_ACCOUNT_AMOUNT_OFFSET,
    TOKEN_ACCOUNT_MINT_OFFSET,
    TOKEN_ACCOUNT_SIZE,
    TOKEN_PROGRAM,
)
from .models import Classification, MintRecord, TokenHolding, Unclassified

logger = logging.getLogger(__name__)

# Returns True when the blob looks like a mint
MintHeuristic = Callable[[bytes], bool]


def mint_authority_option_heuristic(data: bytes) -> bool:
    """Guess whether an extended account is a mint.

    A mint starts with its ``mint_authority`` COption tag: a u32 LE that
    is 0 (None) or 1 (Some).  A holding account starts with the mint
    pubkey, whose first four bytes are almost never of that form.  Not a
    structural guarantee: a mint pubkey beginning ``00 00 00 00`` or
    ``01 00 00 00`` is misread as a mint.
    """
    if len(data) < 4:
        return False
    (opt,) = struct.unpack_from("<I", data, 0)
    return opt in (0, 1) and data[1] == 0 and data[2] == 0 and data[3] == 0


def decode_account_data(payload: Any) -> bytes:
    """Decode an RPC ``data`` field into bytes.

    Accepts the ``[<base64>, "base64"]`` pair returned by
    ``getMultipleAccounts`` or a bare base64 string.  Undecodable input is
    logged and yields ``b""``, which classifies as ``Unclassified``.
    """
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    if isinstance(payload, (list, tuple)):
        if not payload:
            return b""
        encoding = payload[1] if len(payload) > 1 else "base64"
        if encoding != "base64":
            logger.warning("Unsupported account data encoding %r", encoding)
            return b""
        payload = payload[0]
    if not isinstance(payload, str):
        logger.warning("Unexpected account data type %s", type(payload).__name__)
        return b""
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        logger.warning("Base64 decode error: %s", exc)
        return b""


def read_token_holding(data: bytes) -> TokenHolding:
    """Extract mint and raw amount from a holding-account layout."""
    mint_bytes = data[TOKEN_ACCOUNT_MINT_OFFSET:TOKEN_ACCOUNT_MINT_OFFSET + PUBKEY_LENGTH]
    (amount,) = struct.unpack_from("<Q", data, TOKEN_ACCOUNT_AMOUNT_OFFSET)
    return TokenHolding(
        mint=base58.b58encode(mint_bytes).decode("ascii"),
        raw_amount=amount,
    )


class AccountClassifier:
    """Classify account blobs owned by the two token programs.

    Parameters
    ----------
    token_program:
        Fixed-layout program id; only exact 82 / 165 byte sizes match.
    token_2022_program:
        Extension-capable program id.
    mint_heuristic:
        Decides mint vs holding for extension-capable accounts larger
        than 165 bytes.
    """

    def __init__(
        self,
        token_program: str = TOKEN_PROGRAM,
        token_2022_program: str = TOKEN_2022_PROGRAM,
        *,
        mint_heuristic: MintHeuristic = mint_authority_option_heuristic,
    ) -> None:
        self.token_program = token_program
        self.token_2022_program = token_2022_program
        self.mint_heuristic = mint_heuristic

    @property
    def programs(self) -> frozenset[str]:
        return frozenset({self.token_program, self.token_2022_program})

    def classify(self, address: str, owner: str, data: bytes) -> Classification:
        """Classify the account at *address* owned by *owner*."""
        if owner not in self.programs:
            return _unclassified("not a token program")

        size = len(data)
        if size == TOKEN_ACCOUNT_SIZE:
            return self._holding(address, data, reason="token account size")
        if size == MINT_ACCOUNT_SIZE:
            return Classification(account=MintRecord(address=address), reason="mint size")

        if owner != self.token_2022_program:
            return _unclassified(f"unexpected size {size}")

        if MINT_ACCOUNT_SIZE < size < TOKEN_ACCOUNT_SIZE:
            return Classification(
                account=MintRecord(address=address),
                reason=f"extended mint ({size} bytes, below token account size)",
            )
        if size > TOKEN_ACCOUNT_SIZE:
            if self.mint_heuristic(data):
                return Classification(
                    account=MintRecord(address=address),
                    ambiguous=True,
                    reason=f"heuristic: mint authority option tag ({size} bytes)",
                )
            return self._holding(
                address, data,
                reason=f"heuristic: no mint authority option tag ({size} bytes)",
                ambiguous=True,
            )
        return _unclassified(f"too small ({size} bytes)")

    def _holding(
        self, address: str, data: bytes, *, reason: str, ambiguous: bool = False
    ) -> Classification:
        try:
            holding = read_token_holding(data)
        except (struct.error, ValueError) as exc:
            logger.warning("Failed to read token account %s: %s", address, exc)
            return _unclassified("malformed token account")
        return Classification(account=holding, ambiguous=ambiguous, reason=reason)


def _unclassified(reason: str) -> Classification:
    return Classification(account=Unclassified(reason=reason), reason=reason)
