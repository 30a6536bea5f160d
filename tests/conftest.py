"""Shared test fixtures for the Account Enricher test suite."""

from __future__ import annotations

import sys
import os

# Ensure src/ is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import struct
from typing import Any, Optional

import base58
import pytest

from account_enricher.constants import TOKEN_2022_PROGRAM, TOKEN_PROGRAM
from account_enricher.enricher import EnrichmentEngine, EnrichmentSettings
from account_enricher.models import AccountBlob

ICON_BASE = "https://icons.example.com/tokens"


# ---------------------------------------------------------------------------
# Byte-layout builders
# ---------------------------------------------------------------------------

def make_address(seed: int) -> str:
    """Deterministic base-58 address from a one-byte seed."""
    return base58.b58encode(bytes([seed]) * 32).decode("ascii")


def token_account_bytes(mint: str, amount: int, *, size: int = 165) -> bytes:
    """Holding-account layout: mint | owner | amount u64 LE | padding."""
    data = base58.b58decode(mint) + bytes(32) + struct.pack("<Q", amount)
    return data + bytes(size - len(data))


def mint_account_bytes(*, decimals: int = 6, size: int = 82, authority: bool = True) -> bytes:
    """Mint layout: COption<authority> | supply | decimals | initialized | COption<freeze>."""
    data = (
        struct.pack("<I", 1 if authority else 0)
        + (bytes([7]) * 32 if authority else bytes(32))
        + struct.pack("<Q", 1_000_000)
        + bytes([decimals, 1])
        + struct.pack("<I", 0)
        + bytes(32)
    )
    return data + bytes(size - len(data))


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------

class FakeResolver:
    """In-memory account resolver recording every batch it receives."""

    def __init__(self, accounts: dict[str, AccountBlob], *, fail_batches: set[int] = frozenset()):
        self.accounts = accounts
        self.fail_batches = fail_batches
        self.calls: list[list[str]] = []

    async def get_multiple_accounts(self, addresses: list[str]) -> Optional[list[Optional[AccountBlob]]]:
        self.calls.append(list(addresses))
        if len(self.calls) - 1 in self.fail_batches:
            return None
        return [self.accounts.get(a) for a in addresses]


class FakeMetadataSource:
    """In-memory metadata service recording every batch it receives."""

    def __init__(self, entries: dict[str, dict[str, Any]], *, fail_batches: set[int] = frozenset()):
        self.entries = entries
        self.fail_batches = fail_batches
        self.calls: list[list[str]] = []

    async def lookup(self, mints: list[str]) -> Optional[dict[str, dict[str, Any]]]:
        self.calls.append(list(mints))
        if len(self.calls) - 1 in self.fail_batches:
            return None
        return {m: self.entries[m] for m in mints if m in self.entries}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings():
    return EnrichmentSettings(
        token_program=TOKEN_PROGRAM,
        token_2022_program=TOKEN_2022_PROGRAM,
        icon_base_url=ICON_BASE,
    )


@pytest.fixture
def holder_address():
    return make_address(10)


@pytest.fixture
def mint_address():
    return make_address(20)


@pytest.fixture
def wallet_address():
    return make_address(30)


@pytest.fixture
def make_engine(settings):
    def _make(accounts=None, metadata=None, **kwargs):
        resolver = FakeResolver(accounts or {}, fail_batches=kwargs.pop("fail_accounts", frozenset()))
        source = FakeMetadataSource(metadata or {}, fail_batches=kwargs.pop("fail_metadata", frozenset()))
        engine = EnrichmentEngine(resolver, source, settings, **kwargs)
        return engine, resolver, source

    return _make
