"""
Pydantic models used throughout the Account Enricher.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .constants import MAX_DECIMALS, UNKNOWN_SYMBOL


# ---------------------------------------------------------------------------
# Raw account data
# ---------------------------------------------------------------------------
class AccountBlob(BaseModel):
    """Raw bytes of one on-chain account plus the program that owns it."""

    owner: str = Field(..., description="Owning program address")
    data: bytes = Field(b"", description="Decoded account data")

    @property
    def size(self) -> int:
        return len(self.data)


# ---------------------------------------------------------------------------
# Classification results
# ---------------------------------------------------------------------------
class TokenHolding(BaseModel):
    """Account holding a quantity of a fungible token."""

    kind: Literal["token_holding"] = "token_holding"
    mint: str
    raw_amount: int = Field(0, ge=0, description="Amount in base units (u64)")


class MintRecord(BaseModel):
    """Account defining a fungible token; its own address is the mint."""

    kind: Literal["mint"] = "mint"
    address: str


class Unclassified(BaseModel):
    kind: Literal["unclassified"] = "unclassified"
    reason: str = ""


ClassifiedAccount = Union[TokenHolding, MintRecord, Unclassified]


class Classification(BaseModel):
    """Outcome of classifying one account blob.

    ``ambiguous`` is set when the layout was decided by a byte-pattern
    heuristic rather than by an exact size match, so callers can log or
    re-check those accounts instead of trusting the guess blindly.
    """

    account: ClassifiedAccount = Field(..., discriminator="kind")
    ambiguous: bool = False
    reason: str = ""

    @property
    def is_token_holding(self) -> bool:
        return isinstance(self.account, TokenHolding)

    @property
    def is_mint(self) -> bool:
        return isinstance(self.account, MintRecord)


# ---------------------------------------------------------------------------
# Token metadata
# ---------------------------------------------------------------------------
class MintMetadata(BaseModel):
    """Display metadata for a single mint."""

    symbol: str = Field(UNKNOWN_SYMBOL, description="Ticker / symbol")
    decimals: int = Field(0, ge=0, le=MAX_DECIMALS)
    name: Optional[str] = Field(None, description="Human-readable token name")
    icon_url: str = Field("", description="URL to the token logo")


# ---------------------------------------------------------------------------
# Annotations  (the structured replacement for an address leaf)
# ---------------------------------------------------------------------------
class TokenAnnotation(BaseModel):
    """Annotation for a token account or mint.

    ``formatted_balance`` is only set when the address is a holding
    account.  Serialised with ``by_alias=True`` the model produces the
    ``{"__isEnriched": true, "__type": "token", "pubkey": ...}`` shape
    the browsing UI renders.
    """

    model_config = ConfigDict(populate_by_name=True)

    is_enriched: Literal[True] = Field(True, alias="__isEnriched")
    kind: Literal["token"] = Field("token", alias="__type")
    address: str = Field(..., alias="pubkey")
    mint: str
    symbol: str = UNKNOWN_SYMBOL
    decimals: int = Field(0, ge=0, le=MAX_DECIMALS)
    formatted_balance: Optional[str] = Field(None, alias="balance")
    icon_url: Optional[str] = Field(None, alias="logoURI")
    name: Optional[str] = None
    label: Optional[str] = None


class LabeledAnnotation(BaseModel):
    """Annotation for an address that only carries a human label."""

    model_config = ConfigDict(populate_by_name=True)

    is_enriched: Literal[True] = Field(True, alias="__isEnriched")
    kind: Literal["labeled"] = Field("labeled", alias="__type")
    address: str = Field(..., alias="pubkey")
    label: str


Annotation = Union[TokenAnnotation, LabeledAnnotation]
EnrichmentMap = dict[str, Annotation]


def dump_annotation(annotation: Annotation) -> dict[str, Any]:
    """Serialise an annotation in the UI wire shape (aliases, no nulls)."""
    return annotation.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Top-level result
# ---------------------------------------------------------------------------
@dataclass
class EnrichedTree:
    """A decoded tree before and after enrichment.

    ``enrichment_map`` is kept so historic snapshots of the same account
    can be re-injected without fetching anything again.
    """

    raw: Any
    enriched: Any
    enrichment_map: EnrichmentMap = field(default_factory=dict)

    @property
    def annotated_count(self) -> int:
        return len(self.enrichment_map)
