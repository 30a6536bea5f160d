"""
Enrichment engine for decoded account trees.

Pipeline for one decoded tree::

    extract_addresses → build_enrichment_map → inject_enrichment

``build_enrichment_map`` resolves addresses to raw accounts in batches of
up to 100, classifies each account as a token holding or a mint, looks up
mint metadata in batches of up to 50, formats balances, and finally
attaches user labels.  Every external failure degrades the affected batch
to "nothing known" and processing continues: a partially annotated tree
is more useful than none, so ``build_enrichment_map`` never raises for
lookup failures.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Protocol

from pydantic import BaseModel, Field

import config

from .amounts import format_amount
from .batching import BatchPolicy
from .classifier import AccountClassifier, MintHeuristic, mint_authority_option_heuristic
from .constants import ADDRESS_PATTERN, TOKEN_2022_PROGRAM, TOKEN_PROGRAM
from .data_sources._clients import get_metadata_client, get_rpc_client
from .labels import LabelLookup
from .logging_config import generate_request_id, request_id_ctx
from .metadata import MetadataSource, default_metadata, fetch_mint_metadata
from .models import (
    AccountBlob,
    Annotation,
    EnrichedTree,
    EnrichmentMap,
    LabeledAnnotation,
    MintMetadata,
    MintRecord,
    TokenAnnotation,
    TokenHolding,
)
from .tree import Value, extract_addresses_ordered, inject_enrichment

logger = logging.getLogger(__name__)


class AccountResolver(Protocol):
    async def get_multiple_accounts(
        self, addresses: list[str]
    ) -> Optional[list[Optional[AccountBlob]]]:
        ...


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
class EnrichmentSettings(BaseModel):
    """Everything the engine needs that is not an external collaborator."""

    token_program: str = TOKEN_PROGRAM
    token_2022_program: str = TOKEN_2022_PROGRAM
    icon_base_url: str = Field(..., description="Base URL of <mint>.png token icons")
    account_batch_size: int = Field(100, ge=1, le=100)
    metadata_batch_size: int = Field(50, ge=1, le=50)
    max_in_flight: int = Field(1, ge=1)

    @classmethod
    def from_config(cls) -> "EnrichmentSettings":
        return cls(
            token_program=config.TOKEN_PROGRAM_ID,
            token_2022_program=config.TOKEN_2022_PROGRAM_ID,
            icon_base_url=config.TOKEN_ICON_BASE_URL,
            account_batch_size=config.ACCOUNT_BATCH_SIZE,
            metadata_batch_size=config.METADATA_BATCH_SIZE,
            max_in_flight=config.MAX_IN_FLIGHT_BATCHES,
        )

    @property
    def account_policy(self) -> BatchPolicy:
        return BatchPolicy(self.account_batch_size, self.max_in_flight)

    @property
    def metadata_policy(self) -> BatchPolicy:
        return BatchPolicy(self.metadata_batch_size, self.max_in_flight)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
class EnrichmentEngine:
    """Turn address leaves of decoded trees into token / label annotations."""

    def __init__(
        self,
        resolver: AccountResolver,
        metadata_source: MetadataSource,
        settings: EnrichmentSettings | None = None,
        *,
        mint_heuristic: MintHeuristic = mint_authority_option_heuristic,
    ) -> None:
        self.resolver = resolver
        self.metadata_source = metadata_source
        self.settings = settings or EnrichmentSettings.from_config()
        self.classifier = AccountClassifier(
            self.settings.token_program,
            self.settings.token_2022_program,
            mint_heuristic=mint_heuristic,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def enrich(
        self, tree: Value, label_lookup: Optional[LabelLookup] = None
    ) -> EnrichedTree:
        """Extract, enrich and inject one decoded tree."""
        token = request_id_ctx.set(generate_request_id())
        try:
            addresses = extract_addresses_ordered(tree, ADDRESS_PATTERN)
            enrichment_map = await self.build_enrichment_map(addresses, label_lookup)
            enriched = inject_enrichment(tree, enrichment_map)
            logger.info(
                "Enriched %d of %d addresses", len(enrichment_map), len(addresses)
            )
            return EnrichedTree(raw=tree, enriched=enriched, enrichment_map=enrichment_map)
        finally:
            request_id_ctx.reset(token)

    def reinject(self, tree: Value, enrichment_map: Mapping[str, Annotation]) -> EnrichedTree:
        """Apply an existing map to another tree (e.g. a historic snapshot)."""
        return EnrichedTree(
            raw=tree,
            enriched=inject_enrichment(tree, enrichment_map),
            enrichment_map=dict(enrichment_map),
        )

    async def build_enrichment_map(
        self,
        addresses: Iterable[str],
        label_lookup: Optional[LabelLookup] = None,
    ) -> EnrichmentMap:
        """Build the address → annotation map for *addresses*.

        Batches are processed in the order the addresses were supplied.
        """
        ordered = list(dict.fromkeys(addresses))
        enrichment_map: EnrichmentMap = {}
        if not ordered:
            return enrichment_map

        for batch_map in await self.settings.account_policy.run(ordered, self._enrich_batch):
            enrichment_map.update(batch_map)

        if label_lookup is not None:
            self._apply_labels(ordered, enrichment_map, label_lookup)
        return enrichment_map

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _resolve(self, batch: list[str]) -> list[Optional[AccountBlob]]:
        try:
            blobs = await self.resolver.get_multiple_accounts(batch)
        except Exception as exc:
            logger.warning(
                "Account lookup raised for %d addresses: %s", len(batch), exc, exc_info=True
            )
            blobs = None
        if blobs is None:
            logger.warning("Account lookup failed for %d addresses – batch skipped", len(batch))
            return [None] * len(batch)
        return list(blobs)

    async def _enrich_batch(self, batch: list[str]) -> EnrichmentMap:
        blobs = await self._resolve(batch)

        holdings: list[tuple[str, TokenHolding]] = []
        mint_records: list[str] = []
        mints: dict[str, None] = {}

        for address, blob in zip(batch, blobs):
            if blob is None:
                continue
            result = self.classifier.classify(address, blob.owner, blob.data)
            if result.ambiguous:
                logger.debug("Ambiguous layout for %s: %s", address, result.reason)
            account = result.account
            if isinstance(account, TokenHolding):
                holdings.append((address, account))
                mints.setdefault(account.mint, None)
            elif isinstance(account, MintRecord):
                mint_records.append(account.address)
                mints.setdefault(account.address, None)

        if not mints:
            return {}

        metadata = await fetch_mint_metadata(
            mints,
            self.metadata_source,
            policy=self.settings.metadata_policy,
            icon_base_url=self.settings.icon_base_url,
        )

        batch_map: EnrichmentMap = {}
        for address, holding in holdings:
            info = self._metadata_for(holding.mint, metadata)
            batch_map[address] = self._token_annotation(
                address, holding.mint, info,
                formatted_balance=format_amount(holding.raw_amount, info.decimals),
            )
        for address in mint_records:
            info = self._metadata_for(address, metadata)
            batch_map[address] = self._token_annotation(address, address, info)
        return batch_map

    def _metadata_for(self, mint: str, metadata: Mapping[str, MintMetadata]) -> MintMetadata:
        info = metadata.get(mint)
        if info is None:
            info = default_metadata(mint, self.settings.icon_base_url)
        return info

    @staticmethod
    def _token_annotation(
        address: str,
        mint: str,
        info: MintMetadata,
        *,
        formatted_balance: Optional[str] = None,
    ) -> TokenAnnotation:
        return TokenAnnotation(
            address=address,
            mint=mint,
            symbol=info.symbol,
            decimals=info.decimals,
            formatted_balance=formatted_balance,
            icon_url=info.icon_url,
            name=info.name,
        )

    @staticmethod
    def _apply_labels(
        addresses: list[str],
        enrichment_map: EnrichmentMap,
        label_lookup: LabelLookup,
    ) -> None:
        for address in addresses:
            label = label_lookup(address)
            if not label:
                continue
            existing = enrichment_map.get(address)
            if existing is None:
                enrichment_map[address] = LabeledAnnotation(address=address, label=label)
            else:
                # A token can be both classified and labeled
                existing.label = label


# ---------------------------------------------------------------------------
# Convenience entry point (singleton clients)
# ---------------------------------------------------------------------------

async def enrich_tree(
    tree: Value,
    label_lookup: Optional[LabelLookup] = None,
    *,
    settings: EnrichmentSettings | None = None,
) -> EnrichedTree:
    """Enrich *tree* with the process-wide RPC and metadata clients."""
    engine = EnrichmentEngine(get_rpc_client(), get_metadata_client(), settings)
    return await engine.enrich(tree, label_lookup)
