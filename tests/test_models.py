"""Unit tests for Pydantic models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from account_enricher.models import (
    AccountBlob,
    Classification,
    EnrichedTree,
    LabeledAnnotation,
    MintMetadata,
    MintRecord,
    TokenAnnotation,
    TokenHolding,
    Unclassified,
    dump_annotation,
)


class TestTokenAnnotation:

    def test_wire_shape(self):
        a = TokenAnnotation(
            address="ADDR", mint="MINT", symbol="USDC", decimals=6,
            formatted_balance="1.5", icon_url="https://icons/MINT.png",
        )
        assert dump_annotation(a) == {
            "__isEnriched": True,
            "__type": "token",
            "pubkey": "ADDR",
            "mint": "MINT",
            "symbol": "USDC",
            "decimals": 6,
            "balance": "1.5",
            "logoURI": "https://icons/MINT.png",
        }

    def test_accepts_aliases(self):
        a = TokenAnnotation.model_validate(
            {"__isEnriched": True, "__type": "token", "pubkey": "ADDR", "mint": "M", "balance": "2"}
        )
        assert a.address == "ADDR"
        assert a.formatted_balance == "2"
        assert a.symbol == "Unknown"

    def test_decimals_bounds(self):
        with pytest.raises(ValidationError):
            TokenAnnotation(address="A", mint="M", decimals=256)

    def test_label_assignable(self):
        a = TokenAnnotation(address="A", mint="M")
        a.label = "Vault"
        assert dump_annotation(a)["label"] == "Vault"


class TestLabeledAnnotation:

    def test_wire_shape(self):
        assert dump_annotation(LabeledAnnotation(address="A", label="Treasury")) == {
            "__isEnriched": True,
            "__type": "labeled",
            "pubkey": "A",
            "label": "Treasury",
        }

    def test_label_required(self):
        with pytest.raises(ValidationError):
            LabeledAnnotation(address="A")


class TestClassification:

    def test_discriminated_from_dict(self):
        c = Classification.model_validate({"account": {"kind": "mint", "address": "M"}})
        assert c.account == MintRecord(address="M")
        assert c.is_mint and not c.is_token_holding

    def test_holding(self):
        c = Classification(account=TokenHolding(mint="M", raw_amount=5), ambiguous=True)
        assert c.is_token_holding
        assert c.ambiguous

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            TokenHolding(mint="M", raw_amount=-1)

    def test_unclassified(self):
        c = Classification(account=Unclassified())
        assert not c.is_mint and not c.is_token_holding


class TestMisc:

    def test_mint_metadata_defaults(self):
        m = MintMetadata()
        assert m.symbol == "Unknown"
        assert m.decimals == 0
        assert m.name is None

    def test_account_blob_size(self):
        assert AccountBlob(owner="P", data=b"\x00" * 82).size == 82

    def test_enriched_tree_count(self):
        tree = EnrichedTree(raw={}, enriched={}, enrichment_map={"A": LabeledAnnotation(address="A", label="x")})
        assert tree.annotated_count == 1
