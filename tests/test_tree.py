"""Tests for address extraction, annotation injection and stripping."""

from __future__ import annotations

import copy

import pytest

from account_enricher.models import LabeledAnnotation, TokenAnnotation, dump_annotation
from account_enricher.tree import (
    extract_addresses,
    extract_addresses_ordered,
    inject_enrichment,
    is_address,
    strip_enrichment,
    trees_equal,
)

from conftest import make_address

A = make_address(1)
B = make_address(2)
C = make_address(3)


@pytest.fixture
def enrichment_map():
    return {
        A: TokenAnnotation(
            address=A, mint=C, symbol="USDC", decimals=6,
            formatted_balance="1.5", icon_url=f"https://icons/{C}.png",
        ),
        B: LabeledAnnotation(address=B, label="Treasury"),
    }


@pytest.fixture
def decoded_tree():
    return {
        "authority": A,
        "bump": 254,
        "enabled": True,
        "closed_at": None,
        "vaults": [A, B, {"nested": B, "amount": "1000"}],
        "pair": (A, 3),
        "note": "plain text",
    }


class TestIsAddress:

    def test_system_program(self):
        assert is_address("11111111111111111111111111111111")

    @pytest.mark.parametrize("value", [
        "short",
        "0" * 40,                 # '0' is not base-58
        "O" * 40,
        "I" * 40,
        "l" * 40,
        "1" * 31,
        "1" * 45,
        f"{A}\n",
        42,
        None,
    ])
    def test_rejects(self, value):
        assert not is_address(value)


class TestExtract:

    def test_collects_nested_strings(self, decoded_tree):
        assert extract_addresses(decoded_tree) == {A, B}

    def test_order_follows_first_visit(self):
        tree = {"x": [B, A], "y": C, "z": B}
        assert extract_addresses_ordered(tree) == [B, A, C]

    def test_ignores_keys_and_non_strings(self):
        tree = {A: 1, "n": 3.5, "b": False, "z": None}
        assert extract_addresses(tree) == set()

    def test_scalar_root(self):
        assert extract_addresses(A) == {A}
        assert extract_addresses(12) == set()

    def test_idempotent_over_flattened_set(self):
        addresses = {A, B, C}
        assert extract_addresses(sorted(addresses)) == addresses

    def test_cycle_terminates(self):
        tree: dict = {"self": None, "owner": A}
        tree["self"] = tree
        items: list = [B]
        items.append(items)
        tree["items"] = items
        assert extract_addresses(tree) == {A, B}

    def test_annotation_contributes_address(self, enrichment_map):
        assert extract_addresses({"x": enrichment_map[A]}) == {A}


class TestInject:

    def test_replaces_mapped_leaves(self, decoded_tree, enrichment_map):
        out = inject_enrichment(decoded_tree, enrichment_map)
        assert out["authority"] is enrichment_map[A]
        assert out["vaults"][1] is enrichment_map[B]
        assert out["vaults"][2]["nested"] is enrichment_map[B]
        assert out["vaults"][2]["amount"] == "1000"
        assert out["bump"] == 254
        assert out["closed_at"] is None
        assert out["note"] == "plain text"

    def test_preserves_container_types_and_order(self, decoded_tree, enrichment_map):
        out = inject_enrichment(decoded_tree, enrichment_map)
        assert isinstance(out["pair"], tuple)
        assert list(out) == list(decoded_tree)

    def test_does_not_mutate_input(self, decoded_tree, enrichment_map):
        before = copy.deepcopy(decoded_tree)
        map_before = dict(enrichment_map)
        inject_enrichment(decoded_tree, enrichment_map)
        assert decoded_tree == before
        assert enrichment_map == map_before

    def test_wrapped_legacy_form(self, enrichment_map):
        out = inject_enrichment({"vault": f"Vault ({A})"}, enrichment_map)
        assert out["vault"] is enrichment_map[A]

    def test_wrapped_form_strips_to_bare_address(self, enrichment_map):
        out = strip_enrichment(inject_enrichment({"vault": f"Vault ({A})"}, enrichment_map))
        assert out == {"vault": A}

    def test_wrapped_unknown_address_untouched(self, enrichment_map):
        leaf = f"Vault ({C})"
        assert inject_enrichment(leaf, enrichment_map) == leaf

    def test_unmapped_address_untouched(self, enrichment_map):
        assert inject_enrichment(C, enrichment_map) == C

    def test_empty_map_is_identity(self, decoded_tree):
        assert inject_enrichment(decoded_tree, {}) == decoded_tree

    def test_existing_annotations_pass_through(self, enrichment_map):
        node = enrichment_map[A]
        assert inject_enrichment([node], enrichment_map)[0] is node


class TestStrip:

    def test_round_trip(self, decoded_tree, enrichment_map):
        assert strip_enrichment(inject_enrichment(decoded_tree, enrichment_map)) == decoded_tree

    def test_round_trip_deep_nesting(self, enrichment_map):
        tree = [[[{"k": [A, (B, [A])]}]], "x", 0]
        assert strip_enrichment(inject_enrichment(tree, enrichment_map)) == tree

    def test_serialised_annotations(self, enrichment_map):
        historic = {
            "authority": dump_annotation(enrichment_map[A]),
            "list": [dump_annotation(enrichment_map[B])],
        }
        assert strip_enrichment(historic) == {"authority": A, "list": [B]}

    def test_lookalike_dict_untouched(self):
        node = {"__isEnriched": False, "pubkey": A}
        assert strip_enrichment(node) == node

    def test_plain_values_pass_through(self):
        assert strip_enrichment(None) is None
        assert strip_enrichment(5) == 5
        assert strip_enrichment("text") == "text"

    def test_idempotent(self, decoded_tree, enrichment_map):
        once = strip_enrichment(inject_enrichment(decoded_tree, enrichment_map))
        assert strip_enrichment(once) == once


class TestTreesEqual:

    def test_enriched_vs_raw(self, decoded_tree, enrichment_map):
        assert trees_equal(inject_enrichment(decoded_tree, enrichment_map), decoded_tree)

    def test_detects_real_change(self, decoded_tree, enrichment_map):
        changed = dict(decoded_tree, bump=1)
        assert not trees_equal(inject_enrichment(decoded_tree, enrichment_map), changed)
