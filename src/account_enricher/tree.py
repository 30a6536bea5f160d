"""
Walking decoded account trees.

A decoded account is a nested value produced by a schema decoder::

    Value = None | bool | int | float | str
          | list[Value] | tuple[Value, ...] | dict[str, Value]
          | TokenAnnotation | LabeledAnnotation

- ``extract_addresses`` collects every string leaf shaped like an address
- ``inject_enrichment`` swaps address leaves for their annotations
- ``strip_enrichment`` turns annotations (model instances or their
  serialised dict form) back into bare address strings

``strip_enrichment(inject_enrichment(tree, m))`` restores every leaf that
was a key of ``m``.  The exception is the wrapped form ``"Vault (<addr>)"``:
it is annotated by the inner address, so stripping yields the bare
``<addr>`` and the prefix is lost.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Union

from .constants import (
    ADDRESS_PATTERN,
    ANNOTATION_ADDRESS_KEY,
    ENRICHED_MARKER,
    WRAPPED_ADDRESS_PATTERN,
)
from .models import Annotation, LabeledAnnotation, TokenAnnotation

Scalar = Union[None, bool, int, float, str]
Value = Union[Scalar, list["Value"], tuple["Value", ...], dict[str, "Value"], Annotation]

_ANNOTATION_TYPES = (TokenAnnotation, LabeledAnnotation)


def is_address(value: Any, pattern: re.Pattern[str] = ADDRESS_PATTERN) -> bool:
    """Shape check only: base-58 alphabet, 32–44 characters."""
    return isinstance(value, str) and pattern.fullmatch(value) is not None


def is_serialised_annotation(value: Any) -> bool:
    """True for a dict in the ``{"__isEnriched": true, "pubkey": ...}`` wire shape."""
    return (
        isinstance(value, dict)
        and value.get(ENRICHED_MARKER) is True
        and isinstance(value.get(ANNOTATION_ADDRESS_KEY), str)
    )


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def extract_addresses_ordered(
    tree: Value, pattern: re.Pattern[str] = ADDRESS_PATTERN
) -> list[str]:
    """Return the distinct address-shaped strings in *tree*, in visit order.

    Mapping values are visited in iteration order; keys are ignored.
    Containers are tracked by identity, so a cyclic structure terminates.
    """
    found: dict[str, None] = {}
    visited: set[int] = set()
    stack: list[Any] = [tree]

    while stack:
        node = stack.pop()
        if isinstance(node, str):
            if pattern.fullmatch(node):
                found.setdefault(node, None)
            continue
        if isinstance(node, _ANNOTATION_TYPES):
            found.setdefault(node.address, None)
            continue
        if isinstance(node, (list, tuple, dict)):
            if id(node) in visited:
                continue
            visited.add(id(node))
            children = list(node.values()) if isinstance(node, dict) else list(node)
            # Reversed so the stack pops children left to right
            stack.extend(reversed(children))
    return list(found)


def extract_addresses(tree: Value, pattern: re.Pattern[str] = ADDRESS_PATTERN) -> set[str]:
    """Return every distinct address-shaped string leaf of *tree*."""
    return set(extract_addresses_ordered(tree, pattern))


# ---------------------------------------------------------------------------
# Injection / stripping
# ---------------------------------------------------------------------------

def _lookup_leaf(value: str, enrichment_map: Mapping[str, Annotation]) -> Value:
    annotation = enrichment_map.get(value)
    if annotation is not None:
        return annotation
    # Pre-formatted leaves such as "Vault (<address>)"
    match = WRAPPED_ADDRESS_PATTERN.search(value)
    if match:
        annotation = enrichment_map.get(match.group(1))
        if annotation is not None:
            return annotation
    return value


def inject_enrichment(tree: Value, enrichment_map: Mapping[str, Annotation]) -> Value:
    """Return a copy of *tree* with mapped address leaves replaced by annotations.

    Lists, tuples and dicts are rebuilt (dict key order preserved); other
    values, including annotations already present, are returned as-is.
    *enrichment_map* is only read.
    A leaf of the form ``"Name (<addr>)"`` is replaced by the annotation of
    ``<addr>``; the surrounding text does not survive a later strip.
    """
    if isinstance(tree, str):
        return _lookup_leaf(tree, enrichment_map)
    if isinstance(tree, list):
        return [inject_enrichment(item, enrichment_map) for item in tree]
    if isinstance(tree, tuple):
        return tuple(inject_enrichment(item, enrichment_map) for item in tree)
    if isinstance(tree, dict) and not is_serialised_annotation(tree):
        return {key: inject_enrichment(val, enrichment_map) for key, val in tree.items()}
    return tree


def strip_enrichment(tree: Value) -> Value:
    """Return a copy of *tree* with every annotation replaced by its address.

    Handles annotation models and their serialised dict form, so historic
    payloads that were stored enriched normalise the same way as live ones.
    """
    if isinstance(tree, _ANNOTATION_TYPES):
        return tree.address
    if is_serialised_annotation(tree):
        return tree[ANNOTATION_ADDRESS_KEY]
    if isinstance(tree, list):
        return [strip_enrichment(item) for item in tree]
    if isinstance(tree, tuple):
        return tuple(strip_enrichment(item) for item in tree)
    if isinstance(tree, dict):
        return {key: strip_enrichment(val) for key, val in tree.items()}
    return tree


def trees_equal(left: Value, right: Value) -> bool:
    """Compare two trees with enrichment ignored on both sides."""
    return strip_enrichment(left) == strip_enrichment(right)
