"""
Command line interface for the Account Enricher.

Usage::

    python src/main.py --input decoded.json [--labels labels.json] [--json]
    python src/main.py --input enriched.json --strip
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import os
from typing import Any

# Ensure ``src/`` is on the import path
sys.path.insert(0, os.path.dirname(__file__))

from pydantic import BaseModel

from account_enricher.data_sources._clients import close_clients
from account_enricher.enricher import enrich_tree
from account_enricher.labels import (
    chain_label_lookups,
    known_label,
    load_label_file,
    static_label_lookup,
)
from account_enricher.logging_config import setup_logging
from account_enricher.models import TokenAnnotation, dump_annotation
from account_enricher.tree import strip_enrichment


def _encode(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return dump_annotation(obj)  # type: ignore[arg-type]
    if isinstance(obj, (bytes, bytearray)):
        return obj.hex()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _read_tree(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


async def _run(args: argparse.Namespace) -> None:
    """Async entry point."""
    tree = _read_tree(args.input)

    if args.strip:
        print(json.dumps(strip_enrichment(tree), indent=2, default=_encode))
        return

    user_labels = static_label_lookup(load_label_file(args.labels)) if args.labels else None
    lookup = chain_label_lookups(user_labels, known_label)
    try:
        result = await enrich_tree(tree, lookup)
    finally:
        await close_clients()

    if args.as_json:
        print(json.dumps(result.enriched, indent=2, default=_encode))
        return

    # Pretty print
    print("=" * 60)
    print("  Account Enricher – Results")
    print("=" * 60)
    print(f"  Annotated addresses : {result.annotated_count}")
    print("-" * 60)
    for address, annotation in result.enrichment_map.items():
        if isinstance(annotation, TokenAnnotation):
            balance = f" {annotation.formatted_balance}" if annotation.formatted_balance else ""
            detail = f"{annotation.symbol}{balance}"
        else:
            detail = ""
        label = f" [{annotation.label}]" if annotation.label else ""
        print(f"  {address[:4]}…{address[-4:]}  {detail}{label}")
    print("=" * 60)


def main() -> None:
    """Entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Annotate addresses in a decoded account tree with token info and labels"
    )
    parser.add_argument(
        "--input",
        required=True,
        help="Path to the decoded account tree (JSON), or - for stdin",
    )
    parser.add_argument(
        "--labels",
        help="Optional JSON file mapping address → label",
    )
    parser.add_argument(
        "--strip",
        action="store_true",
        help="Strip annotations from an enriched tree instead of enriching it",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="as_json",
        help="Output the enriched tree as JSON",
    )
    args = parser.parse_args()
    setup_logging()
    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
