"""
Account Enricher package initializer.

Exposes the enrichment entry points for external usage: ``enrich_tree``
for a whole decoded tree, ``strip_enrichment`` to normalise any tree back
to bare addresses.  The lower-level pieces (classifier, formatter, HTTP
clients) should be imported from their respective modules.
"""

from .enricher import EnrichmentEngine, EnrichmentSettings, enrich_tree  # noqa: F401
from .tree import extract_addresses, inject_enrichment, strip_enrichment  # noqa: F401

__all__ = [
    "EnrichmentEngine",
    "EnrichmentSettings",
    "enrich_tree",
    "extract_addresses",
    "inject_enrichment",
    "strip_enrichment",
]
