"""
PolySearch - match free-text search queries to live prediction markets.

Ranking core:
- bm25: tokenizer, inverted index with corpus statistics, BM25 + match bonus scorer
- catalog: canonical market documents, Gamma record normalization, versioned publication
- resolver: query cleaning, index retrieval, scoring, global scan and external fallbacks
- search: external (Gamma API) search backend with cancellation, timeout and cache

Usage:
    from polysearch import CatalogStore, QueryResolver
    from polysearch.search import get_external_search

    store = CatalogStore()
    backend = get_external_search()
    if backend:
        store.refresh(backend.fetch_active_events)

    resolver = QueryResolver(store, external_search=backend)
    result = resolver.resolve("bitcoin 150k")
    if result.matched:
        print(result.document.display_title, result.score)
"""

from .catalog import CatalogStore, CorpusVersion, Document
from .resolver import QueryResolver, ResolveResult, ResolveStage, clean_query

__version__ = "0.1.0"

__all__ = [
    "CatalogStore",
    "CorpusVersion",
    "Document",
    "QueryResolver",
    "ResolveResult",
    "ResolveStage",
    "clean_query",
]
