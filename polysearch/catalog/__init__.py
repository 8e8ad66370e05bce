"""
Market catalog: canonical documents, ingestion normalization, versioned publication.

Usage:
    from polysearch.catalog import CatalogStore

    store = CatalogStore()
    store.refresh(gamma_client.fetch_active_events)   # raw records -> new version
    corpus = store.current                            # immutable snapshot
"""

from .models import CorpusVersion, Document
from .normalizer import normalize_record, normalize_records
from .store import CatalogStore

__all__ = [
    "CatalogStore",
    "CorpusVersion",
    "Document",
    "normalize_record",
    "normalize_records",
]
