"""
Published catalog: single-writer / many-readers swap of CorpusVersion.

A refresh builds the next CorpusVersion off to the side (documents, index and
statistics together) and then publishes it with one reference assignment.
Readers grab `store.current` once per query and work against that snapshot,
so they never see a half-built index or stats from another version.
"""

import itertools
import logging
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Union

from .models import CorpusVersion, Document
from .normalizer import normalize_records

logger = logging.getLogger(__name__)

CatalogFetcher = Callable[[], Iterable[Union[Document, Dict[str, Any]]]]


class CatalogStore:
    """Holds the currently published corpus version."""

    def __init__(self, documents: Optional[Sequence[Document]] = None):
        self._versions = itertools.count(1)
        self._current = CorpusVersion.empty()
        if documents:
            self.publish(documents)

    @property
    def current(self) -> CorpusVersion:
        return self._current

    @property
    def version(self) -> int:
        return self._current.version

    def publish(self, documents: Sequence[Document]) -> CorpusVersion:
        """
        Build a new corpus version and make it current.

        Args:
            documents: Canonical documents in catalog order

        Returns:
            The newly published version (the previous one is discarded)
        """
        corpus = CorpusVersion.build(documents, version=next(self._versions))
        self._current = corpus  # atomic publish
        return corpus

    def refresh(self, fetch_catalog: CatalogFetcher) -> CorpusVersion:
        """
        Pull a fresh catalog from a collaborator and publish it.

        Raw records are normalized, de-duplicated by id and ordered by volume
        (highest first). If the fetch fails or yields nothing, the current
        version stays published.

        Args:
            fetch_catalog: Callable returning Documents or raw Gamma records

        Returns:
            The version that is current after the call
        """
        try:
            records = list(fetch_catalog() or [])
            raw = [r for r in records if not isinstance(r, Document)]
            ready = [r for r in records if isinstance(r, Document)]
            documents = ready + normalize_records(raw)
        except Exception as e:
            logger.error(f"Catalog refresh failed, keeping version {self.version}: {e}")
            return self._current

        unique: Dict[str, Document] = {}
        for doc in documents:
            unique.setdefault(doc.id, doc)

        if not unique:
            logger.warning(f"Catalog refresh returned no usable markets, keeping version {self.version}")
            return self._current

        ordered = sorted(unique.values(), key=lambda d: d.volume, reverse=True)
        corpus = self.publish(ordered)
        logger.info(f"Catalog refreshed: version {corpus.version}, {len(corpus)} markets")
        return corpus

    def get_corpus_stats(self) -> dict:
        """Statistics of the published version (for instrumentation/debugging)"""
        corpus = self._current
        stats = corpus.stats.to_dict()
        stats["version"] = corpus.version
        return stats
