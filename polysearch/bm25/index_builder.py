"""
Inverted index builder - postings sets plus corpus-wide BM25 statistics.

One index is built per catalog version and never mutated afterwards. A rebuild
produces a new InvertedIndex object; callers swap the reference, so readers see
either the complete old index or the complete new one.

IDF formula (BM25 with +1 floor, never negative):
    idf(term) = ln((N - df + 0.5) / (df + 0.5) + 1)

Where:
    N  = number of documents in the corpus version
    df = number of documents whose postings set contains the term
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Sequence, Set

from ..config import MIN_PARTIAL_LENGTH
from .tokenizer import remove_stopwords, tokenize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorpusStats:
    """Statistics derived from one corpus version"""
    average_document_length: float
    idf: Mapping[str, float] = field(default_factory=dict)
    document_count: int = 0

    def get_idf(self, term: str) -> float:
        """IDF of term, 0.0 for terms absent from the corpus"""
        return self.idf.get(term, 0.0)

    def to_dict(self) -> dict:
        return {
            "average_document_length": self.average_document_length,
            "idf": dict(self.idf),
            "document_count": self.document_count,
        }


def compute_idf(document_count: int, document_frequency: int) -> float:
    """Standard BM25 IDF with +1 inside the log, so idf >= 0 even when df == N."""
    return math.log(
        (document_count - document_frequency + 0.5) / (document_frequency + 0.5) + 1
    )


def is_partial_match(a: str, b: str, min_length: int = MIN_PARTIAL_LENGTH) -> bool:
    """
    Prefix/suffix overlap between two terms, in either direction.

    The shorter term must be at least min_length characters long.

    Examples:
        >>> is_partial_match("btc", "btcusd")
        True
        >>> is_partial_match("coin", "bitcoin")
        True
        >>> is_partial_match("s", "sol")
        False
    """
    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
    if len(shorter) < min_length:
        return False
    return longer.startswith(shorter) or longer.endswith(shorter)


class InvertedIndex:
    """
    Term -> postings set (document positions), built once per corpus version.

    Documents whose searchable text has no indexable terms are skipped; their
    positions never appear in any postings set.
    """

    def __init__(
        self,
        postings: Mapping[str, FrozenSet[int]],
        stats: CorpusStats,
        skipped: Sequence[int] = (),
        min_partial_length: int = MIN_PARTIAL_LENGTH,
    ):
        self._postings = MappingProxyType(dict(postings))
        self.stats = stats
        self.skipped = tuple(skipped)
        self.min_partial_length = min_partial_length

    @classmethod
    def build(cls, texts: Sequence[str], min_partial_length: int = MIN_PARTIAL_LENGTH) -> "InvertedIndex":
        """
        Build index and statistics from document texts.

        Args:
            texts: Searchable text per document, in catalog order
                (list position == document position)
            min_partial_length: Minimum length for fuzzy prefix/suffix expansion at search time

        Returns:
            Fully built, immutable InvertedIndex

        Example:
            >>> index = InvertedIndex.build(["Bitcoin to hit $100k", "Fed rate cut"])
            >>> index.postings("bitcoin")
            frozenset({0})
            >>> index.stats.average_document_length
            3.0
        """
        postings: Dict[str, Set[int]] = defaultdict(set)
        skipped: List[int] = []
        total_tokens = 0

        for position, text in enumerate(texts):
            terms = remove_stopwords(tokenize(text or ""))
            if not terms:
                # Empty or all-stopword text: nothing to index
                skipped.append(position)
                continue

            total_tokens += len(terms)
            for term in set(terms):
                postings[term].add(position)

        document_count = len(texts)
        # Guard against 0/0: an empty corpus is treated as length 1
        average_length = total_tokens / document_count if total_tokens > 0 else 1.0

        idf = {
            term: compute_idf(document_count, len(positions))
            for term, positions in postings.items()
        }

        stats = CorpusStats(
            average_document_length=average_length,
            idf=MappingProxyType(idf),
            document_count=document_count,
        )

        if skipped:
            logger.debug(f"Skipped {len(skipped)} documents with no indexable text: {skipped}")
        logger.debug(
            f"Built inverted index: {len(postings)} terms from {document_count} documents "
            f"(avgdl={average_length:.2f})"
        )

        return cls(
            postings={term: frozenset(positions) for term, positions in postings.items()},
            stats=stats,
            skipped=skipped,
            min_partial_length=min_partial_length,
        )

    @property
    def terms(self) -> FrozenSet[str]:
        return frozenset(self._postings)

    def postings(self, term: str) -> FrozenSet[int]:
        return self._postings.get(term, frozenset())

    def search(self, query: str) -> List[int]:
        """
        Retrieve candidate positions for a query (high recall, low precision).

        Union of the postings of every non-stopword query term, plus the postings
        of any index term that is a prefix/suffix superstring (or substring) of a
        query term.

        Returns:
            Sorted, de-duplicated document positions; empty if the query has no
            non-stopword tokens
        """
        query_terms = set(remove_stopwords(tokenize(query)))
        if not query_terms:
            return []

        candidates: Set[int] = set()
        for term in query_terms:
            candidates.update(self._postings.get(term, ()))

        for index_term, positions in self._postings.items():
            if positions <= candidates:
                continue
            if any(is_partial_match(q, index_term, self.min_partial_length) for q in query_terms):
                candidates.update(positions)

        return sorted(candidates)

    def __len__(self) -> int:
        return len(self._postings)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InvertedIndex):
            return NotImplemented
        return (
            dict(self._postings) == dict(other._postings)
            and self.stats.to_dict() == other.stats.to_dict()
        )
