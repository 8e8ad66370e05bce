"""
BM25 (Best Match 25) retrieval and ranking for market matching.

Components:
- tokenizer: Lowercase alphanumeric tokenization + index stopword filter
- index_builder: Inverted index (postings sets) with corpus IDF / average length
- scorer: BM25 with exact/partial match bonus

Indexing is pruned (stopwords removed), scoring is literal (stopwords kept).
Both read the same published corpus version; see polysearch.catalog.store.
"""

from .tokenizer import tokenize, remove_stopwords
from .index_builder import CorpusStats, InvertedIndex, compute_idf, is_partial_match
from .scorer import BM25Scorer

__all__ = [
    "tokenize",
    "remove_stopwords",
    "CorpusStats",
    "InvertedIndex",
    "compute_idf",
    "is_partial_match",
    "BM25Scorer",
]
