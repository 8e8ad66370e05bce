"""
BM25 scorer with exact/partial term match bonus.

Formula (per query term with tf > 0):
    score(term, doc) = idf(term) × (tf × (k1 + 1)) / (tf + k1 × (1 - b + b × dl/avgdl))

Where:
    tf = term frequency in document (literal tokens, stopwords included)
    k1 = term frequency saturation parameter (default: 1.5)
    b = length normalization parameter (default: 0.75)
    dl = document length (number of literal tokens)
    avgdl = average document length of the published corpus version
    idf = corpus IDF, 0.0 for terms outside the corpus

Match bonus (added per query token, on top of the BM25 sum):
    +exact_bonus    token is a domain term and appears verbatim in the document
    +exact_bonus    token appears verbatim in the document
    +partial_bonus  token is a substring of some document token, or vice versa,
                    and the shorter side has at least min_partial_length chars

The length floor narrows the bare substring rule: with the default of 3, a
two-letter token such as "ai" earns no partial bonus against "openai". Setting
min_partial_length=1 restores plain substring matching; MIN_MATCH_SCORE has to be
recalibrated alongside, since short fragments then add bonus to most documents.

Pure BM25 under-rewards short, specific tokens (tickers, names) in a corpus of a
few hundred templated titles where IDF saturates quickly. The bonus corrects for
that; it is a tuned heuristic, not a statistically derived weight.
"""

from collections import Counter
from typing import Iterable, List, Optional, Sequence

from ..config import (
    BM25_B,
    BM25_K1,
    DOMAIN_TERMS,
    EXACT_MATCH_BONUS,
    MIN_PARTIAL_LENGTH,
    PARTIAL_MATCH_BONUS,
)
from .index_builder import CorpusStats
from .tokenizer import tokenize


def overlaps(a: str, b: str, min_length: int = MIN_PARTIAL_LENGTH) -> bool:
    """True if the shorter term (at least min_length chars) occurs inside the longer one."""
    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
    return len(shorter) >= min_length and shorter in longer


class BM25Scorer:
    """
    BM25 relevance scorer against published corpus statistics.

    Stateless apart from its parameters: the same scorer can be shared across
    corpus versions because statistics are passed in on every call.
    """

    def __init__(
        self,
        k1: float = BM25_K1,
        b: float = BM25_B,
        exact_bonus: float = EXACT_MATCH_BONUS,
        partial_bonus: float = PARTIAL_MATCH_BONUS,
        domain_terms: Optional[Iterable[str]] = None,
        min_partial_length: int = MIN_PARTIAL_LENGTH,
    ):
        """
        Initialize BM25 scorer.

        Args:
            k1: Term frequency saturation parameter
                Higher = more weight to repeated terms
                Default: 1.5

            b: Length normalization parameter
                Higher = more penalty for long titles
                Range: 0.0 - 1.0
                Default: 0.75

            exact_bonus: Added when a query token appears verbatim in the document
            partial_bonus: Added when a query token only overlaps a document token
            domain_terms: High-value tickers and proper nouns (default: config.DOMAIN_TERMS)
            min_partial_length: Shorter side of a partial overlap must be this long
        """
        self.k1 = k1
        self.b = b
        self.exact_bonus = exact_bonus
        self.partial_bonus = partial_bonus
        self.domain_terms = frozenset(domain_terms) if domain_terms is not None else DOMAIN_TERMS
        self.min_partial_length = min_partial_length

    def score(self, query: str, document_text: str, stats: CorpusStats) -> float:
        """
        Compute BM25 + match bonus for one document.

        Args:
            query: Raw or cleaned query string
            document_text: Searchable text of the document
            stats: Statistics of the currently published corpus version

        Returns:
            Non-negative score (higher = more relevant); 0.0 for empty
            query or document

        Example:
            >>> from polysearch.bm25 import InvertedIndex
            >>> scorer = BM25Scorer()
            >>> stats = InvertedIndex.build(["Bitcoin to hit $100k", "Fed rate cut"]).stats
            >>> scorer.score("bitcoin", "Bitcoin to hit $100k", stats) > 5.0
            True
        """
        return self.score_tokens(tokenize(query), tokenize(document_text), stats)

    def score_tokens(
        self,
        query_tokens: Sequence[str],
        document_tokens: Sequence[str],
        stats: CorpusStats,
    ) -> float:
        """Score pre-tokenized input (see score)."""
        if not query_tokens or not document_tokens:
            return 0.0

        return (
            self.bm25(query_tokens, document_tokens, stats)
            + self.match_bonus(query_tokens, document_tokens)
        )

    def bm25(
        self,
        query_tokens: Sequence[str],
        document_tokens: Sequence[str],
        stats: CorpusStats,
    ) -> float:
        """Plain BM25 sum over query tokens, without bonus."""
        term_frequencies = Counter(document_tokens)
        doc_length = len(document_tokens)
        avgdl = stats.average_document_length if stats.average_document_length > 0 else 1.0
        length_norm = 1 - self.b + self.b * (doc_length / avgdl)

        score = 0.0
        for term in query_tokens:
            tf = term_frequencies.get(term, 0)
            if tf == 0:
                continue

            idf = stats.get_idf(term)
            if idf == 0.0:
                continue

            numerator = tf * (self.k1 + 1)
            denominator = tf + self.k1 * length_norm
            score += idf * numerator / denominator

        return score

    def match_bonus(self, query_tokens: Sequence[str], document_tokens: Sequence[str]) -> float:
        """Exact/partial token match bonus."""
        document_terms = set(document_tokens)
        bonus = 0.0

        for term in query_tokens:
            if term in self.domain_terms and term in document_terms:
                bonus += self.exact_bonus
            elif term in document_terms:
                bonus += self.exact_bonus
            elif any(overlaps(term, t, self.min_partial_length) for t in document_terms):
                bonus += self.partial_bonus

        return bonus

    def rank(
        self,
        query: str,
        document_texts: Sequence[str],
        stats: CorpusStats,
    ) -> List[tuple]:
        """
        Score several documents and sort them.

        Returns:
            List of (position, score) sorted by score descending; ties keep
            input order
        """
        query_tokens = tokenize(query)
        scored = [
            (position, self.score_tokens(query_tokens, tokenize(text), stats))
            for position, text in enumerate(document_texts)
        ]
        return sorted(scored, key=lambda item: item[1], reverse=True)

    def get_params(self) -> dict:
        return {
            "k1": self.k1,
            "b": self.b,
            "exact_bonus": self.exact_bonus,
            "partial_bonus": self.partial_bonus,
            "min_partial_length": self.min_partial_length,
        }
