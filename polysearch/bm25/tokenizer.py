"""
Tokenizer for market titles and search queries.

Tokenization pipeline:
1. Lowercase conversion
2. Split on any run of non-alphanumeric characters
3. Drop empty tokens

Stopword removal is a separate step (remove_stopwords) because it only applies
to indexing and candidate retrieval. BM25 term frequencies and document lengths
are computed on the literal token stream.

No stemming: "elections" and "election" are different terms. The scorer's
partial-match bonus covers the common plural/prefix cases instead.
"""

import re
from typing import Iterable, List

from ..config import INDEX_STOPWORDS

# Letters and digits of any script; underscore counts as a separator
_TOKEN_PATTERN = re.compile(r"[^\W_]+")


def tokenize(text: str) -> List[str]:
    """
    Tokenize text into lowercase alphanumeric terms.

    Args:
        text: Input text (market title, question, or raw query)

    Returns:
        Ordered list of lowercase tokens, stopwords included

    Examples:
        >>> tokenize("Bitcoin to hit $100k in 2026?")
        ['bitcoin', 'to', 'hit', '100k', 'in', '2026']

        >>> tokenize("Trump's  approval-rating")
        ['trump', 's', 'approval', 'rating']

        >>> tokenize("   ")
        []
    """
    if not text:
        return []

    return _TOKEN_PATTERN.findall(text.lower())


def remove_stopwords(tokens: Iterable[str], stopwords: frozenset = INDEX_STOPWORDS) -> List[str]:
    """
    Drop index stopwords, preserving token order.

    Used by the inverted index (build and search). The BM25 scorer never calls this.
    """
    return [t for t in tokens if t not in stopwords]
