"""Catalog data models: market documents and immutable corpus versions"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..bm25.index_builder import CorpusStats, InvertedIndex

logger = logging.getLogger(__name__)

# Outcome labels that add nothing to a title
BINARY_OUTCOMES = frozenset(["yes", "no"])


class Document(BaseModel):
    """
    One market listing in canonical shape.

    Only title/question/choice reach the ranking core (through searchable_text).
    Everything else is passed through untouched.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Event slug or condition id")
    title: str = Field(default="", description="Event or market title")
    question: Optional[str] = Field(default=None, description="Market question, if different from title")
    choice: Optional[str] = Field(default=None, description="Specific outcome label (non Yes/No)")
    volume: float = Field(default=0.0, ge=0, description="Used for ordering outside the ranking core")

    # Rank-independent metadata
    slug: Optional[str] = None
    icon: Optional[str] = None
    end_date: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, le=100, description="Leading outcome price, percent")
    condition_id: Optional[str] = None
    clob_token_ids: Tuple[str, ...] = ()

    @property
    def searchable_text(self) -> str:
        """Title + question + choice, the only text the index and scorer see"""
        parts = [self.title, self.question, self.choice]
        seen = []
        for part in parts:
            text = (part or "").strip()
            if text and text not in seen:
                seen.append(text)
        return " ".join(seen)

    @property
    def display_title(self) -> str:
        base = self.question or self.title
        if self.choice and self.choice.lower() not in BINARY_OUTCOMES:
            return f"{base} ({self.choice})"
        return base

    @property
    def url(self) -> Optional[str]:
        if self.slug:
            return f"https://polymarket.com/event/{self.slug}"
        return None


@dataclass(frozen=True, eq=False)
class CorpusVersion:
    """
    One immutable catalog snapshot together with its index and statistics.

    Index and statistics are built from exactly these documents, so they can
    never belong to different versions. Positions in `documents` are the
    positions stored in the index postings.
    """
    version: int
    documents: Tuple[Document, ...]
    index: InvertedIndex

    @classmethod
    def build(cls, documents: Sequence[Document], version: int = 0) -> "CorpusVersion":
        docs = tuple(documents)
        index = InvertedIndex.build([doc.searchable_text for doc in docs])
        logger.info(
            f"Built corpus version {version}: {len(docs)} documents, {len(index)} terms"
        )
        return cls(version=version, documents=docs, index=index)

    @classmethod
    def empty(cls) -> "CorpusVersion":
        return cls.build([], version=0)

    @property
    def stats(self) -> CorpusStats:
        return self.index.stats

    def search(self, query: str) -> List[Document]:
        """Candidate documents for a query (index retrieval, unranked)"""
        return [self.documents[position] for position in self.index.search(query)]

    def __len__(self) -> int:
        return len(self.documents)
