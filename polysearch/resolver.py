"""
Query resolver: free-text query -> single best market above threshold.

Resolution order:
1. Clean the query (drop noise words and 1-char tokens)
2. Retrieve candidates from the inverted index, score them with BM25 + bonus
3. If the index returned no candidates at all, score the whole catalog
4. If still nothing crosses the threshold, ask the external search backend and
   score its (normalized, open-only) results the same way
5. Otherwise: no match

"No match" is a normal result, not an error. External backend failures and
cancellations are logged and reported as no match; resolve() never raises.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from .bm25.index_builder import CorpusStats
from .bm25.scorer import BM25Scorer
from .catalog.models import Document
from .catalog.normalizer import normalize_records
from .catalog.store import CatalogStore
from .config import MIN_MATCH_SCORE, MIN_QUERY_LENGTH, QUERY_NOISE_WORDS
from .search.base import (
    BaseExternalSearch,
    CancellationToken,
    ExternalSearchError,
    LatestRequestTracker,
    SearchCancelled,
)

logger = logging.getLogger(__name__)


class ResolveStage(str, Enum):
    INDEX = "index"
    GLOBAL_SCAN = "global_scan"
    EXTERNAL_SEARCH = "external_search"


@dataclass
class TraceStep:
    """What one resolution stage saw"""
    stage: ResolveStage
    candidates: int
    best_id: Optional[str] = None
    best_score: float = 0.0
    accepted: bool = False
    note: str = ""


@dataclass
class ResolveResult:
    """Outcome of resolve(); document/score/stage are set only when matched"""
    matched: bool
    document: Optional[Document] = None
    score: Optional[float] = None
    stage: Optional[ResolveStage] = None
    query: str = ""
    trace: Optional[List[TraceStep]] = None

    def to_dict(self) -> dict:
        if not self.matched:
            result = {"matched": False}
        else:
            result = {
                "matched": True,
                "document": self.document.model_dump(),
                "score": self.score,
                "stage": self.stage.value,
            }
        if self.trace is not None:
            result["trace"] = [
                {**asdict(step), "stage": step.stage.value} for step in self.trace
            ]
        return result


def clean_query(query: str, noise_words: Iterable[str] = QUERY_NOISE_WORDS) -> str:
    """
    Normalize a raw user query.

    Lowercases, trims, splits on whitespace, drops tokens of length <= 1 and
    generic market vocabulary. Falls back to the trimmed query if nothing
    survives.

    Examples:
        >>> clean_query("  Bitcoin PRICE prediction 2026 ")
        'bitcoin 2026'
        >>> clean_query("will it go up")
        'it go'
        >>> clean_query("price")
        'price'
    """
    trimmed = (query or "").lower().strip()
    noise = frozenset(noise_words)
    words = [w for w in trimmed.split() if len(w) > 1 and w not in noise]
    return " ".join(words) or trimmed


class QueryResolver:
    """
    Orchestrates index retrieval, BM25 scoring and fallbacks for one catalog store.

    Each resolve() works against the corpus version that is current when it
    starts, even if a refresh publishes a new one mid-call.
    """

    def __init__(
        self,
        store: CatalogStore,
        external_search: Optional[BaseExternalSearch] = None,
        scorer: Optional[BM25Scorer] = None,
        min_score: float = MIN_MATCH_SCORE,
        noise_words: Iterable[str] = QUERY_NOISE_WORDS,
    ):
        """
        Args:
            store: Published catalog
            external_search: Last-resort backend; None disables the external tier
            scorer: BM25 scorer (default: configured BM25Scorer)
            min_score: Inclusive acceptance threshold
            noise_words: Query words stripped by clean_query
        """
        self.store = store
        self.external_search = external_search
        self.scorer = scorer or BM25Scorer()
        self.min_score = min_score
        self.noise_words = frozenset(noise_words)
        self._requests = LatestRequestTracker()

    def accepts(self, score: float) -> bool:
        return score >= self.min_score

    def best_match(
        self,
        query: str,
        documents: Sequence[Document],
        stats: CorpusStats,
    ) -> Tuple[Optional[Document], float]:
        """
        Highest-scoring document (first wins on ties).

        Documents without searchable text are skipped.
        """
        best_doc, best_score = None, 0.0
        for doc in documents:
            text = doc.searchable_text
            if not text:
                continue
            score = self.scorer.score(query, text, stats)
            if best_doc is None or score > best_score:
                best_doc, best_score = doc, score
        return best_doc, best_score

    def resolve(
        self,
        query: str,
        cancel_token: Optional[CancellationToken] = None,
        trace: bool = False,
    ) -> ResolveResult:
        """
        Find the single best market for a query.

        Args:
            query: Raw user query
            cancel_token: Cancels the external fallback; by default each call
                supersedes the previous call's external request
            trace: Attach per-stage TraceStep records to the result

        Returns:
            ResolveResult with matched=True and document/score/stage, or matched=False
        """
        if cancel_token is None:
            cancel_token = self._requests.begin()
        steps: Optional[List[TraceStep]] = [] if trace else None

        try:
            return self._resolve(query, cancel_token, steps)
        except Exception:
            logger.exception(f"Unexpected error resolving query '{query}'")
            return ResolveResult(matched=False, query=query, trace=steps)

    def _resolve(
        self,
        query: str,
        cancel_token: CancellationToken,
        steps: Optional[List[TraceStep]],
    ) -> ResolveResult:
        cleaned = clean_query(query, self.noise_words)
        if len(cleaned) < MIN_QUERY_LENGTH:
            logger.debug(f"Query too short after cleaning: '{query}'")
            return ResolveResult(matched=False, query=cleaned, trace=steps)

        corpus = self.store.current
        stats = corpus.stats

        candidates = corpus.search(cleaned)
        if candidates:
            stages = [(ResolveStage.INDEX, candidates)]
        else:
            # Index recall gap: score everything directly
            stages = [
                (ResolveStage.INDEX, candidates),
                (ResolveStage.GLOBAL_SCAN, corpus.documents),
            ]

        for stage, documents in stages:
            result = self._try_stage(stage, cleaned, documents, stats, steps)
            if result is not None:
                return result

        if self.external_search is None:
            return self._no_match(cleaned, steps)

        try:
            records = self.external_search.search(cleaned, cancel_token)
        except SearchCancelled:
            logger.debug(f"External search superseded for '{cleaned}'")
            self._note(steps, ResolveStage.EXTERNAL_SEARCH, "cancelled")
            return self._no_match(cleaned, steps)
        except ExternalSearchError as e:
            logger.warning(f"External search unavailable for '{cleaned}': {e}")
            self._note(steps, ResolveStage.EXTERNAL_SEARCH, "unavailable")
            return self._no_match(cleaned, steps)

        external_docs = normalize_records(records)
        result = self._try_stage(ResolveStage.EXTERNAL_SEARCH, cleaned, external_docs, stats, steps)
        if result is not None:
            return result

        return self._no_match(cleaned, steps)

    def _try_stage(
        self,
        stage: ResolveStage,
        query: str,
        documents: Sequence[Document],
        stats: CorpusStats,
        steps: Optional[List[TraceStep]],
    ) -> Optional[ResolveResult]:
        best_doc, best_score = self.best_match(query, documents, stats)
        accepted = best_doc is not None and self.accepts(best_score)

        if steps is not None:
            steps.append(TraceStep(
                stage=stage,
                candidates=len(documents),
                best_id=best_doc.id if best_doc else None,
                best_score=best_score,
                accepted=accepted,
            ))

        logger.debug(
            f"[{stage.value}] '{query}': {len(documents)} candidates, "
            f"best={best_doc.id if best_doc else None} score={best_score:.3f}"
        )

        if not accepted:
            return None

        logger.info(f"Matched '{query}' -> {best_doc.id} ({stage.value}, score={best_score:.2f})")
        return ResolveResult(
            matched=True,
            document=best_doc,
            score=best_score,
            stage=stage,
            query=query,
            trace=steps,
        )

    @staticmethod
    def _note(steps: Optional[List[TraceStep]], stage: ResolveStage, note: str):
        if steps is not None:
            steps.append(TraceStep(stage=stage, candidates=0, note=note))

    @staticmethod
    def _no_match(query: str, steps: Optional[List[TraceStep]]) -> ResolveResult:
        logger.debug(f"No match for '{query}'")
        return ResolveResult(matched=False, query=query, trace=steps)

    def get_corpus_stats(self) -> dict:
        return self.store.get_corpus_stats()
