"""
Ingestion normalization: raw Gamma API records -> canonical Document.

Handles the three shapes seen upstream:
- event:  {"title", "slug", "markets": [market, ...], ...}
- market: {"question", "conditionId", "outcomes", "outcomePrices", "events": [event], ...}
- flat:   already-normalized hot-market dicts {"title", "slug", "question", "price", "volume"}

Nothing downstream of this module looks at raw record shape.
"""

import json
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from .models import BINARY_OUTCOMES, Document

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> list:
    """Gamma encodes some list fields as JSON strings ("[\"Yes\", \"No\"]")"""
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return []
    return list(value) if isinstance(value, (list, tuple)) else []


def _as_float(value: Any, default: float = 0.0) -> float:
    """Lenient float parse; NaN and infinities fall back to default"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def is_open(record: Dict[str, Any]) -> bool:
    """False for records flagged closed or inactive; missing flags count as open"""
    return not record.get("closed", False) and record.get("active", True) is not False


def leading_outcome(market: Dict[str, Any]) -> Tuple[float, Optional[str]]:
    """
    Highest single-outcome price of a market and its outcome label.

    Returns:
        (price in 0-1, outcome name or None)
    """
    prices = [_as_float(p) for p in _as_list(market.get("outcomePrices"))]
    outcomes = _as_list(market.get("outcomes"))
    if not prices:
        return 0.0, None

    best_idx = max(range(len(prices)), key=lambda i: prices[i])
    label = outcomes[best_idx] if best_idx < len(outcomes) else None
    return prices[best_idx], label


def select_consensus_market(markets: Iterable[Dict[str, Any]]) -> Optional[Tuple[Dict[str, Any], float, Optional[str]]]:
    """
    Pick the open sub-market holding the single highest outcome price.

    For multi-outcome events (one market per choice) this is the choice the
    market currently agrees on. Ties keep the first market.

    Returns:
        (market, price 0-1, outcome label), or None if no sub-market is open
    """
    open_markets = [m for m in markets if isinstance(m, dict) and is_open(m)]
    if not open_markets:
        return None

    best_market, best_price, best_label = open_markets[0], 0.0, None
    for market in open_markets:
        price, label = leading_outcome(market)
        if price > best_price:
            best_market, best_price, best_label = market, price, label

    if best_label is None:
        _, best_label = leading_outcome(best_market)
    return best_market, best_price, best_label


def _choice_from_outcome(label: Any) -> Optional[str]:
    if isinstance(label, str) and label.strip() and label.strip().lower() not in BINARY_OUTCOMES:
        return label.strip()
    return None


def normalize_event(event: Dict[str, Any]) -> Optional[Document]:
    """Event with nested markets -> Document for its consensus sub-market"""
    if not is_open(event):
        return None

    selected = select_consensus_market(_as_list(event.get("markets")))
    if selected is None:
        return None
    market, price, label = selected

    doc_id = event.get("slug") or event.get("id") or market.get("conditionId")
    if not doc_id:
        return None

    title = event.get("title") or market.get("question") or ""
    question = market.get("question")
    return Document(
        id=str(doc_id),
        title=title,
        question=question if question != title else None,
        choice=_choice_from_outcome(label),
        volume=round(_as_float(event.get("volumeNum") or event.get("volume") or market.get("volumeNum"))),
        slug=event.get("slug"),
        icon=event.get("icon") or market.get("icon"),
        end_date=event.get("endDate") or market.get("endDate"),
        price=round(price * 100),
        condition_id=market.get("conditionId"),
        clob_token_ids=tuple(str(t) for t in _as_list(market.get("clobTokenIds"))),
    )


def normalize_market(market: Dict[str, Any]) -> Optional[Document]:
    """Standalone market (or flat hot-market dict) -> Document"""
    if not is_open(market):
        return None

    parent = next((e for e in _as_list(market.get("events")) if isinstance(e, dict)), {})
    slug = parent.get("slug") or market.get("slug")
    question = market.get("question") or market.get("groupItemTitle")
    title = parent.get("title") or market.get("title") or question or ""
    doc_id = slug or market.get("conditionId") or market.get("id")
    if not doc_id:
        return None

    if "price" in market and market["price"] is not None:
        # Flat records already carry a percentage
        price = _as_float(market["price"])
        label = None
    else:
        prices = [_as_float(p) for p in _as_list(market.get("outcomePrices"))]
        leading_price, label = leading_outcome(market)
        if _choice_from_outcome(label):
            # Named outcome: report the price of the outcome shown as the choice
            price = leading_price * 100
        else:
            price = prices[0] * 100 if prices else None

    return Document(
        id=str(doc_id),
        title=title,
        question=question if question != title else None,
        choice=_choice_from_outcome(label),
        volume=round(_as_float(market.get("volumeNum") or market.get("volume"))),
        slug=slug,
        icon=market.get("icon") or parent.get("icon"),
        end_date=market.get("endDate") or market.get("endDateIso"),
        price=round(price) if price is not None else None,
        condition_id=market.get("conditionId"),
        clob_token_ids=tuple(str(t) for t in _as_list(market.get("clobTokenIds"))),
    )


def normalize_record(record: Dict[str, Any]) -> Optional[Document]:
    """
    Map any supported raw shape to a Document.

    Returns:
        Document, or None if the record is closed/inactive or has nothing to match on
    """
    if not isinstance(record, dict):
        return None
    if isinstance(record.get("markets"), (list, str)):
        doc = normalize_event(record)
    else:
        doc = normalize_market(record)

    if doc is None or not doc.searchable_text:
        return None
    return doc


def normalize_records(records: Iterable[Dict[str, Any]]) -> List[Document]:
    """
    Normalize a batch, skipping malformed records and duplicate ids.

    Order is preserved (first occurrence wins).
    """
    documents: List[Document] = []
    seen_ids = set()

    for record in records or []:
        try:
            doc = normalize_record(record)
        except ValidationError as e:
            logger.debug(f"Skipping invalid record: {e}")
            continue
        except Exception as e:
            logger.debug(f"Skipping malformed record ({type(e).__name__}): {e}")
            continue

        if doc is None or doc.id in seen_ids:
            continue
        seen_ids.add(doc.id)
        documents.append(doc)

    return documents
