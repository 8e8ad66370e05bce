"""
PolySearch configuration.

All tunable constants live here. Values can be overridden through environment
variables, loaded from .env.local (local dev) or .env before anything else reads them.

Scoring constants (BM25_K1, BM25_B, EXACT_MATCH_BONUS, PARTIAL_MATCH_BONUS,
MIN_MATCH_SCORE) were calibrated by hand against a catalog of a few hundred short,
templated market titles. They are recalibratable parameters, not derived values:
the bonus is summed onto the BM25 score without normalization, so their relative
weight shifts with corpus size and IDF magnitude.

MIN_PARTIAL_LENGTH narrows partial matching below a bare substring test: two-letter
tokens ("ai" vs "openai") get neither fuzzy index expansion nor the partial bonus.
Lowering it to 1 restores plain substring matching and shifts the bonus share of
every score, so MIN_MATCH_SCORE must be recalibrated together with it.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env.local first (highest priority), then .env as fallback
_env_local = Path(__file__).parent.parent / ".env.local"
_env_file = Path(__file__).parent.parent / ".env"

if _env_local.exists():
    load_dotenv(_env_local, override=False)
elif _env_file.exists():
    load_dotenv(_env_file, override=False)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_words(name: str, default: str) -> frozenset:
    value = os.getenv(name) or default
    return frozenset(w.strip().lower() for w in value.split(",") if w.strip())


# ── BM25 ──────────────────────────────────────────────────────────────────────
BM25_K1 = _env_float("POLYSEARCH_BM25_K1", 1.5)        # TF saturation
BM25_B = _env_float("POLYSEARCH_BM25_B", 0.75)         # length normalization strength

# ── Match bonuses ─────────────────────────────────────────────────────────────
EXACT_MATCH_BONUS = _env_float("POLYSEARCH_EXACT_MATCH_BONUS", 5.0)
PARTIAL_MATCH_BONUS = _env_float("POLYSEARCH_PARTIAL_MATCH_BONUS", 1.0)

# Shorter side of a partial/fuzzy match must have at least this many characters
# ("btc" inside "btcusd" counts, a stray "s" from "trump's" does not)
MIN_PARTIAL_LENGTH = _env_int("POLYSEARCH_MIN_PARTIAL_LENGTH", 3)

# ── Resolver ──────────────────────────────────────────────────────────────────
MIN_MATCH_SCORE = _env_float("POLYSEARCH_MIN_MATCH_SCORE", 2.0)   # inclusive
MIN_QUERY_LENGTH = 2

# ── Vocabularies ──────────────────────────────────────────────────────────────
# Applied at index build and candidate retrieval only
INDEX_STOPWORDS = _env_words(
    "POLYSEARCH_INDEX_STOPWORDS",
    "the,is,will,to,of,and,for,on,at,which,be,in,a,an,by,or",
)

# Generic market vocabulary stripped from raw user queries
QUERY_NOISE_WORDS = _env_words(
    "POLYSEARCH_QUERY_NOISE_WORDS",
    "price,prediction,market,will,hit,up,down,or,is,the,to",
)

# Tickers and proper nouns that carry most of the signal in short queries
DOMAIN_TERMS = _env_words(
    "POLYSEARCH_DOMAIN_TERMS",
    "btc,eth,sol,xrp,doge,bitcoin,ethereum,solana,crypto,trump,harris,biden,musk,elon,"
    "fed,fomc,nvidia,nvda,tesla,tsla,apple,openai,gpt,ai,election,oscar,superbowl,nba,nfl",
)

# ── Polymarket Gamma API ──────────────────────────────────────────────────────
GAMMA_API_BASE = os.getenv("GAMMA_API_BASE", "https://gamma-api.polymarket.com")
EXTERNAL_SEARCH_TIMEOUT = _env_float("EXTERNAL_SEARCH_TIMEOUT", 5.0)    # seconds
EXTERNAL_SEARCH_LIMIT = _env_int("EXTERNAL_SEARCH_LIMIT", 15)
EXTERNAL_SEARCH_CACHE_TTL = _env_float("EXTERNAL_SEARCH_CACHE_TTL", 300.0)  # seconds
CATALOG_REFRESH_LIMIT = _env_int("CATALOG_REFRESH_LIMIT", 100)

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "logs/polysearch.log")
