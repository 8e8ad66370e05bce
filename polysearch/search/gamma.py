"""
Polymarket Gamma API backend - keyword search and active-event listing.

No API key required (public endpoint). Used by the resolver as the last-resort
fallback and by catalog refresh as the catalog source.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..config import (
    CATALOG_REFRESH_LIMIT,
    EXTERNAL_SEARCH_CACHE_TTL,
    EXTERNAL_SEARCH_LIMIT,
    EXTERNAL_SEARCH_TIMEOUT,
    GAMMA_API_BASE,
)
from .base import BaseExternalSearch, CancellationToken, ExternalSearchError
from .cache import QueryCache

logger = logging.getLogger(__name__)


def _record_key(record: Dict[str, Any]) -> Optional[str]:
    key = record.get("id") or record.get("slug")
    return str(key) if key else None


class GammaSearch(BaseExternalSearch):
    """
    Gamma API event search.

    If a multi-word query returns nothing, the first word alone is searched
    and merged in (helps "elon musk tweets" find "Elon Musk # of tweets").
    """

    def __init__(
        self,
        base_url: str = GAMMA_API_BASE,
        timeout: float = EXTERNAL_SEARCH_TIMEOUT,
        limit: int = EXTERNAL_SEARCH_LIMIT,
        cache: Optional[QueryCache] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Gamma search backend.

        Args:
            base_url: Gamma API root
            timeout: Per-request timeout in seconds; expiry counts as failure
            limit: Max events per request
            cache: Result cache (default: 5-minute TTL cache)
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.limit = limit
        self.cache = cache if cache is not None else QueryCache(ttl=EXTERNAL_SEARCH_CACHE_TTL)
        self.session = session or requests.Session()
        logger.info(f"GammaSearch initialized: {self.base_url} (timeout={timeout}s, limit={limit})")

    def _get_list(self, path: str, params: dict, cancel_token: Optional[CancellationToken] = None) -> List[Dict[str, Any]]:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.Timeout as e:
            raise ExternalSearchError(f"Gamma request timed out after {self.timeout}s: {url}") from e
        except requests.RequestException as e:
            raise ExternalSearchError(f"Gamma request failed: {e}") from e
        except ValueError as e:
            raise ExternalSearchError(f"Gamma returned invalid JSON: {e}") from e

        # Response may have arrived after a newer query took over
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        if not isinstance(data, list):
            logger.debug(f"Unexpected Gamma payload type {type(data).__name__} from {path}")
            return []
        return [item for item in data if isinstance(item, dict)]

    def search_events(self, query: str, cancel_token: Optional[CancellationToken] = None) -> List[Dict[str, Any]]:
        """Single /events keyword request (active, open events only)."""
        params = {
            "limit": self.limit,
            "active": "true",
            "closed": "false",
            "q": query.strip(),
        }
        return self._get_list("/events", params, cancel_token)

    def search(self, query: str, cancel_token: Optional[CancellationToken] = None) -> List[Dict[str, Any]]:
        """Search events, with first-word retry and a TTL cache."""
        query = (query or "").strip()
        if not query:
            return []

        cached = self.cache.get(query)
        if cached is not None:
            logger.debug(f"Gamma cache hit: '{query}' ({len(cached)} results)")
            return cached

        results = self.search_events(query, cancel_token)

        words = query.split()
        if not results and len(words) > 1:
            logger.debug(f"No Gamma results for '{query}', retrying with '{words[0]}'")
            seen = {_record_key(r) for r in results}
            for record in self.search_events(words[0], cancel_token):
                key = _record_key(record)
                if key and key not in seen:
                    seen.add(key)
                    results.append(record)

        self.cache.set(query, results)
        logger.info(f"Gamma search '{query}': {len(results)} results")
        return results

    def fetch_active_events(self, limit: int = CATALOG_REFRESH_LIMIT) -> List[Dict[str, Any]]:
        """
        List active, open events by volume (catalog refresh source).

        Raises:
            ExternalSearchError: on any request failure
        """
        params = {
            "limit": limit,
            "active": "true",
            "closed": "false",
            "order": "volume",
            "ascending": "false",
        }
        events = self._get_list("/events", params)
        logger.info(f"Fetched {len(events)} active events from Gamma")
        return events

    def get_backend_info(self) -> dict:
        return {
            "name": "gamma",
            "type": "api",
            "base_url": self.base_url,
            "timeout": self.timeout,
            "limit": self.limit,
        }

    def close(self):
        self.session.close()
