"""
External search fallback for PolySearch.

Usage:
    # Get backend (auto-configured from env):
    from polysearch.search import get_external_search

    backend = get_external_search()
    if backend:
        records = backend.search("bitcoin 150k", cancel_token=token)

    # Or create a specific implementation:
    from polysearch.search import GammaSearch

    backend = GammaSearch(timeout=3.0)
"""

from typing import Optional
from .base import (
    BaseExternalSearch,
    CancellationToken,
    ExternalSearchError,
    LatestRequestTracker,
    SearchCancelled,
)
from .cache import QueryCache
from .gamma import GammaSearch
from .factory import ExternalSearchFactory


def get_external_search(force_reload: bool = False) -> Optional[BaseExternalSearch]:
    """
    Get configured external search instance (factory convenience function).

    Returns None if disabled via EXTERNAL_SEARCH_ENABLED=false
    """
    return ExternalSearchFactory.create(force_reload=force_reload)


__all__ = [
    'BaseExternalSearch',
    'CancellationToken',
    'ExternalSearchError',
    'LatestRequestTracker',
    'SearchCancelled',
    'QueryCache',
    'GammaSearch',
    'ExternalSearchFactory',
    'get_external_search',
]
