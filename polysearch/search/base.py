"""
Abstract base class for external (last-resort) market search.

All external search backends must implement this interface to be swappable.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class ExternalSearchError(Exception):
    """Network, HTTP, timeout or parse failure in an external search backend"""


class SearchCancelled(Exception):
    """A newer query superseded this one while it was in flight"""


class CancellationToken:
    """Cooperative cancellation flag passed into an external search call."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise SearchCancelled()


class LatestRequestTracker:
    """
    Last-query-wins bookkeeping.

    Each begin() cancels the token handed out by the previous call.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Optional[CancellationToken] = None

    def begin(self) -> CancellationToken:
        token = CancellationToken()
        with self._lock:
            previous, self._current = self._current, token
        if previous is not None:
            previous.cancel()
        return token


class BaseExternalSearch(ABC):
    """
    Abstract base class for external search backends.

    Implementations return raw listing records; normalization into Documents
    happens in the resolver.
    """

    @abstractmethod
    def search(
        self,
        query: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[Dict[str, Any]]:
        """
        Search listings by free-text query.

        Args:
            query: Cleaned query text
            cancel_token: Optional token; if cancelled, raise SearchCancelled

        Returns:
            Raw listing records (possibly empty)

        Raises:
            ExternalSearchError: backend unreachable, timed out, or returned garbage
            SearchCancelled: the call was superseded
        """
        pass

    @abstractmethod
    def get_backend_info(self) -> dict:
        """
        Get information about the search backend.

        Returns:
            Dict with keys: name, type, parameters
        """
        pass

    def close(self):
        """Optional cleanup (close HTTP sessions, etc.)"""
        pass
