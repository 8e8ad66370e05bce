"""
Factory to create the external search backend based on configuration.
"""

from typing import Optional
import os
import logging

from .base import BaseExternalSearch
from .gamma import GammaSearch

logger = logging.getLogger(__name__)


class ExternalSearchFactory:
    """Factory to create external search instances based on configuration."""

    _instance: Optional[BaseExternalSearch] = None  # Singleton cache

    @classmethod
    def create(cls, force_reload: bool = False) -> Optional[BaseExternalSearch]:
        """
        Create external search backend based on environment configuration.

        Config (env vars):
            EXTERNAL_SEARCH_ENABLED: "false" to disable the last-resort fallback (default: true)
            EXTERNAL_SEARCH_TYPE: "gamma" (default: gamma)

        Args:
            force_reload: If True, recreate instance even if cached

        Returns:
            Search backend instance, or None if disabled
        """
        if cls._instance is not None and not force_reload:
            return cls._instance

        enabled = os.getenv("EXTERNAL_SEARCH_ENABLED", "true").lower() == "true"
        logger.info(f"External search config check: enabled={enabled}")
        if not enabled:
            return None

        search_type = os.getenv("EXTERNAL_SEARCH_TYPE", "gamma").lower()

        if search_type == "gamma":
            logger.info("Creating Gamma API external search")
            cls._instance = GammaSearch()
        else:
            raise ValueError(
                f"Unknown external search type: {search_type}. "
                f"Valid options: gamma"
            )

        return cls._instance

    @classmethod
    def cleanup(cls):
        """Cleanup cached search instance."""
        if cls._instance is not None:
            logger.info("Cleaning up external search instance")
            cls._instance.close()
            cls._instance = None
