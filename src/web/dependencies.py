"""Shared dependencies for the earnings API routers."""

import logging
from typing import Optional

from src.earnings.service import build_store
from src.earnings.store import InsightStore

logger = logging.getLogger(__name__)

_store: Optional[InsightStore] = None


def get_store() -> InsightStore:
    """Process-wide insight store, built on first use from STORE_BACKEND."""
    global _store
    if _store is None:
        _store = build_store()
        logger.info(f"Using {type(_store).__name__} for insights")
    return _store
