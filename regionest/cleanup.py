"""
Cleanup module for purging expired rows from the persistent cache.

Run by an operator (``regionest cleanup``); lookups evict lazily.
"""

import time
from pathlib import Path
from typing import Callable, Tuple

from .cache import DEFAULT_TTL
from .database import CacheEntry, get_session, init_database
from .logger import get_logger

logger = get_logger()


def purge_stale_entries(
    db_path: Path,
    ttl: float = DEFAULT_TTL,
    clock: Callable[[], float] = time.time,
) -> Tuple[int, int]:
    """
    Remove cache rows older than ``ttl`` seconds.

    Args:
        db_path: Path to the SQLite cache database
        ttl: Maximum entry age in seconds (default: 6 hours)
        clock: Time source returning epoch seconds

    Returns:
        Tuple of (entries_before, entries_after)
        Difference = entries_removed
    """
    try:
        init_database(db_path)
        session = get_session(db_path)
        try:
            entries_before = session.query(CacheEntry).count()
            cutoff = clock() - ttl
            session.query(CacheEntry).filter(CacheEntry.stored_at < cutoff).delete()
            session.commit()
            entries_after = session.query(CacheEntry).count()
        finally:
            session.close()
    except Exception as e:
        logger.error(f"Cache cleanup failed: {e}", error=type(e).__name__, db_path=str(db_path))
        return (0, 0)

    logger.info(
        f"Cache cleanup complete: {entries_before - entries_after} removed, {entries_after} remaining",
        entries_before=entries_before,
        entries_after=entries_after,
        ttl=ttl,
    )
    return (entries_before, entries_after)
