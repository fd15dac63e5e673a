"""
Foojra API — Optimistic locking retry decorator

Orders carry a version_id column that SQLAlchemy checks on every UPDATE
(`... WHERE id = :id AND version_id = :read_version`). When another request
committed first, the flush matches zero rows and SQLAlchemy raises
StaleDataError. The decorated operation is then replayed from a fresh read,
with exponential backoff + jitter.
"""
import asyncio
import random
import functools
import logging

from sqlalchemy.orm.exc import StaleDataError as SAStaleDataError

from foojra.core.config import get_settings
from foojra.core.errors import StaleDataError
from foojra.db.database import Base

settings = get_settings()
logger = logging.getLogger(__name__)


async def _reload_instances(db, args) -> None:
    # Rollback expires every instance in the session; async access needs an explicit refresh
    for arg in args:
        if isinstance(arg, Base) and arg in db:
            await db.refresh(arg)


def with_optimistic_retry(max_retries: int | None = None):
    """
    Decorator for async service functions that mutate versioned rows.
    The wrapped function must take the AsyncSession as its first argument;
    the session is rolled back before every retry so the next attempt reads
    committed state.

    Usage:
        @with_optimistic_retry()
        async def update_status(db, ...):
            ...
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(db, *args, **kwargs):
            _max = max_retries or settings.OPT_LOCK_MAX_RETRIES
            for attempt in range(1, _max + 1):
                try:
                    return await func(db, *args, **kwargs)
                except SAStaleDataError:
                    await db.rollback()
                    if attempt == _max:
                        logger.error(
                            "Optimistic lock conflict unresolved after %d retries for %s",
                            _max, func.__name__,
                        )
                        raise StaleDataError()
                    base_delay = settings.OPT_LOCK_BASE_DELAY_MS / 1000.0
                    max_delay = settings.OPT_LOCK_MAX_DELAY_MS / 1000.0
                    jitter = random.uniform(0, settings.OPT_LOCK_JITTER_MS / 1000.0)
                    delay = min(base_delay * (2 ** attempt), max_delay) + jitter
                    logger.warning(
                        "Version conflict in %s on attempt %d/%d, retrying in %.3fs",
                        func.__name__, attempt, _max, delay,
                    )
                    await asyncio.sleep(delay)
                    await _reload_instances(db, args)
        return wrapper
    return decorator
