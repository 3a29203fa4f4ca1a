"""
Storage fault translation and request timeouts.

Driver-level failures (lost connection, pool exhausted, statement timeout)
are converted to UnavailableError so callers see one retryable error kind
instead of a zoo of DBAPI exceptions.
"""

import asyncio
import functools
from typing import Awaitable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, TimeoutError as PoolTimeoutError

from complyva.core.config import settings
from complyva.core.exceptions import UnavailableError
from complyva.core.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_STORAGE_FAULTS = (OperationalError, InterfaceError, PoolTimeoutError)


def _is_storage_fault(exc: Exception) -> bool:
    if isinstance(exc, _STORAGE_FAULTS):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


def storage_guard(func):
    """Decorator for async service methods: storage faults become UnavailableError"""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except asyncio.TimeoutError as exc:
            logger.warning(f"{func.__qualname__} timed out")
            raise UnavailableError("Storage did not respond in time", operation=func.__name__) from exc
        except DBAPIError as exc:
            if not _is_storage_fault(exc):
                raise
            logger.error(f"{func.__qualname__} storage fault: {type(exc).__name__}: {exc}")
            raise UnavailableError(operation=func.__name__) from exc
        except PoolTimeoutError as exc:
            logger.error(f"{func.__qualname__} connection pool exhausted")
            raise UnavailableError("Connection pool exhausted", operation=func.__name__) from exc

    return wrapper


async def with_timeout(awaitable: Awaitable[T], seconds: Optional[float] = None, operation: str = "request") -> T:
    """Await under the per-request budget; a timeout is Unavailable, never partial success"""
    budget = seconds if seconds is not None else settings.REQUEST_TIMEOUT_SECONDS
    try:
        return await asyncio.wait_for(awaitable, timeout=budget)
    except asyncio.TimeoutError as exc:
        logger.warning(f"{operation} exceeded {budget}s budget")
        raise UnavailableError(f"{operation} timed out", operation=operation) from exc
