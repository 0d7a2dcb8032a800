"""
Shared repository helpers.

Repositories wrap an AsyncSession and are the only code that issues SQL.
Store failures leave them as typed service errors so callers never see raw
SQLAlchemy exceptions.
"""

import logging
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from lms.middleware.error_handling import ConflictError, PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def translate_store_errors(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Decorator mapping SQLAlchemy failures onto service errors.

    - StaleDataError (optimistic version check failed) → ConflictError
    - IntegrityError (unique key raced by a concurrent writer) → ConflictError
    - any other SQLAlchemyError → PersistenceError
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except StaleDataError as e:
            raise ConflictError(
                "Record was modified by another request; reload and retry"
            ) from e
        except IntegrityError as e:
            raise ConflictError(
                "Record was created by a concurrent request; retry"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Store operation {func.__qualname__} failed: {e}")
            raise PersistenceError("Review store is unavailable") from e

    return wrapper
