"""
Orphaned Review Item Cleanup

When a module is deleted upstream, its review items stay behind. The due
query leaves them out of its response and schedules this task to delete
them afterwards.

The task runs in its own session (the request's session is closed by then)
and reports through CleanupResult. Failures are logged, never raised: the
request that scheduled the task has already succeeded, and the items will
simply be found and scheduled again on the next due query.

Usage:
    background_tasks.add_task(
        purge_orphaned_review_items, session_maker, student_id, module_ids
    )
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lms.middleware.error_handling import ServiceError
from lms.repositories.review_items import ReviewItemRepository

logger = logging.getLogger(__name__)


@dataclass
class CleanupResult:
    """Outcome of a cleanup run. ``error`` is set when the run failed."""

    student_id: str
    module_ids: list[str] = field(default_factory=list)
    deleted: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def purge_orphaned_review_items(
    session_maker: async_sessionmaker[AsyncSession],
    student_id: str,
    module_ids: Iterable[str],
) -> CleanupResult:
    """
    Delete a student's review items for modules that no longer exist.

    Args:
        session_maker: Factory for a fresh session
        student_id: Owner of the items
        module_ids: Deleted modules whose items should go

    Returns:
        CleanupResult with the number of deleted items, or the error
    """
    result = CleanupResult(student_id=student_id, module_ids=sorted(set(module_ids)))
    if not result.module_ids:
        return result

    try:
        async with session_maker() as session:
            async with session.begin():
                repo = ReviewItemRepository(session)
                result.deleted = await repo.delete_for_modules(
                    student_id, result.module_ids
                )
    except ServiceError as e:
        result.error = e.message
    except Exception as e:
        result.error = f"{type(e).__name__}: {e}"

    if result.ok:
        logger.info(
            f"Purged {result.deleted} orphaned review items for student {student_id} "
            f"(modules: {', '.join(result.module_ids)})"
        )
    else:
        logger.error(
            f"Orphaned review item cleanup failed for student {student_id} "
            f"(modules: {', '.join(result.module_ids)}): {result.error}"
        )
    return result
