"""
Review Item Repository

Keyed storage for review items. Every query is scoped to a student; the
uniqueness of (student_id, module_id, concept_key) is enforced both here
(create_if_absent skips existing keys) and by a database constraint.

Usage:
    repo = ReviewItemRepository(session)
    due = await repo.find_due("student-1", now, limit=20)
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import case, delete, func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.models import Module
from lms.db.models_review import ReviewHistory, ReviewItem
from lms.models.review import ReviewCandidate
from lms.repositories.base import translate_store_errors
from lms.services.review.sm2 import ScheduleState

logger = logging.getLogger(__name__)

# Dialects whose INSERT supports ON CONFLICT DO NOTHING ... RETURNING
_DIALECT_INSERTS = {"postgresql": postgresql_insert, "sqlite": sqlite_insert}

_CONCEPT_KEY_COLUMNS = ["student_id", "module_id", "concept_key"]


@dataclass
class ReviewCounts:
    """Raw aggregate counts for one student (optionally one course)."""

    total: int = 0
    due: int = 0
    overdue: int = 0
    mastered: int = 0
    reviewed_today: int = 0
    correct: int = 0
    incorrect: int = 0


class ReviewItemRepository:
    """Persistence for ReviewItem and ReviewHistory rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _scoped(self, stmt, student_id: str, course_id: Optional[str]):
        stmt = stmt.where(ReviewItem.student_id == student_id)
        if course_id:
            stmt = stmt.where(ReviewItem.course_id == course_id)
        return stmt

    async def _existing_keys(
        self, student_id: str, module_id: str, keys: set[str]
    ) -> set[str]:
        result = await self.session.execute(
            select(ReviewItem.concept_key).where(
                ReviewItem.student_id == student_id,
                ReviewItem.module_id == module_id,
                ReviewItem.concept_key.in_(keys),
            )
        )
        return set(result.scalars().all())

    @translate_store_errors
    async def create_if_absent(
        self,
        student_id: str,
        course_id: str,
        module_id: str,
        candidates: Sequence[ReviewCandidate],
        initial_state: ScheduleState,
    ) -> list[ReviewItem]:
        """
        Insert an item for every candidate whose concept key has none yet.

        Existing items are left untouched. Duplicate keys within the batch
        keep the first occurrence. Rows that a concurrent request inserted
        after the existence check are skipped by ON CONFLICT DO NOTHING.

        Returns:
            Only the newly created items, in candidate order
        """
        if not candidates:
            return []

        seen = await self._existing_keys(
            student_id, module_id, {candidate.concept_key for candidate in candidates}
        )

        created_at = datetime.now(timezone.utc)
        rows = []
        for candidate in candidates:
            if candidate.concept_key in seen:
                continue
            seen.add(candidate.concept_key)
            rows.append(
                {
                    "student_id": student_id,
                    "course_id": course_id,
                    "module_id": module_id,
                    "concept_key": candidate.concept_key,
                    "question": candidate.question,
                    "answer": candidate.answer,
                    "ease_factor": initial_state.ease_factor,
                    "interval": initial_state.interval,
                    "repetitions": initial_state.repetitions,
                    "next_review_date": initial_state.next_review_date,
                    "last_review_date": initial_state.last_review_date,
                    "correct_count": 0,
                    "incorrect_count": 0,
                    "version": 1,
                    "created_at": created_at,
                    "updated_at": created_at,
                }
            )
        if not rows:
            return []

        insert = _DIALECT_INSERTS[self.session.get_bind().dialect.name]
        stmt = (
            insert(ReviewItem)
            .values(rows)
            .on_conflict_do_nothing(index_elements=_CONCEPT_KEY_COLUMNS)
            .returning(ReviewItem)
        )
        result = await self.session.execute(
            select(ReviewItem).from_statement(stmt).execution_options(populate_existing=True)
        )
        inserted = {item.concept_key: item for item in result.scalars().all()}

        skipped = len(rows) - len(inserted)
        if skipped:
            logger.info(
                f"Skipped {skipped} review items for student {student_id}, "
                f"module {module_id}: created by a concurrent request"
            )
        return [inserted[row["concept_key"]] for row in rows if row["concept_key"] in inserted]

    @translate_store_errors
    async def get_by_id(self, item_id: int) -> Optional[ReviewItem]:
        return await self.session.get(ReviewItem, item_id)

    @translate_store_errors
    async def find_due(
        self,
        student_id: str,
        now: datetime,
        course_id: Optional[str] = None,
        limit: Optional[int] = None,
        live_only: bool = False,
    ) -> list[ReviewItem]:
        """
        Items with next_review_date <= now, most overdue first.

        With live_only, items whose module no longer exists are left out
        before the limit is applied.
        """
        stmt = self._scoped(select(ReviewItem), student_id, course_id)
        if live_only:
            stmt = stmt.join(Module, Module.id == ReviewItem.module_id)
        stmt = stmt.where(ReviewItem.next_review_date <= now).order_by(
            ReviewItem.next_review_date.asc(), ReviewItem.id.asc()
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    @translate_store_errors
    async def due_module_ids(
        self,
        student_id: str,
        now: datetime,
        course_id: Optional[str] = None,
    ) -> set[str]:
        """Distinct module ids among the student's due items."""
        stmt = self._scoped(select(ReviewItem.module_id).distinct(), student_id, course_id)
        result = await self.session.execute(stmt.where(ReviewItem.next_review_date <= now))
        return set(result.scalars().all())

    @translate_store_errors
    async def save(self, item: ReviewItem) -> ReviewItem:
        """
        Flush pending changes to an item.

        The UPDATE carries the version the item was loaded with, so a
        concurrent writer that got there first turns this into a conflict.
        """
        await self.session.flush()
        return item

    @translate_store_errors
    async def record_review(self, entry: ReviewHistory) -> ReviewHistory:
        self.session.add(entry)
        await self.session.flush()
        return entry

    @translate_store_errors
    async def aggregate_counts(
        self,
        student_id: str,
        now: datetime,
        today_start: datetime,
        mastered_min_repetitions: int,
        mastered_min_interval: int,
        course_id: Optional[str] = None,
    ) -> ReviewCounts:
        """Aggregate item counts in a single query."""

        def count_where(condition):
            return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

        stmt = select(
            func.count(ReviewItem.id),
            count_where(ReviewItem.next_review_date <= now),
            count_where(ReviewItem.next_review_date < today_start),
            count_where(
                (ReviewItem.repetitions >= mastered_min_repetitions)
                & (ReviewItem.interval >= mastered_min_interval)
            ),
            count_where(ReviewItem.last_review_date >= today_start),
            func.coalesce(func.sum(ReviewItem.correct_count), 0),
            func.coalesce(func.sum(ReviewItem.incorrect_count), 0),
        )
        result = await self.session.execute(self._scoped(stmt, student_id, course_id))
        row = result.one()

        return ReviewCounts(
            total=int(row[0]),
            due=int(row[1]),
            overdue=int(row[2]),
            mastered=int(row[3]),
            reviewed_today=int(row[4]),
            correct=int(row[5]),
            incorrect=int(row[6]),
        )

    @translate_store_errors
    async def due_dates_between(
        self,
        student_id: str,
        start: datetime,
        end: datetime,
        course_id: Optional[str] = None,
    ) -> list[datetime]:
        """next_review_date of every item due in [start, end)."""
        stmt = self._scoped(select(ReviewItem.next_review_date), student_id, course_id)
        stmt = stmt.where(
            ReviewItem.next_review_date >= start,
            ReviewItem.next_review_date < end,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    @translate_store_errors
    async def delete_for_modules(
        self, student_id: str, module_ids: Iterable[str]
    ) -> int:
        """Delete a student's items (and their history) for the given modules."""
        ids = set(module_ids)
        if not ids:
            return 0

        item_ids = select(ReviewItem.id).where(
            ReviewItem.student_id == student_id,
            ReviewItem.module_id.in_(ids),
        )
        await self.session.execute(
            delete(ReviewHistory)
            .where(ReviewHistory.item_id.in_(item_ids))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(ReviewItem)
            .where(
                ReviewItem.student_id == student_id,
                ReviewItem.module_id.in_(ids),
            )
            .execution_options(synchronize_session=False)
        )
        deleted = result.rowcount or 0
        logger.info(f"Deleted {deleted} review items for student {student_id}")
        return deleted
