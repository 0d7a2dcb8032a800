"""
Review Service

Service layer for the spaced repetition review queue. Combines the item
extractor, the SM-2 scheduler and the repositories into the operations the
API exposes.

Operations:
- generate_review_items: create items for new concept keys only
- generate_for_module: look up a module, extract candidates, create items
- get_due_items: items due now, most overdue first
- update_review_item: apply a quality rating to one item
- get_review_stats: total / due / overdue / mastered counts and accuracy
- get_review_schedule: items coming due per day
- get_item: owner-only read of one item

Every operation takes the caller's student id and never reads or writes
another student's items.
"""

import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from lms.config import Settings, settings as default_settings
from lms.db.models_review import ReviewHistory, ReviewItem
from lms.middleware.error_handling import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from lms.models.content import ModuleContent
from lms.models.review import (
    ReviewCandidate,
    ReviewScheduleResponse,
    ReviewStats,
    ScheduleDay,
)
from lms.repositories.modules import ModuleRepository
from lms.repositories.review_items import ReviewItemRepository
from lms.services.review.extractor import extract_review_candidates
from lms.services.review.sm2 import (
    ScheduleState,
    SM2Scheduler,
    create_scheduler,
    validate_quality,
)

logger = logging.getLogger(__name__)

NO_CONTENT_MESSAGE = "No review content found in this module"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _start_of_day(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc).replace(
        hour=0, minute=0, second=0, microsecond=0
    )


@dataclass
class GenerationResult:
    """Outcome of generate_for_module."""

    created: list[ReviewItem]
    total: int
    message: str


@dataclass
class DueItems:
    """
    Due items for a student.

    orphaned_module_ids lists modules that no longer exist but still had
    due items; those items are left out of ``items``.
    """

    items: list[ReviewItem]
    orphaned_module_ids: set[str] = field(default_factory=set)


@dataclass
class ReviewSubmission:
    """Updated item plus the feedback shown to the student."""

    item: ReviewItem
    was_correct: bool
    message: str


class ReviewService:
    """
    Service for managing review items.

    Handles item creation from module content, due-item retrieval, SM-2
    updates and statistics.
    """

    def __init__(
        self,
        items: ReviewItemRepository,
        modules: ModuleRepository,
        scheduler: Optional[SM2Scheduler] = None,
        config: Optional[Settings] = None,
    ):
        """
        Initialize the review service.

        Args:
            items: Review item repository
            modules: Module content repository
            scheduler: SM-2 scheduler (defaults to one built from config)
            config: Settings (defaults to application settings)
        """
        self.items = items
        self.modules = modules
        self.config = config or default_settings
        self.scheduler = scheduler or create_scheduler(self.config)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate_review_items(
        self,
        student_id: str,
        course_id: str,
        module_id: str,
        candidates: Sequence[ReviewCandidate],
        now: Optional[datetime] = None,
    ) -> list[ReviewItem]:
        """
        Create review items for candidates that have none yet.

        Idempotent per (student, module, concept key): existing items keep
        their content and scheduling state.

        Args:
            student_id: Owning student
            course_id: Course of the module
            module_id: Module the candidates were extracted from
            candidates: Extracted question/answer candidates
            now: Creation time (defaults to current UTC time)

        Returns:
            Newly created items only. Empty when there was nothing new.

        Raises:
            ValidationError: If any id is missing
        """
        for name, value in (
            ("student_id", student_id),
            ("course_id", course_id),
            ("module_id", module_id),
        ):
            if not value:
                raise ValidationError(f"{name} is required")

        if not candidates:
            return []

        created = await self.items.create_if_absent(
            student_id=student_id,
            course_id=course_id,
            module_id=module_id,
            candidates=candidates,
            initial_state=self.scheduler.new_state(now or _utc_now()),
        )

        logger.info(
            f"Created {len(created)} of {len(candidates)} review items "
            f"for student {student_id}, module {module_id}"
        )
        return created

    async def generate_for_module(
        self,
        student_id: str,
        course_id: str,
        module_id: str,
        completed_block_ids: Optional[Collection[str]] = None,
    ) -> GenerationResult:
        """
        Create review items from a completed module's content.

        Raises:
            NotFoundError: If the module doesn't exist in the given course
        """
        module = await self.modules.get(module_id)
        if module is None or module.course_id != course_id:
            raise NotFoundError(
                f"Module {module_id} not found",
                details={"course_id": course_id, "module_id": module_id},
            )

        content = ModuleContent(
            id=module.id,
            course_id=module.course_id,
            title=module.title,
            is_interactive=module.is_interactive,
            content_blocks=module.content_blocks or [],
            ai_generated_content=module.ai_generated_content,
        )
        candidates = extract_review_candidates(content, completed_block_ids)

        if not candidates:
            return GenerationResult(created=[], total=0, message=NO_CONTENT_MESSAGE)

        created = await self.generate_review_items(
            student_id, course_id, module_id, candidates
        )
        return GenerationResult(
            created=created,
            total=len(candidates),
            message=f"Created {len(created)} review items for future study",
        )

    # ------------------------------------------------------------------
    # Due items
    # ------------------------------------------------------------------

    async def get_due_items(
        self,
        student_id: str,
        course_id: Optional[str] = None,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> DueItems:
        """
        Get items due for review, most overdue first.

        Items whose module has been deleted are left out and reported in
        ``orphaned_module_ids`` so the caller can schedule their cleanup.

        Args:
            student_id: Student whose queue to read
            course_id: Optional course filter
            limit: Maximum items (defaults to REVIEW_DEFAULT_LIMIT, capped
                at REVIEW_MAX_LIMIT)
            now: Reference time (defaults to current UTC time)

        Raises:
            ValidationError: If limit is below 1
        """
        if limit is None:
            limit = self.config.REVIEW_DEFAULT_LIMIT
        if limit < 1:
            raise ValidationError("limit must be at least 1", details={"limit": limit})
        limit = min(limit, self.config.REVIEW_MAX_LIMIT)

        now = now or _utc_now()
        due = await self.items.find_due(
            student_id, now, course_id=course_id, limit=limit, live_only=True
        )

        module_ids = await self.items.due_module_ids(student_id, now, course_id=course_id)
        orphaned = module_ids - await self.modules.existing_ids(module_ids)
        if orphaned:
            logger.warning(
                f"Student {student_id} has due items for deleted modules: {sorted(orphaned)}"
            )

        return DueItems(items=due, orphaned_module_ids=orphaned)

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def get_item(self, student_id: str, item_id: int) -> ReviewItem:
        """
        Load one of the student's items.

        Raises:
            NotFoundError: If the item doesn't exist
            AuthorizationError: If the item belongs to another student
        """
        item = await self.items.get_by_id(item_id)
        if item is None:
            raise NotFoundError(f"Review item {item_id} not found")
        if item.student_id != student_id:
            raise AuthorizationError(f"Review item {item_id} belongs to another student")
        return item

    async def update_review_item(
        self,
        student_id: str,
        item_id: int,
        quality: int,
        time_spent_seconds: int = 0,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> ReviewItem:
        """
        Apply a quality rating to a review item.

        Ownership and version are checked before anything is modified.

        Args:
            student_id: Caller's student id
            item_id: Item to review
            quality: Recall quality, 0-5
            time_spent_seconds: Time spent on the item
            expected_version: Version the client last saw, if it sent one
            now: Review time (defaults to current UTC time)

        Returns:
            The updated item

        Raises:
            ValidationError: If quality or time spent is out of range
            NotFoundError: If the item doesn't exist
            AuthorizationError: If the item belongs to another student
            ConflictError: If the item changed since the client read it
        """
        rating = validate_quality(quality)
        if time_spent_seconds < 0:
            raise ValidationError("time_spent_seconds must not be negative")

        item = await self.get_item(student_id, item_id)

        if expected_version is not None and item.version != expected_version:
            raise ConflictError(
                f"Review item {item_id} was already updated",
                details={"expected_version": expected_version, "version": item.version},
            )

        outcome = self.scheduler.review(
            ScheduleState(
                ease_factor=item.ease_factor,
                interval=item.interval,
                repetitions=item.repetitions,
                next_review_date=item.next_review_date,
                last_review_date=item.last_review_date,
            ),
            rating,
            now=now,
        )
        state = outcome.state

        item.ease_factor = state.ease_factor
        item.interval = state.interval
        item.repetitions = state.repetitions
        item.last_review_date = state.last_review_date
        item.next_review_date = state.next_review_date
        if outcome.was_correct:
            item.correct_count += 1
        else:
            item.incorrect_count += 1

        await self.items.save(item)
        await self.items.record_review(
            ReviewHistory(
                item_id=item.id,
                student_id=student_id,
                quality=int(rating),
                was_correct=outcome.was_correct,
                time_spent_seconds=time_spent_seconds,
                ease_factor_after=state.ease_factor,
                interval_after=state.interval,
                repetitions_after=state.repetitions,
                reviewed_at=outcome.reviewed_at,
            )
        )

        logger.info(
            f"Reviewed item {item_id}: quality={int(rating)}, "
            f"next in {state.interval} day(s), ef={state.ease_factor:.2f}"
        )
        return item

    async def submit_review(
        self,
        student_id: str,
        item_id: int,
        quality: int,
        time_spent_seconds: int = 0,
        expected_version: Optional[int] = None,
    ) -> ReviewSubmission:
        """update_review_item plus the student-facing feedback message."""
        item = await self.update_review_item(
            student_id,
            item_id,
            quality,
            time_spent_seconds=time_spent_seconds,
            expected_version=expected_version,
        )
        was_correct = quality >= self.scheduler.passing_quality
        if was_correct:
            plural = "" if item.interval == 1 else "s"
            message = f"Great! Next review in {item.interval} day{plural}"
        else:
            message = "Keep practicing! You will see this again soon."
        return ReviewSubmission(item=item, was_correct=was_correct, message=message)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    async def get_review_stats(
        self,
        student_id: str,
        course_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ReviewStats:
        """
        Get review statistics for a student.

        Mastered means repetitions >= REVIEW_MASTERED_MIN_REPETITIONS and
        interval >= REVIEW_MASTERED_MIN_INTERVAL_DAYS. Overdue means the item
        was due before the start of today (UTC).
        """
        now = now or _utc_now()
        counts = await self.items.aggregate_counts(
            student_id,
            now=now,
            today_start=_start_of_day(now),
            mastered_min_repetitions=self.config.REVIEW_MASTERED_MIN_REPETITIONS,
            mastered_min_interval=self.config.REVIEW_MASTERED_MIN_INTERVAL_DAYS,
            course_id=course_id,
        )

        total_reviews = counts.correct + counts.incorrect
        mastery = round(counts.mastered / counts.total * 100) if counts.total else 0
        accuracy = round(counts.correct / total_reviews * 100) if total_reviews else 0

        return ReviewStats(
            total_items=counts.total,
            due_items=counts.due,
            overdue_items=counts.overdue,
            mastered_items=counts.mastered,
            reviewed_today=counts.reviewed_today,
            mastery_percentage=mastery,
            accuracy=accuracy,
            total_reviews=total_reviews,
        )

    async def get_review_schedule(
        self,
        student_id: str,
        days: Optional[int] = None,
        course_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ReviewScheduleResponse:
        """
        Count items coming due on each day, starting today (UTC).

        Items already overdue before today are not included; see
        get_review_stats for those.
        """
        days = days or self.config.REVIEW_SCHEDULE_DAYS
        if days < 1:
            raise ValidationError("days must be at least 1", details={"days": days})

        today_start = _start_of_day(now or _utc_now())
        end = today_start + timedelta(days=days)
        due_dates = await self.items.due_dates_between(
            student_id, today_start, end, course_id=course_id
        )

        buckets = {(today_start + timedelta(days=i)).date(): 0 for i in range(days)}
        for due in due_dates:
            day = due.astimezone(timezone.utc).date()
            if day in buckets:
                buckets[day] += 1

        return ReviewScheduleResponse(
            days=[ScheduleDay(day=day, count=count) for day, count in buckets.items()],
            total=sum(buckets.values()),
        )
