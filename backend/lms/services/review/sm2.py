"""
SM-2 Spaced Repetition Scheduler

Pure scheduling logic for review items: given an item's current scheduling
state and a recall quality (0-5), compute the next state. No I/O happens
here; persistence is the review service's job.

Algorithm (per review):
    ef' = max(ef + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), 1.3)

    q < 3 (failure):  repetitions = 0, interval = 1
    q >= 3 (success): repetitions += 1
                      interval = 1          if repetitions == 1
                                 6          if repetitions == 2
                                 round(previous_interval * ef') otherwise

    last_review_date = now
    next_review_date = now + interval days

The ease factor is updated on every review, pass or fail, so repeated
failures steadily slow an item's interval growth down to the 1.3 floor.

Usage:
    from lms.services.review.sm2 import create_scheduler, ScheduleState

    scheduler = create_scheduler()
    outcome = scheduler.review(ScheduleState(), quality=4)
    outcome.state.next_review_date
"""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from lms.config import Settings, settings as default_settings
from lms.enums.review import ReviewQuality
from lms.middleware.error_handling import ValidationError

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ScheduleState:
    """
    SM-2 scheduling state of one review item.

    Maps to the scheduling columns of the review_items table. All datetimes
    are timezone-aware UTC.
    """

    ease_factor: float = 2.5
    interval: int = 0  # Days; 0 until the first review
    repetitions: int = 0  # Consecutive successful reviews
    next_review_date: datetime = field(default_factory=_utc_now)
    last_review_date: Optional[datetime] = None

    def is_new(self) -> bool:
        """Check if this item has never been reviewed."""
        return self.last_review_date is None


@dataclass
class ReviewOutcome:
    """Result of applying one quality rating to a ScheduleState."""

    state: ScheduleState
    quality: ReviewQuality
    was_correct: bool
    previous_state: ScheduleState
    reviewed_at: datetime


def validate_quality(quality: int) -> ReviewQuality:
    """
    Coerce a raw quality value to ReviewQuality.

    Raises:
        ValidationError: If quality is not an integer in [0, 5]
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise ValidationError(
            f"Quality must be an integer between 0 and 5, got {quality!r}",
            details={"quality": repr(quality)},
        )
    try:
        return ReviewQuality(quality)
    except ValueError:
        raise ValidationError(
            f"Quality must be between 0 and 5, got {quality}",
            details={"quality": quality},
        ) from None


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


class SM2Scheduler:
    """
    SM-2 scheduler.

    Attributes:
        initial_ease_factor: Ease factor of a brand-new item
        min_ease_factor: Floor the ease factor is clamped to
        passing_quality: Lowest quality that counts as a successful recall
        first_interval: Interval (days) after the first successful review
        second_interval: Interval (days) after the second successful review
    """

    def __init__(
        self,
        initial_ease_factor: float = 2.5,
        min_ease_factor: float = 1.3,
        passing_quality: int = 3,
        first_interval: int = 1,
        second_interval: int = 6,
    ):
        if initial_ease_factor < min_ease_factor:
            raise ValueError("initial_ease_factor must be >= min_ease_factor")
        self.initial_ease_factor = initial_ease_factor
        self.min_ease_factor = min_ease_factor
        self.passing_quality = passing_quality
        self.first_interval = first_interval
        self.second_interval = second_interval

    def new_state(self, now: Optional[datetime] = None) -> ScheduleState:
        """Initial state for a freshly created item: due immediately."""
        return ScheduleState(
            ease_factor=self.initial_ease_factor,
            interval=0,
            repetitions=0,
            next_review_date=now or _utc_now(),
            last_review_date=None,
        )

    def next_ease_factor(self, ease_factor: float, quality: int) -> float:
        miss = 5 - quality
        updated = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
        return max(updated, self.min_ease_factor)

    def next_interval(
        self, repetitions: int, previous_interval: int, ease_factor: float
    ) -> int:
        """Interval for a successful review, given the already-incremented repetitions."""
        if repetitions <= 1:
            return self.first_interval
        if repetitions == 2:
            return self.second_interval
        return max(1, round_half_up(previous_interval * ease_factor))

    def review(
        self,
        state: ScheduleState,
        quality: int,
        now: Optional[datetime] = None,
    ) -> ReviewOutcome:
        """
        Apply one quality rating.

        Args:
            state: Current scheduling state (not modified)
            quality: Recall quality, 0-5
            now: Review time (defaults to current UTC time)

        Returns:
            ReviewOutcome holding the new state

        Raises:
            ValidationError: If quality is outside [0, 5]
        """
        rating = validate_quality(quality)
        now = now or _utc_now()

        ease_factor = self.next_ease_factor(state.ease_factor, rating)
        was_correct = rating >= self.passing_quality

        if was_correct:
            repetitions = state.repetitions + 1
            interval = self.next_interval(repetitions, state.interval, ease_factor)
        else:
            repetitions = 0
            interval = self.first_interval

        new_state = ScheduleState(
            ease_factor=ease_factor,
            interval=interval,
            repetitions=repetitions,
            last_review_date=now,
            next_review_date=now + timedelta(days=interval),
        )

        logger.debug(
            f"SM-2 review q={int(rating)}: ef {state.ease_factor:.2f}->{ease_factor:.2f}, "
            f"reps {state.repetitions}->{repetitions}, interval {state.interval}->{interval}"
        )

        return ReviewOutcome(
            state=new_state,
            quality=rating,
            was_correct=was_correct,
            previous_state=replace(state),
            reviewed_at=now,
        )

    @staticmethod
    def is_due(next_review_date: datetime, now: Optional[datetime] = None) -> bool:
        """An item is due once its next review date has been reached."""
        return next_review_date <= (now or _utc_now())


def create_scheduler(config: Optional[Settings] = None) -> SM2Scheduler:
    """
    Factory function to create a configured scheduler.

    Args:
        config: Settings to read SM2_* values from (defaults to app settings)

    Returns:
        Configured SM2Scheduler instance
    """
    config = config or default_settings
    return SM2Scheduler(
        initial_ease_factor=config.SM2_INITIAL_EASE_FACTOR,
        min_ease_factor=config.SM2_MIN_EASE_FACTOR,
        passing_quality=config.SM2_PASSING_QUALITY,
        first_interval=config.SM2_FIRST_INTERVAL_DAYS,
        second_interval=config.SM2_SECOND_INTERVAL_DAYS,
    )
