"""
Pydantic Models for the Review System

Request and response schemas for the review API, plus the internal
ReviewCandidate produced by the item extractor.

ARCHITECTURE NOTE:
    There is a corresponding SQLAlchemy file: lms/db/models_review.py
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from lms.enums.review import ReviewQuality
from lms.models.base import StrictRequest, StrictResponse


# ===========================================
# Extraction
# ===========================================


class ReviewCandidate(BaseModel):
    """
    A normalized question/answer pair extracted from module content.

    The concept key is derived from the source and its position
    ("practice_0", "block_<id>", "keypoint_3"), never from the text, so it
    stays stable when the content is edited.
    """

    concept_key: str = Field(..., min_length=1, max_length=200)
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)


# ===========================================
# Review Items
# ===========================================


class ReviewItemResponse(StrictResponse):
    """A review item with its current scheduling state."""

    id: int
    course_id: str
    module_id: str
    concept_key: str
    question: str
    answer: str

    ease_factor: float
    interval: int
    repetitions: int
    next_review_date: datetime
    last_review_date: Optional[datetime] = None

    correct_count: int
    incorrect_count: int
    version: int


class DueItemsResponse(StrictResponse):
    """
    Items currently due, most overdue first.

    An empty list means the student is all caught up.
    """

    items: list[ReviewItemResponse]
    total: int


# ===========================================
# Generation
# ===========================================


class ReviewGenerateRequest(StrictRequest):
    """
    Request to create review items for a module the student just completed.

    Note: Uses StrictRequest - unknown fields will be rejected with 422.
    """

    course_id: str = Field(..., min_length=1, max_length=64)
    module_id: str = Field(..., min_length=1, max_length=64)
    completed_block_ids: Optional[list[str]] = Field(
        None,
        description=(
            "Interaction blocks the student completed. When given, only these "
            "blocks yield review items."
        ),
    )


class ReviewGenerateResponse(StrictResponse):
    """
    Outcome of item generation.

    created is 0 both when the module has no reviewable content and when
    every candidate already had an item; neither is an error.
    """

    created: int
    total: int
    message: str
    items: list[ReviewItemResponse] = Field(default_factory=list)


# ===========================================
# Submission
# ===========================================


class ReviewSubmitRequest(StrictRequest):
    """
    Submit a recall quality rating for one review item.

    Note: Uses StrictRequest - unknown fields will be rejected with 422.
    """

    item_id: int = Field(..., description="Review item ID")
    quality: ReviewQuality = Field(..., description="Recall quality (0-5)")
    time_spent_seconds: int = Field(0, ge=0, description="Time spent on review")
    expected_version: Optional[int] = Field(
        None,
        ge=1,
        description="Item version the client saw; stale versions are rejected with 409",
    )


class ReviewSubmitResponse(StrictResponse):
    item: ReviewItemResponse
    was_correct: bool
    message: str


# ===========================================
# Stats
# ===========================================


class ReviewStats(StrictResponse):
    """
    Review queue statistics for a student, optionally scoped to one course.

    An item is mastered once both configured thresholds are met
    (repetitions and interval); see REVIEW_MASTERED_* settings.
    """

    total_items: int = 0
    due_items: int = 0
    overdue_items: int = 0
    mastered_items: int = 0
    reviewed_today: int = 0
    mastery_percentage: int = 0
    accuracy: int = 0
    total_reviews: int = 0


class ScheduleDay(StrictResponse):
    day: date
    count: int


class ReviewScheduleResponse(StrictResponse):
    """Number of items coming due on each of the next ``days`` days."""

    days: list[ScheduleDay]
    total: int
