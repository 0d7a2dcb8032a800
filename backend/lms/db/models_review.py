"""
SQLAlchemy Database Models for the Review System

These models back the SM-2 spaced repetition review queue.

Tables:
- review_items: One reviewable concept per (student, module, concept key)
- review_history: Append-only log of submitted reviews

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    There is a corresponding Pydantic file: lms/models/review.py

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from lms.db.base import Base
from lms.db.types import UTCDateTime


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


# ===========================================
# Review Items (SM-2)
# ===========================================


class ReviewItem(Base):
    """
    A flash-card-like unit tied to one concept within a module.

    Attributes:
        id: Primary key, auto-incrementing integer identifier.
        student_id: Owning student. Items are never read or written on behalf
            of another student.
        course_id: Course the module belongs to.
        module_id: Module the concept was extracted from.
        concept_key: Stable key of the concept within the module, e.g.
            "practice_0", "block_b7" or "keypoint_2".
        question: Prompt shown to the student.
        answer: Expected answer, or self-check rubric for reflections.

        Scheduling (written only by the SM-2 scheduler):
        ease_factor: Interval growth multiplier, never below 1.3.
        interval: Days between last_review_date and next_review_date.
        repetitions: Consecutive successful reviews.
        next_review_date: When the item is next due. New items are due
            immediately.
        last_review_date: Timestamp of the most recent review.

        Stats:
        correct_count: Reviews rated >= 3.
        incorrect_count: Reviews rated < 3.

        version: Optimistic concurrency counter, bumped on every update.
    """

    __tablename__ = "review_items"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "module_id", "concept_key", name="uq_review_item_concept"
        ),
        Index("ix_review_items_student_due", "student_id", "next_review_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Identity
    student_id: Mapped[str] = mapped_column(String(64))
    course_id: Mapped[str] = mapped_column(String(64), index=True)
    module_id: Mapped[str] = mapped_column(String(64), index=True)
    concept_key: Mapped[str] = mapped_column(String(200))

    # Content
    question: Mapped[str] = mapped_column(Text)
    answer: Mapped[str] = mapped_column(Text)

    # SM-2 state
    ease_factor: Mapped[float] = mapped_column(Float, default=2.5)
    interval: Mapped[int] = mapped_column(Integer, default=0)
    repetitions: Mapped[int] = mapped_column(Integer, default=0)
    next_review_date: Mapped[datetime] = mapped_column(UTCDateTime, default=_utc_now)
    last_review_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)

    # Stats
    correct_count: Mapped[int] = mapped_column(Integer, default=0)
    incorrect_count: Mapped[int] = mapped_column(Integer, default=0)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=_utc_now, onupdate=_utc_now
    )

    __mapper_args__ = {"version_id_col": version}


class ReviewHistory(Base):
    """
    One submitted review of a ReviewItem.

    Attributes:
        id: Primary key.
        item_id: Reviewed item.
        student_id: Student who submitted the review.
        quality: Submitted recall quality (0-5).
        was_correct: Whether the quality counted as a successful recall.
        time_spent_seconds: Time the student spent on the item.
        ease_factor_after: Ease factor after the update.
        interval_after: Interval in days after the update.
        repetitions_after: Repetition count after the update.
        reviewed_at: Timestamp of the review.
    """

    __tablename__ = "review_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    item_id: Mapped[int] = mapped_column(
        ForeignKey("review_items.id", ondelete="CASCADE"), index=True
    )
    student_id: Mapped[str] = mapped_column(String(64), index=True)

    quality: Mapped[int] = mapped_column(Integer)
    was_correct: Mapped[bool] = mapped_column(Boolean)
    time_spent_seconds: Mapped[int] = mapped_column(Integer, default=0)

    ease_factor_after: Mapped[float] = mapped_column(Float)
    interval_after: Mapped[int] = mapped_column(Integer)
    repetitions_after: Mapped[int] = mapped_column(Integer)

    reviewed_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utc_now)
