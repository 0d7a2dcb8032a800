"""
SQLAlchemy Models for Course Content

Only the slice of the course model the review engine reads is mapped here.
Course authoring (and AI generation of the content) lives in another service;
this table is the content reader's persisted view of a module.

Tables:
- modules: Course modules with their content blocks and AI-generated content

ARCHITECTURE NOTE:
    The JSON columns hold raw, untrusted documents. They are parsed into the
    typed Pydantic models in lms/models/content.py before use.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from lms.db.base import Base
from lms.db.types import UTCDateTime


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


JSONType = JSON().with_variant(JSONB(), "postgresql")


class Module(Base):
    """
    A module within a course.

    Attributes:
        id: Module identifier assigned by the authoring service.
        course_id: Identifier of the owning course.
        title: Module title, used in synthesized key-point questions.
        is_interactive: Whether the module's interaction blocks are enabled.
            Interaction blocks of a non-interactive module are ignored.
        content_blocks: Ordered list of raw content block documents
            (text and interaction blocks).
        ai_generated_content: Raw AI-generated companion content with
            summary, key points, examples and practice questions. Null when
            the module was authored by hand.
        created_at: Timestamp when the module was first stored.
    """

    __tablename__ = "modules"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    course_id: Mapped[str] = mapped_column(String(64), index=True)
    title: Mapped[str] = mapped_column(String(500))
    is_interactive: Mapped[bool] = mapped_column(Boolean, default=False)

    # Content
    content_blocks: Mapped[list[Any]] = mapped_column(JSONType, default=list)
    ai_generated_content: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSONType, nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utc_now)
