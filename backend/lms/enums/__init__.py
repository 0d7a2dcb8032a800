"""
Centralized enum definitions for the application.

Usage:
    from lms.enums import ReviewQuality, InteractionType

    # Or import from specific module
    from lms.enums.review import ReviewSource
"""

from lms.enums.review import (
    ContentBlockType,
    InteractionType,
    ReviewQuality,
    ReviewSource,
)

__all__ = [
    "ContentBlockType",
    "InteractionType",
    "ReviewQuality",
    "ReviewSource",
]
