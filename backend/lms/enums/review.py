"""
Review System Enums

Defines enums for SM-2 review ratings and the course content shapes
review items are extracted from.
"""

from enum import Enum


class ReviewQuality(int, Enum):
    """
    SM-2 recall quality.

    Student self-assessment after answering a review item. Ratings below
    CORRECT_DIFFICULT count as a failed recall and reset the item's
    repetition streak.
    """

    BLACKOUT = 0  # Complete blackout
    INCORRECT_FAMILIAR = 1  # Wrong, but the answer felt familiar
    INCORRECT_CLOSE = 2  # Wrong, but the answer seemed easy once seen
    CORRECT_DIFFICULT = 3  # Correct with serious difficulty
    CORRECT_HESITANT = 4  # Correct after some hesitation
    PERFECT = 5  # Perfect, effortless recall


class ContentBlockType(str, Enum):
    """Kinds of module content blocks."""

    TEXT = "text"
    INTERACTION = "interaction"


class InteractionType(str, Enum):
    """
    Interaction sub-types of an interaction content block.

    Only MCQ, FILL_BLANK and REFLECTION carry a canonical answer and yield
    review items. The others are informational and skipped.
    """

    MCQ = "mcq"
    FILL_BLANK = "fill_blank"
    REFLECTION = "reflection"
    REVEAL = "reveal"
    CONFIRM = "confirm"
    CODE = "code"


class ReviewSource(str, Enum):
    """Where a review candidate was extracted from. Prefixes the concept key."""

    PRACTICE = "practice"
    BLOCK = "block"
    KEYPOINT = "keypoint"
