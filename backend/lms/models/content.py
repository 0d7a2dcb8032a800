"""
Pydantic Models for Module Content

Typed view over the raw module documents stored by the course authoring
service. Field names arrive in camelCase (``isCorrect``, ``conceptKey``) and
are exposed in snake_case.

Content blocks are a tagged union keyed by ``type``; interaction payloads
are a second tagged union keyed by the interaction ``type``. Parsing is done
one block at a time via ``parse_content_block`` so a single malformed block
never invalidates the rest of the module.
"""

import logging
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from lms.enums.review import ContentBlockType, InteractionType

logger = logging.getLogger(__name__)


class ContentModel(BaseModel):
    """Base for content documents: camelCase in, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        from_attributes=True,
        coerce_numbers_to_str=True,
    )


# ===========================================
# Interactions
# ===========================================


class McqOption(ContentModel):
    id: str = ""
    text: str
    is_correct: bool = False
    feedback: Optional[str] = None


class McqInteraction(ContentModel):
    """Multiple choice question. The correct option's text is the answer."""

    type: Literal["mcq"]
    question: str
    options: list[McqOption] = Field(default_factory=list)

    def correct_option(self) -> Optional[McqOption]:
        return next((option for option in self.options if option.is_correct), None)


class Blank(ContentModel):
    id: str = ""
    correct_answer: str
    acceptable_answers: list[str] = Field(default_factory=list)
    hint: Optional[str] = None


class FillBlankInteraction(ContentModel):
    """Cloze text with ``{{...}}`` placeholders, one per blank."""

    type: Literal["fill_blank"]
    text: str
    blanks: list[Blank] = Field(default_factory=list)


class ReflectionInteraction(ContentModel):
    """Open-ended prompt graded against a rubric."""

    type: Literal["reflection"]
    prompt: str
    rubric: Optional[str] = None
    min_words: Optional[int] = None
    max_words: Optional[int] = None


class RevealInteraction(ContentModel):
    type: Literal["reveal"]


class ConfirmInteraction(ContentModel):
    type: Literal["confirm"]


class CodeInteraction(ContentModel):
    type: Literal["code"]


Interaction = Annotated[
    Union[
        McqInteraction,
        FillBlankInteraction,
        ReflectionInteraction,
        RevealInteraction,
        ConfirmInteraction,
        CodeInteraction,
    ],
    Field(discriminator="type"),
]


# ===========================================
# Content Blocks
# ===========================================


class TextBlock(ContentModel):
    type: Literal["text"]
    id: str
    order: int = 0
    content: Optional[str] = None


class InteractionBlock(ContentModel):
    type: Literal["interaction"]
    id: str
    order: int = 0
    interaction: Interaction
    concept_key: Optional[str] = None
    is_required: bool = False


ContentBlock = Annotated[
    Union[TextBlock, InteractionBlock],
    Field(discriminator="type"),
]

_content_block_adapter: TypeAdapter[ContentBlock] = TypeAdapter(ContentBlock)

_KNOWN_INTERACTION_TYPES = {t.value for t in InteractionType}


def parse_content_block(raw: Any) -> Optional[ContentBlock]:
    """
    Parse one raw content block.

    Returns None for interaction types this service does not know about and
    for malformed blocks; both are logged and never raised.
    """
    if isinstance(raw, dict):
        interaction = raw.get("interaction")
        if (
            raw.get("type") == ContentBlockType.INTERACTION.value
            and isinstance(interaction, dict)
            and interaction.get("type") not in _KNOWN_INTERACTION_TYPES
        ):
            logger.debug(
                f"Skipping block {raw.get('id')}: unsupported interaction type "
                f"{interaction.get('type')!r}"
            )
            return None

    try:
        return _content_block_adapter.validate_python(raw)
    except PydanticValidationError as e:
        block_id = raw.get("id") if isinstance(raw, dict) else None
        logger.warning(
            f"Skipping malformed content block {block_id}: {e.error_count()} error(s)"
        )
        return None


# ===========================================
# AI-generated content
# ===========================================


class PracticeQuestion(ContentModel):
    question: str
    answer: str
    explanation: Optional[str] = None


def _none_as_empty(value: Any) -> Any:
    """Stored documents use null for "no entries"; treat it as an empty list."""
    return [] if value is None else value


class AIGeneratedContent(ContentModel):
    """Companion content produced by the course generation service."""

    summary: Optional[str] = None
    examples: list[Any] = Field(default_factory=list)

    # Kept raw; items are validated one by one during extraction
    key_points: list[Any] = Field(default_factory=list)
    practice_questions: list[Any] = Field(default_factory=list)

    @field_validator("examples", "key_points", "practice_questions", mode="before")
    @classmethod
    def _null_lists(cls, value: Any) -> Any:
        return _none_as_empty(value)


class ModuleContent(ContentModel):
    """
    Everything the extractor needs to know about a module.

    ``content_blocks`` stays raw so each block can be validated on its own.
    AI-generated content that can't be parsed at all is dropped with a
    warning; the module's own blocks are still used.
    """

    id: str
    course_id: str = ""
    title: str
    is_interactive: bool = False
    content_blocks: list[Any] = Field(default_factory=list)
    ai_generated_content: Optional[AIGeneratedContent] = None

    @field_validator("content_blocks", mode="before")
    @classmethod
    def _null_blocks(cls, value: Any) -> Any:
        return _none_as_empty(value)

    @field_validator("ai_generated_content", mode="wrap")
    @classmethod
    def _drop_malformed_ai_content(
        cls, value: Any, handler
    ) -> Optional[AIGeneratedContent]:
        try:
            return handler(value)
        except PydanticValidationError as e:
            logger.warning(
                f"Ignoring malformed AI-generated content: {e.error_count()} error(s)"
            )
            return None

