"""
Review Item Extractor

Turns a module's content into question/answer review candidates.

Sources, in order:
1. AI-generated practice questions    → "practice_{index}"
2. Interaction blocks (interactive modules only)
   - mcq: the correct option's text
   - fill_blank: the blanks' correct answers, comma-joined, with every
     {{...}} placeholder in the text replaced by a blank marker
   - reflection: the prompt, answered by the grading rubric
   → the block's concept key, else "block_{block_id}"
3. AI-generated key points             → "keypoint_{index}"

Concept keys come from source and position only, so they survive edits to
the text. Anything that cannot produce a complete question and answer is
skipped on its own; the rest of the module is still extracted.
"""

import logging
import re
from collections.abc import Collection
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from lms.config import settings
from lms.enums.review import ReviewSource
from lms.models.content import (
    FillBlankInteraction,
    InteractionBlock,
    McqInteraction,
    ModuleContent,
    PracticeQuestion,
    ReflectionInteraction,
    parse_content_block,
)
from lms.models.review import ReviewCandidate

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{[^}]+\}\}")


def extract_review_candidates(
    module: ModuleContent,
    completed_block_ids: Optional[Collection[str]] = None,
) -> list[ReviewCandidate]:
    """
    Extract review candidates from a module.

    Args:
        module: Parsed module content
        completed_block_ids: Interaction blocks the student completed. None
            means every block counts; otherwise only listed blocks yield items.

    Returns:
        Candidates in source order. Empty when the module has nothing
        reviewable, which is not an error.
    """
    candidates: list[ReviewCandidate] = []
    ai_content = module.ai_generated_content

    if ai_content is not None:
        candidates.extend(_from_practice_questions(ai_content.practice_questions))

    if module.is_interactive:
        candidates.extend(_from_blocks(module.content_blocks, completed_block_ids))

    if ai_content is not None:
        candidates.extend(_from_key_points(ai_content.key_points, module.title))

    logger.debug(f"Extracted {len(candidates)} review candidates from module {module.id}")
    return candidates


def _candidate(concept_key: str, question: Any, answer: Any) -> Optional[ReviewCandidate]:
    if not isinstance(question, str) or not isinstance(answer, str):
        return None
    question, answer = question.strip(), answer.strip()
    if not question or not answer:
        logger.info(f"Skipping review candidate {concept_key}: empty question or answer")
        return None
    try:
        return ReviewCandidate(concept_key=concept_key, question=question, answer=answer)
    except PydanticValidationError:
        logger.warning(f"Skipping review candidate {concept_key!r}: invalid concept key")
        return None


def _from_practice_questions(raw_questions: list[Any]) -> list[ReviewCandidate]:
    candidates = []
    for index, raw in enumerate(raw_questions):
        concept_key = f"{ReviewSource.PRACTICE.value}_{index}"
        try:
            practice = PracticeQuestion.model_validate(raw)
        except PydanticValidationError:
            logger.warning(f"Skipping malformed practice question {concept_key}")
            continue
        candidate = _candidate(concept_key, practice.question, practice.answer)
        if candidate:
            candidates.append(candidate)
    return candidates


def _from_blocks(
    raw_blocks: list[Any],
    completed_block_ids: Optional[Collection[str]],
) -> list[ReviewCandidate]:
    completed = set(completed_block_ids) if completed_block_ids is not None else None
    candidates = []

    for raw in raw_blocks:
        block = parse_content_block(raw)
        if not isinstance(block, InteractionBlock):
            continue
        if completed is not None and block.id not in completed:
            continue

        concept_key = block.concept_key or f"{ReviewSource.BLOCK.value}_{block.id}"
        candidate = extract_from_interaction(block, concept_key)
        if candidate:
            candidates.append(candidate)

    return candidates


def extract_from_interaction(
    block: InteractionBlock, concept_key: str
) -> Optional[ReviewCandidate]:
    """Build a candidate from one interaction block, or None if it has no canonical answer."""
    interaction = block.interaction

    if isinstance(interaction, McqInteraction):
        option = interaction.correct_option()
        if option is None:
            logger.info(f"Skipping MCQ block {block.id}: no option is marked correct")
            return None
        return _candidate(concept_key, interaction.question, option.text)

    if isinstance(interaction, FillBlankInteraction):
        if not interaction.blanks:
            logger.info(f"Skipping fill-in-the-blank block {block.id}: no blanks")
            return None
        answer = ", ".join(blank.correct_answer for blank in interaction.blanks)
        question = PLACEHOLDER_PATTERN.sub(settings.FILL_BLANK_MARKER, interaction.text)
        return _candidate(concept_key, question, answer)

    if isinstance(interaction, ReflectionInteraction):
        return _candidate(concept_key, interaction.prompt, interaction.rubric)

    # reveal / confirm / code carry no canonical answer
    return None


def _from_key_points(raw_points: list[Any], title: str) -> list[ReviewCandidate]:
    question = settings.KEYPOINT_QUESTION_TEMPLATE.format(title=title)
    candidates = []
    for index, point in enumerate(raw_points):
        concept_key = f"{ReviewSource.KEYPOINT.value}_{index}"
        candidate = _candidate(concept_key, question, point)
        if candidate:
            candidates.append(candidate)
    return candidates
