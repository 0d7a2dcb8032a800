"""
Unit tests for the review item extractor.
"""

import copy

import pytest

from lms.models.content import ModuleContent, parse_content_block
from lms.services.review.extractor import extract_review_candidates


def _module(data: dict) -> ModuleContent:
    return ModuleContent.model_validate(data)


def _interaction_block(block_id: str, interaction: dict, **extra) -> dict:
    return {"id": block_id, "type": "interaction", "interaction": interaction, **extra}


class TestSourceOrder:
    """Tests for extraction order and concept keys."""

    def test_extracts_all_sources_in_order(self, sample_module_data):
        candidates = extract_review_candidates(_module(sample_module_data))

        assert [c.concept_key for c in candidates] == [
            "practice_0",
            "block_b1",
            "light-reaction-inputs",
            "block_b3",
            "keypoint_0",
            "keypoint_1",
        ]

    def test_practice_question(self, sample_module_data):
        first = extract_review_candidates(_module(sample_module_data))[0]

        assert first.question == "What gas do plants absorb?"
        assert first.answer == "Carbon dioxide"

    def test_key_point_question_uses_title(self, sample_module_data):
        candidates = extract_review_candidates(_module(sample_module_data))
        keypoint = next(c for c in candidates if c.concept_key == "keypoint_1")

        assert keypoint.question == "What is a key concept about Photosynthesis?"
        assert keypoint.answer == "Oxygen is a by-product"

    def test_is_deterministic(self, sample_module_data):
        first = extract_review_candidates(_module(sample_module_data))
        second = extract_review_candidates(_module(sample_module_data))
        assert first == second


class TestInteractionBlocks:
    """Tests for interaction block handling."""

    def test_mcq_uses_correct_option_text(self, sample_module_data):
        candidates = extract_review_candidates(_module(sample_module_data))
        mcq = next(c for c in candidates if c.concept_key == "block_b1")

        assert mcq.question == "Where does photosynthesis happen?"
        assert mcq.answer == "Chloroplast"

    def test_mcq_without_correct_option_skipped(self, sample_module_data):
        data = copy.deepcopy(sample_module_data)
        for option in data["contentBlocks"][1]["interaction"]["options"]:
            option["isCorrect"] = False

        keys = [c.concept_key for c in extract_review_candidates(_module(data))]

        assert "block_b1" not in keys
        # Siblings still extracted
        assert "light-reaction-inputs" in keys
        assert "block_b3" in keys

    def test_fill_blank(self, sample_module_data):
        candidates = extract_review_candidates(_module(sample_module_data))
        fill = next(c for c in candidates if c.concept_key == "light-reaction-inputs")

        assert fill.question == "Light reactions use ______ and ______."
        assert fill.answer == "water, light"

    def test_fill_blank_without_blanks_skipped(self):
        data = {
            "id": "m",
            "title": "T",
            "isInteractive": True,
            "contentBlocks": [
                _interaction_block(
                    "f1", {"type": "fill_blank", "text": "Nothing {{here}}", "blanks": []}
                )
            ],
        }
        assert extract_review_candidates(_module(data)) == []

    def test_reflection_uses_rubric(self, sample_module_data):
        candidates = extract_review_candidates(_module(sample_module_data))
        reflection = next(c for c in candidates if c.concept_key == "block_b3")

        assert reflection.question == "Why do leaves change colour?"
        assert reflection.answer == "Mentions chlorophyll breakdown"

    def test_reflection_without_rubric_skipped(self):
        data = {
            "id": "m",
            "title": "T",
            "isInteractive": True,
            "contentBlocks": [
                _interaction_block("r1", {"type": "reflection", "prompt": "Discuss."})
            ],
        }
        assert extract_review_candidates(_module(data)) == []

    @pytest.mark.parametrize("interaction_type", ["reveal", "confirm", "code"])
    def test_informational_types_yield_nothing(self, interaction_type):
        data = {
            "id": "m",
            "title": "T",
            "isInteractive": True,
            "contentBlocks": [_interaction_block("x", {"type": interaction_type})],
        }
        assert extract_review_candidates(_module(data)) == []

    def test_unknown_and_malformed_blocks_do_not_abort(self, sample_module_data):
        data = copy.deepcopy(sample_module_data)
        data["contentBlocks"][0:0] = [
            _interaction_block("u1", {"type": "hotspot", "image": "x.png"}),
            _interaction_block("bad", {"type": "mcq", "options": "not-a-list"}),
            {"type": "interaction", "id": "no-payload"},
            "not even a dict",
        ]

        keys = [c.concept_key for c in extract_review_candidates(_module(data))]

        assert "block_u1" not in keys
        assert "block_bad" not in keys
        assert "block_b1" in keys

    def test_non_interactive_module_ignores_blocks(self, sample_module_data):
        data = copy.deepcopy(sample_module_data)
        data["isInteractive"] = False

        keys = [c.concept_key for c in extract_review_candidates(_module(data))]

        assert keys == ["practice_0", "keypoint_0", "keypoint_1"]

    def test_completed_block_filter(self, sample_module_data):
        candidates = extract_review_candidates(
            _module(sample_module_data), completed_block_ids={"b2"}
        )
        keys = [c.concept_key for c in candidates]

        assert keys == ["practice_0", "light-reaction-inputs", "keypoint_0", "keypoint_1"]


class TestEmptyAndPartialContent:
    """Tests for modules with little or broken content."""

    def test_empty_module_returns_no_candidates(self):
        data = {"id": "m", "title": "Empty"}
        assert extract_review_candidates(_module(data)) == []

    def test_bad_practice_question_skipped(self, sample_module_data):
        data = copy.deepcopy(sample_module_data)
        data["aiGeneratedContent"]["practiceQuestions"] = [
            {"question": "Missing answer"},
            {"question": "  ", "answer": "blank question"},
            {"question": "Q?", "answer": "A"},
        ]

        candidates = extract_review_candidates(_module(data))
        practice = [c for c in candidates if c.concept_key.startswith("practice_")]

        # Index stays tied to position, so the surviving one keeps its key
        assert [c.concept_key for c in practice] == ["practice_2"]

    def test_non_string_key_points_skipped(self, sample_module_data):
        data = copy.deepcopy(sample_module_data)
        data["aiGeneratedContent"]["keyPoints"] = [None, "Real point", ""]

        candidates = extract_review_candidates(_module(data))
        keypoints = [c.concept_key for c in candidates if c.concept_key.startswith("keypoint_")]

        assert keypoints == ["keypoint_1"]

    @pytest.mark.parametrize("field", ["keyPoints", "practiceQuestions", "examples"])
    def test_null_ai_lists_treated_as_empty(self, sample_module_data, field):
        data = copy.deepcopy(sample_module_data)
        data["aiGeneratedContent"][field] = None

        candidates = extract_review_candidates(_module(data))
        keys = [c.concept_key for c in candidates]

        assert "block_b1" in keys
        if field != "practiceQuestions":
            assert "practice_0" in keys
        if field != "keyPoints":
            assert "keypoint_0" in keys

    def test_null_key_points_keep_practice_questions(self):
        module = ModuleContent(
            id="m1",
            course_id="c1",
            title="T",
            ai_generated_content={
                "keyPoints": None,
                "practiceQuestions": [{"question": "Q", "answer": "A"}],
            },
        )

        candidates = extract_review_candidates(module)

        assert [c.concept_key for c in candidates] == ["practice_0"]

    def test_null_content_blocks(self, sample_module_data):
        data = copy.deepcopy(sample_module_data)
        data["contentBlocks"] = None

        keys = [c.concept_key for c in extract_review_candidates(_module(data))]

        assert not any(k.startswith("block_") for k in keys)
        assert "practice_0" in keys

    def test_malformed_ai_content_dropped(self, sample_module_data):
        data = copy.deepcopy(sample_module_data)
        data["aiGeneratedContent"] = {"keyPoints": "not a list"}

        module = _module(data)
        keys = [c.concept_key for c in extract_review_candidates(module)]

        assert module.ai_generated_content is None
        assert "block_b1" in keys
        assert not any(k.startswith(("practice_", "keypoint_")) for k in keys)


class TestParseContentBlock:
    """Tests for parse_content_block."""

    def test_text_block(self):
        block = parse_content_block({"id": "t", "type": "text", "content": "hi"})
        assert block is not None
        assert block.type == "text"

    def test_snake_case_accepted(self):
        block = parse_content_block(
            _interaction_block(
                "m1",
                {
                    "type": "mcq",
                    "question": "Q",
                    "options": [{"text": "A", "is_correct": True}],
                },
                concept_key="k",
            )
        )
        assert block.concept_key == "k"
        assert block.interaction.correct_option().text == "A"

    def test_numeric_id_coerced(self):
        block = parse_content_block({"id": 7, "type": "text"})
        assert block.id == "7"

    def test_unknown_block_type(self):
        assert parse_content_block({"id": "v", "type": "video"}) is None
