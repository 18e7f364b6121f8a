import json
from unittest.mock import patch

import pytest

from mentorhub.application.generation import (
    Ok,
    ParseError,
    QuestionGenerator,
    decode_generated_json,
    fallback_question,
    report_parse_failure,
)
from mentorhub.constants import ASSESSMENT_SYSTEM_PROMPT, FALLBACK_DIFFICULTY, FALLBACK_SKILL_AREA
from mentorhub.domain.exceptions import GenerationParseError

from conftest import ScriptedProvider, question_json


class TestDecodeGeneratedJson:
    def test_plain_object(self):
        assert decode_generated_json('{"a": 1}') == Ok({"a": 1})

    def test_fenced_object(self):
        raw = '```json\n{"a": 1}\n```'
        assert decode_generated_json(raw) == Ok({"a": 1})

    def test_bare_fence(self):
        assert decode_generated_json('```\n{"a": [1, 2]}\n```') == Ok({"a": [1, 2]})

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty(self, raw):
        result = decode_generated_json(raw)
        assert isinstance(result, ParseError)
        assert result.reason == "empty output"

    def test_invalid_json(self):
        result = decode_generated_json("Sure! Here is your question:")
        assert isinstance(result, ParseError)
        assert result.raw == "Sure! Here is your question:"
        assert result.reason.startswith("invalid JSON")

    def test_non_object(self):
        result = decode_generated_json("[1, 2, 3]")
        assert isinstance(result, ParseError)
        assert "not an object" in result.reason


class TestReportParseFailure:
    def test_returns_exception_with_raw(self):
        exc = report_parse_failure("next_question", "garbage", "invalid JSON")
        assert isinstance(exc, GenerationParseError)
        assert exc.raw == "garbage"
        assert exc.details["call_site"] == "next_question"

    def test_log_carries_fingerprint_not_generated_text(self):
        raw = question_json(correct="O(log n)", text="Binary search cost?")
        with patch("mentorhub.application.generation.warning") as mock_warning:
            report_parse_failure("first_question", raw, "1 validation error(s)")

        record = mock_warning.call_args.args[0]
        assert "raw" not in record.data
        assert record.data["raw_length"] == len(raw)
        assert len(record.data["raw_sha256"]) == 16
        assert "O(log n)" not in json.dumps(record.data)
        assert "O(log n)" not in record.message


class TestFallbackQuestion:
    def test_shape(self):
        question = fallback_question("graphs", 7)
        assert len(question.options) == 4
        assert question.correct_answer == question.options[0]
        assert question.skill_area == "graphs"
        assert question.difficulty == 7


class TestQuestionGenerator:
    @pytest.mark.anyio
    async def test_first_question_parsed(self):
        provider = ScriptedProvider(question_json("arrays", 4, correct="O(1)"))
        question = await QuestionGenerator(provider).first_question(
            [{"skill_name": "arrays", "skill_level": 3}], [{"topic": "hashing"}]
        )
        assert question.skill_area == "arrays"
        assert question.correct_answer == "O(1)"
        assert question.difficulty == 4
        system, prompt = provider.calls[0]
        assert system == ASSESSMENT_SYSTEM_PROMPT
        assert "hashing" in prompt
        assert '"skill_level": 3' in prompt

    @pytest.mark.anyio
    async def test_first_question_falls_back_on_garbage(self):
        provider = ScriptedProvider("not json at all")
        question = await QuestionGenerator(provider).first_question([], [])
        assert question.skill_area == FALLBACK_SKILL_AREA
        assert question.difficulty == FALLBACK_DIFFICULTY

    @pytest.mark.anyio
    async def test_next_question_prompt_carries_context(self):
        provider = ScriptedProvider(question_json("graphs", 6))
        await QuestionGenerator(provider).next_question(
            previous_answer_correct=True, skill_area="graphs", current_difficulty=5
        )
        _, prompt = provider.calls[0]
        assert "Previous Answer Correct: true" in prompt
        assert "Skill Area: graphs" in prompt
        assert "Current Difficulty: 5" in prompt

    @pytest.mark.anyio
    async def test_next_question_falls_back_to_current_area(self):
        provider = ScriptedProvider('{"question": "missing fields"}')
        question = await QuestionGenerator(provider).next_question(
            previous_answer_correct=False, skill_area="trees", current_difficulty="hard"
        )
        assert question.skill_area == "trees"
        assert question.difficulty == "hard"

    @pytest.mark.anyio
    async def test_question_without_options_rejected(self):
        payload = json.loads(question_json("arrays"))
        payload["options"] = []
        provider = ScriptedProvider(json.dumps(payload))
        question = await QuestionGenerator(provider).next_question(
            previous_answer_correct=True, skill_area="arrays", current_difficulty=5
        )
        assert len(question.options) == 4
        assert question.question != payload["question"]

    @pytest.mark.anyio
    async def test_string_difficulty_preserved(self):
        payload = json.loads(question_json("arrays"))
        payload["difficulty"] = "medium"
        provider = ScriptedProvider(json.dumps(payload))
        question = await QuestionGenerator(provider).first_question([], [])
        assert question.difficulty == "medium"

    @pytest.mark.anyio
    async def test_fractional_difficulty_accepted(self):
        provider = ScriptedProvider(
            question_json("graphs", difficulty=6.5, text="Real graphs question")
        )
        question = await QuestionGenerator(provider).next_question(
            previous_answer_correct=True, skill_area="graphs", current_difficulty=6
        )
        assert question.question == "Real graphs question"
        assert question.difficulty == 6.5

    @pytest.mark.anyio
    async def test_null_difficulty_accepted(self):
        payload = json.loads(question_json("graphs", text="Real graphs question"))
        payload["difficulty"] = None
        provider = ScriptedProvider(json.dumps(payload))
        question = await QuestionGenerator(provider).first_question([], [])
        assert question.question == "Real graphs question"
        assert question.difficulty is None
