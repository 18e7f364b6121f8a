"""Question generation on top of an untrusted text-generation backend.

Model output is free text. It is decoded with :func:`decode_generated_json`,
which never raises, and every call site substitutes a defined fallback when
decoding or validation fails.
"""

import hashlib
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Union

from pydantic import ValidationError

from ..constants import (
    ASSESSMENT_SYSTEM_PROMPT,
    FALLBACK_DIFFICULTY,
    FALLBACK_SKILL_AREA,
)
from ..domain.exceptions import GenerationParseError
from ..domain.models import Question
from ..logging import warning, LogRecord, LogEvent

_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


class TextGenerationProvider(Protocol):
    async def complete(self, system: str, prompt: str) -> str: ...


@dataclass(frozen=True)
class Ok:
    value: Dict[str, Any]


@dataclass(frozen=True)
class ParseError:
    raw: str
    reason: str


DecodeResult = Union[Ok, ParseError]


def decode_generated_json(raw: Optional[str]) -> DecodeResult:
    """Decode model output expected to hold one JSON object.

    Markdown code fences around the object are tolerated.
    """
    text = (raw or "").strip()
    if not text:
        return ParseError(raw=raw or "", reason="empty output")
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        return ParseError(raw=raw or "", reason=f"invalid JSON: {e.msg}")
    if not isinstance(value, dict):
        return ParseError(raw=raw or "", reason="top-level value is not an object")
    return Ok(value)


def report_parse_failure(call_site: str, raw: str, reason: str) -> GenerationParseError:
    """Log a recovered decode failure and return the matching exception."""
    exc = GenerationParseError(
        f"{call_site}: generated content rejected ({reason})",
        raw=raw,
        details={"call_site": call_site},
    )
    warning(
        LogRecord(
            event=LogEvent.GENERATION_PARSE_ERROR.value,
            message=exc.message,
            data={
                "call_site": call_site,
                "reason": reason,
                # Generated text can hold the hidden answer; log a fingerprint only
                "raw_sha256": hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16],
                "raw_length": len(raw),
            },
        ),
        exc=exc,
    )
    return exc


def fallback_question(skill_area: str, difficulty: Any) -> Question:
    options = [
        f"Practice {skill_area} problems regularly and review the mistakes",
        "Memorize answers without practising",
        "Skip the fundamentals",
        "Avoid feedback on your work",
    ]
    return Question(
        question=f"Which approach most reliably improves your {skill_area} skills?",
        options=options,
        correct_answer=options[0],
        explanation="Deliberate practice with feedback builds lasting skill.",
        skill_area=skill_area,
        difficulty=difficulty,
    )


QUESTION_SHAPE = """{
        "question": "The question text",
        "options": ["option1", "option2", "option3", "option4"],
        "correctAnswer": "correct option",
        "explanation": "Detailed explanation",
        "skillArea": "The skill being tested",
        "difficulty": 5
      }"""


class QuestionGenerator:
    """Builds assessment prompts and turns model output into :class:`Question`."""

    def __init__(self, provider: TextGenerationProvider):
        self._provider = provider

    async def first_question(
        self,
        user_skills: List[Dict[str, Any]],
        learning_history: List[Dict[str, Any]],
    ) -> Question:
        prompt = f"""
      Create a skill assessment question based on the following context:
      User's Current Skills: {json.dumps(user_skills, default=str)}
      Recent Learning History: {json.dumps(learning_history, default=str)}

      Generate a JSON response with the following structure:
      {QUESTION_SHAPE}
    """
        raw = await self._provider.complete(ASSESSMENT_SYSTEM_PROMPT, prompt)
        return self._to_question(
            raw, "first_question", FALLBACK_SKILL_AREA, FALLBACK_DIFFICULTY
        )

    async def next_question(
        self,
        previous_answer_correct: bool,
        skill_area: str,
        current_difficulty: Any,
    ) -> Question:
        """Ask for the next question; how difficulty adapts is up to the model."""
        prompt = f"""
      Generate the next assessment question based on:
      Previous Answer Correct: {str(previous_answer_correct).lower()}
      Skill Area: {skill_area}
      Current Difficulty: {current_difficulty}

      Adjust difficulty based on performance.
      Return in JSON format with:
      {QUESTION_SHAPE}
    """
        raw = await self._provider.complete(ASSESSMENT_SYSTEM_PROMPT, prompt)
        return self._to_question(raw, "next_question", skill_area, current_difficulty)

    @staticmethod
    def _to_question(
        raw: str, call_site: str, skill_area: str, difficulty: Any
    ) -> Question:
        decoded = decode_generated_json(raw)
        if isinstance(decoded, ParseError):
            report_parse_failure(call_site, decoded.raw, decoded.reason)
            return fallback_question(skill_area, difficulty)
        try:
            question = Question.model_validate(decoded.value)
        except ValidationError as e:
            report_parse_failure(call_site, raw, f"{e.error_count()} validation error(s)")
            return fallback_question(skill_area, difficulty)
        if not question.options:
            report_parse_failure(call_site, raw, "no options")
            return fallback_question(skill_area, difficulty)
        return question
