from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Dict, List, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..constants import ASSESSMENT_TOTAL_QUESTIONS


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON while keeping snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SessionStatus(StrEnum):
    """Lifecycle states of an assessment session."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Question(CamelModel):
    """A generated assessment question, including its grading data.

    Attributes:
        question (str): The question text.
        options (List[str]): Ordered answer options.
        correct_answer (str): The option graded as correct.
        explanation (str): Why the correct answer is correct.
        skill_area (str): Skill bucket the question is scored against.
        difficulty (Any): Difficulty exactly as reported by the generator,
            stored without clamping or validation.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    question: str
    options: List[str]
    correct_answer: str
    explanation: str = ""
    skill_area: str
    difficulty: Any = None

    def to_public(self, assessment_id: str, total_questions: int) -> "PublicQuestion":
        return PublicQuestion(
            question=self.question,
            options=list(self.options),
            skill_area=self.skill_area,
            difficulty=self.difficulty,
            id=assessment_id,
            total_questions=total_questions,
        )


class PublicQuestion(CamelModel):
    """The caller-facing projection of a :class:`Question`.

    Has no field for the correct answer or the explanation.
    """

    question: str
    options: List[str]
    skill_area: str
    difficulty: Any = None
    id: str
    total_questions: int = ASSESSMENT_TOTAL_QUESTIONS


class AreaTally(BaseModel):
    correct: int = 0
    total: int = 0


class SkillResult(CamelModel):
    """Per skill-area result computed when an assessment completes."""

    skill_area: str = Field(exclude=True)
    score: float
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class AssessmentSession(BaseModel):
    """Server-held record of one user's assessment."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    current_question: Optional[Question] = None
    answered_count: int = 0
    total_questions: int = ASSESSMENT_TOTAL_QUESTIONS
    per_area_tally: Dict[str, AreaTally] = Field(default_factory=dict)
    status: SessionStatus = SessionStatus.NOT_STARTED
    results: Optional[Dict[str, SkillResult]] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class AnswerRecord(BaseModel):
    """One graded answer, keyed by (assessment_id, user_id, question_ordinal)."""

    assessment_id: str
    user_id: str
    question_ordinal: int
    question: str
    user_answer: str
    correct_answer: str
    is_correct: bool
    explanation: str = ""
    skill_area: str
    created_at: datetime = Field(default_factory=utc_now)


class UserSkill(BaseModel):
    """Long-lived skill level keyed by (user_id, skill_name)."""

    user_id: str
    skill_name: str
    skill_level: float
    updated_at: datetime = Field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# HTTP request/response bodies
# ---------------------------------------------------------------------------


class StartAssessmentRequest(CamelModel):
    user_id: str = Field(min_length=1)


class SubmitAnswerRequest(CamelModel):
    user_id: str = Field(min_length=1)
    assessment_id: str = Field(min_length=1)
    answer: str


class AssessmentProgress(CamelModel):
    """Outcome of a submitted answer.

    Exactly one of ``next_question`` (assessment continues) or ``results``
    (assessment completed) is set.
    """

    is_complete: bool
    next_question: Optional[PublicQuestion] = None
    results: Optional[Dict[str, SkillResult]] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ProjectRequest(CamelModel):
    user_id: str = Field(min_length=1)
    technologies: List[str] = Field(default_factory=list)
    difficulty: int = Field(default=5, ge=1, le=10)
    time_frame: str = "2 weeks"


class ProjectResource(BaseModel):
    title: str = ""
    url: str = ""


class GeneratedProject(CamelModel):
    title: str = ""
    description: str = ""
    difficulty: Any = 0
    technologies: List[str] = Field(default_factory=list)
    time_estimate: str = ""
    learning_objectives: List[str] = Field(default_factory=list)
    code_template: str = ""
    resources: List[ProjectResource] = Field(default_factory=list)


class MentorRequest(CamelModel):
    user_id: str = Field(min_length=1)
    message: str = Field(min_length=1)


class MentorReply(CamelModel):
    response: str


class LearningPathRequest(CamelModel):
    user_id: str = Field(min_length=1)


class LearningPath(CamelModel):
    milestones: List[Any] = Field(default_factory=list)
    estimated_time: str = ""


class ContentType(StrEnum):
    ARTICLE = "article"
    EXERCISE = "exercise"
    PROJECT = "project"


class PersonalizedContentRequest(CamelModel):
    user_id: str = Field(min_length=1)
    content_type: ContentType


class PersonalizedContent(CamelModel):
    content_type: ContentType
    level: str
    content: str
