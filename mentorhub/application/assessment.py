"""Adaptive skill assessment state machine.

A session moves ``not_started -> in_progress -> completed``. The client
drives it one answer at a time; the service grades each answer against the
hidden correct answer, keeps a per skill-area tally and, once the fixed
number of questions has been answered, scores every touched skill area and
merges the scores into the user's long-lived skill levels.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Optional

import anyio

from ..constants import ASSESSMENT_HISTORY_LIMIT, ASSESSMENT_TOTAL_QUESTIONS
from ..domain.exceptions import InvalidStateError, NotFoundError
from ..domain.models import (
    AnswerRecord,
    AreaTally,
    AssessmentProgress,
    AssessmentSession,
    PublicQuestion,
    SessionStatus,
    UserSkill,
)
from ..infrastructure.storage.base import DataStore
from ..logging import info, LogRecord, LogEvent
from .generation import QuestionGenerator
from .skill_aggregator import SkillAggregator


@dataclass
class _SessionLock:
    lock: anyio.Lock = field(default_factory=anyio.Lock)
    holders: int = 0


class AssessmentService:
    """Drives assessment sessions held in a :class:`DataStore`."""

    def __init__(
        self,
        store: DataStore,
        generator: QuestionGenerator,
        total_questions: int = ASSESSMENT_TOTAL_QUESTIONS,
        aggregator: Optional[SkillAggregator] = None,
    ):
        if total_questions < 1:
            raise ValueError(f"total_questions must be at least 1, got {total_questions}")
        self._store = store
        self._generator = generator
        self._total_questions = total_questions
        self._aggregator = aggregator or SkillAggregator()
        self._session_locks: Dict[str, _SessionLock] = {}

    @property
    def total_questions(self) -> int:
        return self._total_questions

    @asynccontextmanager
    async def _session_lock(self, session_id: str) -> AsyncIterator[None]:
        """Hold the per-session lock; the entry lives only while someone holds or awaits it."""
        entry = self._session_locks.get(session_id)
        if entry is None:
            entry = self._session_locks[session_id] = _SessionLock()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                del self._session_locks[session_id]

    async def start(self, user_id: str, request_id: Optional[str] = None) -> PublicQuestion:
        """Create a session for ``user_id`` and return its first question."""
        session = AssessmentSession(user_id=user_id, total_questions=self._total_questions)

        user_skills = await self._store.get_user_skills(user_id)
        history = await self._store.get_learning_history(user_id, ASSESSMENT_HISTORY_LIMIT)
        question = await self._generator.first_question(user_skills, history)

        session.current_question = question
        session.status = SessionStatus.IN_PROGRESS
        session = await self._store.create_session(session)

        info(
            LogRecord(
                event=LogEvent.ASSESSMENT_STARTED.value,
                message="Assessment started",
                request_id=request_id,
                data={
                    "assessment_id": session.id,
                    "user_id": user_id,
                    "skill_area": question.skill_area,
                    "difficulty": question.difficulty,
                },
            )
        )
        return question.to_public(session.id, session.total_questions)

    async def submit_answer(
        self,
        user_id: str,
        assessment_id: str,
        answer: str,
        request_id: Optional[str] = None,
    ) -> AssessmentProgress:
        """Grade ``answer`` against the current question and advance the session.

        The session row is written before the answer row. Store writes are not
        atomic: if recording the answer fails, the session has still advanced
        and the answer row is missing, but no question is graded twice.

        Raises:
            NotFoundError: If the session does not exist for this user
            InvalidStateError: If the session is not in progress
        """
        async with self._session_lock(assessment_id):
            session = await self._store.get_session(assessment_id)
            if session is None or session.user_id != user_id:
                raise NotFoundError(
                    f"Assessment {assessment_id} not found",
                    resource_id=assessment_id,
                    request_id=request_id,
                )
            if session.status != SessionStatus.IN_PROGRESS or session.current_question is None:
                raise InvalidStateError(
                    f"Assessment {assessment_id} is {session.status.value}",
                    current_state=session.status.value,
                    request_id=request_id,
                )

            question = session.current_question
            # Exact match: grading leniency is product behaviour
            is_correct = answer == question.correct_answer
            ordinal = session.answered_count + 1
            completes = ordinal >= session.total_questions

            next_question = None
            if not completes:
                next_question = await self._generator.next_question(
                    previous_answer_correct=is_correct,
                    skill_area=question.skill_area,
                    current_difficulty=question.difficulty,
                )

            session.answered_count = ordinal
            tally = session.per_area_tally.setdefault(question.skill_area, AreaTally())
            tally.total += 1
            if is_correct:
                tally.correct += 1

            if next_question is None:
                session.status = SessionStatus.COMPLETED
                session.results = self._aggregator.compute(session.per_area_tally)
            session.current_question = next_question
            await self._store.save_session(session)

            await self._store.insert_answer(
                AnswerRecord(
                    assessment_id=session.id,
                    user_id=user_id,
                    question_ordinal=ordinal,
                    question=question.question,
                    user_answer=answer,
                    correct_answer=question.correct_answer,
                    is_correct=is_correct,
                    explanation=question.explanation,
                    skill_area=question.skill_area,
                )
            )
            info(
                LogRecord(
                    event=LogEvent.ANSWER_EVALUATED.value,
                    message=f"Answer {ordinal}/{session.total_questions} evaluated",
                    request_id=request_id,
                    data={
                        "assessment_id": session.id,
                        "skill_area": question.skill_area,
                        "is_correct": is_correct,
                    },
                )
            )

            if next_question is None:
                return await self._publish_results(session, request_id)
            return AssessmentProgress(
                is_complete=False,
                next_question=next_question.to_public(session.id, session.total_questions),
            )

    async def _publish_results(
        self, session: AssessmentSession, request_id: Optional[str]
    ) -> AssessmentProgress:
        results = session.results or {}
        await self._store.upsert_user_skills(
            [
                UserSkill(
                    user_id=session.user_id,
                    skill_name=area,
                    skill_level=result.score,
                )
                for area, result in results.items()
            ]
        )
        info(
            LogRecord(
                event=LogEvent.ASSESSMENT_COMPLETED.value,
                message="Assessment completed",
                request_id=request_id,
                data={
                    "assessment_id": session.id,
                    "scores": {area: r.score for area, r in results.items()},
                },
            )
        )
        return AssessmentProgress(is_complete=True, results=results)
