"""PostgREST-style data store reached through :class:`RequestClient`.

Tables are addressed as ``/rest/v1/<table>`` with ``column=eq.value`` filters.
Profile and skill reads are cached; the skill read is invalidated after every
upsert so a finished assessment is visible to the next one.
"""

from typing import Any, Dict, List, Optional

from ...config import Settings
from ...constants import (
    TABLE_ASSESSMENT_ANSWERS,
    TABLE_GENERATED_PROJECTS,
    TABLE_LEARNING_HISTORY,
    TABLE_LEARNING_PATHS,
    TABLE_MENTOR_INTERACTIONS,
    TABLE_SKILL_ASSESSMENTS,
    TABLE_USER_GOALS,
    TABLE_USER_PREFERENCES,
    TABLE_USER_PROFICIENCY,
    TABLE_USER_PROFILES,
    TABLE_USER_SKILLS,
    USER_SKILLS_CONFLICT_TARGET,
)
from ...domain.models import (
    AnswerRecord,
    AreaTally,
    AssessmentSession,
    Question,
    SessionStatus,
    SkillResult,
    UserSkill,
    utc_now,
)
from ...logging import info, LogRecord, LogEvent
from ..http.request_client import CacheConfig, RequestClient, RequestDescriptor
from .base import DataStore

REST_PREFIX = "/rest/v1"
RETURN_REPRESENTATION = {"Prefer": "return=representation"}
MERGE_DUPLICATES = {"Prefer": "resolution=merge-duplicates,return=minimal"}


def _table(name: str) -> str:
    return f"{REST_PREFIX}/{name}"


def _eq(value: str) -> str:
    return f"eq.{value}"


def session_to_row(session: AssessmentSession) -> Dict[str, Any]:
    return {
        "id": session.id,
        "user_id": session.user_id,
        "question_data": session.current_question.model_dump(mode="json", by_alias=True)
        if session.current_question
        else None,
        "status": session.status.value,
        "answered_count": session.answered_count,
        "total_questions": session.total_questions,
        "per_area_tally": {
            area: tally.model_dump() for area, tally in session.per_area_tally.items()
        },
        "results": {
            area: result.model_dump(mode="json")
            for area, result in session.results.items()
        }
        if session.results is not None
        else None,
        "created_at": session.created_at.isoformat(),
        "updated_at": session.updated_at.isoformat(),
    }


def session_from_row(row: Dict[str, Any]) -> AssessmentSession:
    question_data = row.get("question_data")
    results = row.get("results")
    return AssessmentSession(
        id=row["id"],
        user_id=row["user_id"],
        current_question=Question.model_validate(question_data) if question_data else None,
        answered_count=row.get("answered_count", 0),
        total_questions=row["total_questions"],
        per_area_tally={
            area: AreaTally.model_validate(tally)
            for area, tally in (row.get("per_area_tally") or {}).items()
        },
        status=SessionStatus(row["status"]),
        results={
            area: SkillResult(skill_area=area, **value) for area, value in results.items()
        }
        if results is not None
        else None,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class RestDataStore(DataStore):
    """:class:`DataStore` over a PostgREST-compatible HTTP API."""

    def __init__(self, client: RequestClient):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RestDataStore":
        headers = {}
        if settings.data_store_api_key:
            headers = {
                "apikey": settings.data_store_api_key,
                "Authorization": f"Bearer {settings.data_store_api_key}",
            }
        return cls(
            RequestClient.from_settings(
                settings, base_url=settings.data_store_url, headers=headers
            )
        )

    @property
    def client(self) -> RequestClient:
        return self._client

    @staticmethod
    def user_skills_cache_key(user_id: str) -> str:
        return f"{TABLE_USER_SKILLS}:{user_id}"

    async def _select(
        self,
        table: str,
        params: Dict[str, Any],
        cache: Optional[CacheConfig] = None,
    ) -> List[Dict[str, Any]]:
        rows = await self._client.get(
            _table(table), params={"select": "*", **params}, cache=cache
        )
        return list(rows or [])

    async def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._select(
            TABLE_USER_PROFILES, {"id": _eq(user_id), "limit": 1}, cache=CacheConfig()
        )
        return rows[0] if rows else None

    async def get_user_skills(self, user_id: str) -> List[Dict[str, Any]]:
        return await self._select(
            TABLE_USER_SKILLS,
            {"user_id": _eq(user_id)},
            cache=CacheConfig(key=self.user_skills_cache_key(user_id)),
        )

    async def get_user_goals(self, user_id: str) -> List[Dict[str, Any]]:
        return await self._select(TABLE_USER_GOALS, {"user_id": _eq(user_id)})

    async def get_learning_history(
        self, user_id: str, limit: int
    ) -> List[Dict[str, Any]]:
        return await self._select(
            TABLE_LEARNING_HISTORY,
            {"user_id": _eq(user_id), "order": "created_at.desc", "limit": limit},
        )

    async def get_learning_path(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._select(
            TABLE_LEARNING_PATHS, {"user_id": _eq(user_id), "limit": 1}
        )
        return rows[0] if rows else None

    async def get_user_proficiency(self, user_id: str) -> Optional[str]:
        rows = await self._select(
            TABLE_USER_PROFICIENCY,
            {"select": "level", "user_id": _eq(user_id), "limit": 1},
        )
        return rows[0].get("level") if rows else None

    async def get_user_preferences(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._select(
            TABLE_USER_PREFERENCES, {"user_id": _eq(user_id), "limit": 1}
        )
        return rows[0] if rows else None

    async def create_session(self, session: AssessmentSession) -> AssessmentSession:
        rows = await self._client.post(
            _table(TABLE_SKILL_ASSESSMENTS),
            body=[session_to_row(session)],
            headers=RETURN_REPRESENTATION,
        )
        if rows:
            return session_from_row(rows[0])
        return session

    async def get_session(self, session_id: str) -> Optional[AssessmentSession]:
        rows = await self._select(
            TABLE_SKILL_ASSESSMENTS, {"id": _eq(session_id), "limit": 1}
        )
        return session_from_row(rows[0]) if rows else None

    async def save_session(self, session: AssessmentSession) -> None:
        session.updated_at = utc_now()
        await self._client.request(
            RequestDescriptor(
                method="PATCH",
                url=_table(TABLE_SKILL_ASSESSMENTS),
                params={"id": _eq(session.id)},
                body=session_to_row(session),
            )
        )

    async def insert_answer(self, answer: AnswerRecord) -> None:
        await self._client.post(
            _table(TABLE_ASSESSMENT_ANSWERS), body=[answer.model_dump(mode="json")]
        )

    async def list_answers(self, assessment_id: str) -> List[AnswerRecord]:
        rows = await self._select(
            TABLE_ASSESSMENT_ANSWERS,
            {"assessment_id": _eq(assessment_id), "order": "question_ordinal.asc"},
        )
        return [AnswerRecord.model_validate(row) for row in rows]

    async def upsert_user_skills(self, skills: List[UserSkill]) -> None:
        if not skills:
            return
        await self._client.post(
            _table(TABLE_USER_SKILLS),
            body=[skill.model_dump(mode="json") for skill in skills],
            params={"on_conflict": USER_SKILLS_CONFLICT_TARGET},
            headers=MERGE_DUPLICATES,
        )
        for user_id in {skill.user_id for skill in skills}:
            self._client.invalidate(self.user_skills_cache_key(user_id))
        info(
            LogRecord(
                event=LogEvent.SKILLS_UPSERTED.value,
                message=f"Upserted {len(skills)} skill level(s)",
                data={"skills": [s.skill_name for s in skills]},
            )
        )

    async def insert_generated_project(
        self, user_id: str, project: Dict[str, Any], request: Dict[str, Any]
    ) -> None:
        await self._client.post(
            _table(TABLE_GENERATED_PROJECTS),
            body=[
                {
                    "user_id": user_id,
                    "project_data": project,
                    **request,
                    "created_at": utc_now().isoformat(),
                }
            ],
        )

    async def insert_mentor_interaction(
        self, user_id: str, message: str, response: str
    ) -> None:
        await self._client.post(
            _table(TABLE_MENTOR_INTERACTIONS),
            body=[
                {
                    "user_id": user_id,
                    "user_message": message,
                    "mentor_response": response,
                    "timestamp": utc_now().isoformat(),
                }
            ],
        )

    async def close(self) -> None:
        await self._client.aclose()
