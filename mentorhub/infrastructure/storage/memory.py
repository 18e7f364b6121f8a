"""Process-local data store for development and tests."""

from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

from ...domain.models import AnswerRecord, AssessmentSession, UserSkill, utc_now
from .base import DataStore


class InMemoryDataStore(DataStore):
    """Dictionary-backed :class:`DataStore`.

    Sessions are deep-copied on the way in and out so callers never share
    state with the store.
    """

    def __init__(self) -> None:
        self.user_profiles: Dict[str, Dict[str, Any]] = {}
        self.user_goals: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.learning_history: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.learning_paths: Dict[str, Dict[str, Any]] = {}
        self.user_proficiency: Dict[str, str] = {}
        self.user_preferences: Dict[str, Dict[str, Any]] = {}
        self.user_skills: Dict[Tuple[str, str], UserSkill] = {}
        self.sessions: Dict[str, AssessmentSession] = {}
        self.answers: Dict[str, List[AnswerRecord]] = defaultdict(list)
        self.generated_projects: List[Dict[str, Any]] = []
        self.mentor_interactions: List[Dict[str, Any]] = []

    # Seeding helpers

    def add_user_profile(self, user_id: str, **profile: Any) -> None:
        self.user_profiles[user_id] = {"id": user_id, **profile}

    def add_learning_history(self, user_id: str, entry: Dict[str, Any]) -> None:
        row = {"user_id": user_id, "created_at": utc_now().isoformat(), **entry}
        self.learning_history[user_id].append(row)

    def set_user_proficiency(self, user_id: str, level: str) -> None:
        self.user_proficiency[user_id] = level

    def set_user_preferences(self, user_id: str, **preferences: Any) -> None:
        self.user_preferences[user_id] = {"user_id": user_id, **preferences}

    # DataStore

    async def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        profile = self.user_profiles.get(user_id)
        return dict(profile) if profile is not None else None

    async def get_user_skills(self, user_id: str) -> List[Dict[str, Any]]:
        return [
            skill.model_dump(mode="json")
            for (owner, _), skill in self.user_skills.items()
            if owner == user_id
        ]

    async def get_user_goals(self, user_id: str) -> List[Dict[str, Any]]:
        return [dict(goal) for goal in self.user_goals.get(user_id, [])]

    async def get_learning_history(
        self, user_id: str, limit: int
    ) -> List[Dict[str, Any]]:
        rows = sorted(
            self.learning_history.get(user_id, []),
            key=lambda row: row.get("created_at", ""),
            reverse=True,
        )
        return [dict(row) for row in rows[:limit]]

    async def get_learning_path(self, user_id: str) -> Optional[Dict[str, Any]]:
        path = self.learning_paths.get(user_id)
        return dict(path) if path is not None else None

    async def get_user_proficiency(self, user_id: str) -> Optional[str]:
        return self.user_proficiency.get(user_id)

    async def get_user_preferences(self, user_id: str) -> Optional[Dict[str, Any]]:
        preferences = self.user_preferences.get(user_id)
        return dict(preferences) if preferences is not None else None

    async def create_session(self, session: AssessmentSession) -> AssessmentSession:
        self.sessions[session.id] = session.model_copy(deep=True)
        return session.model_copy(deep=True)

    async def get_session(self, session_id: str) -> Optional[AssessmentSession]:
        session = self.sessions.get(session_id)
        return session.model_copy(deep=True) if session is not None else None

    async def save_session(self, session: AssessmentSession) -> None:
        session.updated_at = utc_now()
        self.sessions[session.id] = session.model_copy(deep=True)

    async def insert_answer(self, answer: AnswerRecord) -> None:
        self.answers[answer.assessment_id].append(answer.model_copy())

    async def list_answers(self, assessment_id: str) -> List[AnswerRecord]:
        return sorted(
            (a.model_copy() for a in self.answers.get(assessment_id, [])),
            key=lambda a: a.question_ordinal,
        )

    async def upsert_user_skills(self, skills: List[UserSkill]) -> None:
        for skill in skills:
            self.user_skills[(skill.user_id, skill.skill_name)] = skill.model_copy()

    async def insert_generated_project(
        self, user_id: str, project: Dict[str, Any], request: Dict[str, Any]
    ) -> None:
        self.generated_projects.append(
            {
                "user_id": user_id,
                "project_data": project,
                **request,
                "created_at": utc_now().isoformat(),
            }
        )

    async def insert_mentor_interaction(
        self, user_id: str, message: str, response: str
    ) -> None:
        self.mentor_interactions.append(
            {
                "user_id": user_id,
                "user_message": message,
                "mentor_response": response,
                "timestamp": utc_now().isoformat(),
            }
        )
