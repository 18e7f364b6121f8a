"""Interface of the external data store the core reads and writes."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ...domain.models import AnswerRecord, AssessmentSession, UserSkill


class DataStore(ABC):
    """Async persistence boundary.

    Sessions returned by the store are copies; callers persist changes with
    :meth:`save_session`.
    """

    @abstractmethod
    async def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    async def get_user_skills(self, user_id: str) -> List[Dict[str, Any]]: ...

    @abstractmethod
    async def get_user_goals(self, user_id: str) -> List[Dict[str, Any]]: ...

    @abstractmethod
    async def get_learning_history(
        self, user_id: str, limit: int
    ) -> List[Dict[str, Any]]:
        """Most recent entries first."""

    @abstractmethod
    async def get_learning_path(self, user_id: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    async def get_user_proficiency(self, user_id: str) -> Optional[str]:
        """The recorded proficiency level, ``None`` when the user has none."""

    @abstractmethod
    async def get_user_preferences(self, user_id: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    async def create_session(self, session: AssessmentSession) -> AssessmentSession: ...

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[AssessmentSession]: ...

    @abstractmethod
    async def save_session(self, session: AssessmentSession) -> None: ...

    @abstractmethod
    async def insert_answer(self, answer: AnswerRecord) -> None: ...

    @abstractmethod
    async def list_answers(self, assessment_id: str) -> List[AnswerRecord]: ...

    @abstractmethod
    async def upsert_user_skills(self, skills: List[UserSkill]) -> None:
        """Insert or merge rows keyed by (user_id, skill_name)."""

    @abstractmethod
    async def insert_generated_project(
        self, user_id: str, project: Dict[str, Any], request: Dict[str, Any]
    ) -> None: ...

    @abstractmethod
    async def insert_mentor_interaction(
        self, user_id: str, message: str, response: str
    ) -> None: ...

    async def close(self) -> None:
        return None
