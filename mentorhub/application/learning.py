"""Personalised learning features built on the store and the text generator."""

import json
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..constants import (
    CONTENT_SYSTEM_PROMPT,
    DEFAULT_PROFICIENCY_LEVEL,
    LEARNING_PATH_FALLBACK_ESTIMATE,
    LEARNING_PATH_SYSTEM_PROMPT,
    MENTOR_FALLBACK_RESPONSE,
    MENTOR_SYSTEM_PROMPT,
    PROJECT_SYSTEM_PROMPT,
)
from ..domain.models import (
    ContentType,
    GeneratedProject,
    LearningPath,
    MentorReply,
    PersonalizedContent,
    ProjectRequest,
)
from ..infrastructure.storage.base import DataStore
from ..logging import info, LogRecord, LogEvent
from .generation import (
    ParseError,
    TextGenerationProvider,
    decode_generated_json,
    report_parse_failure,
)


def _dump(value: Any) -> str:
    return json.dumps(value, default=str)


class ProjectGenerator:
    """Generates a coding project matched to the user's skills."""

    def __init__(self, store: DataStore, provider: TextGenerationProvider):
        self._store = store
        self._provider = provider

    async def generate(
        self, request: ProjectRequest, request_id: Optional[str] = None
    ) -> GeneratedProject:
        user_skills = await self._store.get_user_skills(request.user_id)
        prompt = f"""
      Generate a detailed coding project with the following requirements:
      Technologies: {", ".join(request.technologies)}
      Difficulty Level: {request.difficulty}/10
      Time Frame: {request.time_frame}
      User's Current Skills: {_dump(user_skills)}

      Please provide a JSON response with the following structure:
      {{
        "title": "Project Title",
        "description": "Detailed project description",
        "difficulty": number,
        "technologies": ["tech1", "tech2"],
        "timeEstimate": "estimated time",
        "learningObjectives": ["objective1", "objective2"],
        "codeTemplate": "Starting code template",
        "resources": [{{"title": "Resource Title", "url": "URL"}}]
      }}
    """
        raw = await self._provider.complete(PROJECT_SYSTEM_PROMPT, prompt)
        project = self._to_project(raw, request)

        await self._store.insert_generated_project(
            request.user_id,
            project.to_wire(),
            {
                "technologies": request.technologies,
                "difficulty": request.difficulty,
                "time_frame": request.time_frame,
            },
        )
        info(
            LogRecord(
                event=LogEvent.PROJECT_GENERATED.value,
                message="Project generated",
                request_id=request_id,
                data={"user_id": request.user_id, "title": project.title},
            )
        )
        return project

    @staticmethod
    def _to_project(raw: str, request: ProjectRequest) -> GeneratedProject:
        fallback = GeneratedProject(
            difficulty=request.difficulty,
            technologies=list(request.technologies),
            time_estimate=request.time_frame,
        )
        decoded = decode_generated_json(raw)
        if isinstance(decoded, ParseError):
            report_parse_failure("generate_project", decoded.raw, decoded.reason)
            return fallback
        try:
            return GeneratedProject.model_validate(decoded.value)
        except ValidationError as e:
            report_parse_failure(
                "generate_project", raw, f"{e.error_count()} validation error(s)"
            )
            return fallback


class VirtualMentor:
    """Context-aware free-text mentoring replies."""

    def __init__(self, store: DataStore, provider: TextGenerationProvider):
        self._store = store
        self._provider = provider

    async def reply(
        self, user_id: str, message: str, request_id: Optional[str] = None
    ) -> MentorReply:
        profile = await self._store.get_user_profile(user_id)
        skills = await self._store.get_user_skills(user_id)
        learning_path = await self._store.get_learning_path(user_id)

        prompt = f"""
      As an AI mentor, consider the following context:
      User Profile: {_dump(profile)}
      User Skills: {_dump(skills)}
      Current Learning Path: {_dump(learning_path)}

      User Message: "{message}"

      Provide a helpful, encouraging, and personalized response that takes into account the user's background and goals.
    """
        text = (await self._provider.complete(MENTOR_SYSTEM_PROMPT, prompt)).strip()
        response = text or MENTOR_FALLBACK_RESPONSE

        await self._store.insert_mentor_interaction(user_id, message, response)
        info(
            LogRecord(
                event=LogEvent.MENTOR_INTERACTION.value,
                message="Mentor replied",
                request_id=request_id,
                data={"user_id": user_id, "fallback": not text},
            )
        )
        return MentorReply(response=response)


class LearningPathPlanner:
    """Builds a milestone plan from the user's profile and goals."""

    def __init__(self, store: DataStore, provider: TextGenerationProvider):
        self._store = store
        self._provider = provider

    async def generate(
        self, user_id: str, request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        profile = await self._store.get_user_profile(user_id)
        goals = await self._store.get_user_goals(user_id)

        prompt = f"""Create a personalized learning path for a user with the following profile:
      {_dump(profile)}
      Their goals are: {_dump(goals)}
      Provide a structured learning path with milestones and estimated completion times.
      Respond with a JSON object containing "milestones" and "estimatedTime"."""
        raw = await self._provider.complete(LEARNING_PATH_SYSTEM_PROMPT, prompt)

        decoded = decode_generated_json(raw)
        if isinstance(decoded, ParseError):
            report_parse_failure("learning_path", decoded.raw, decoded.reason)
            # Plain-text plans become one milestone per non-empty line
            path = LearningPath(
                milestones=[line.strip() for line in raw.splitlines() if line.strip()],
                estimated_time=LEARNING_PATH_FALLBACK_ESTIMATE,
            ).to_wire()
        else:
            path = decoded.value

        info(
            LogRecord(
                event=LogEvent.LEARNING_PATH_GENERATED.value,
                message="Learning path generated",
                request_id=request_id,
                data={"user_id": user_id},
            )
        )
        return path


class PersonalizedContentGenerator:
    """Writes an article, exercise or project brief pitched at the user's level."""

    def __init__(self, store: DataStore, provider: TextGenerationProvider):
        self._store = store
        self._provider = provider

    async def generate(
        self,
        user_id: str,
        content_type: ContentType,
        request_id: Optional[str] = None,
    ) -> PersonalizedContent:
        level = await self._store.get_user_proficiency(user_id) or DEFAULT_PROFICIENCY_LEVEL
        preferences = await self._store.get_user_preferences(user_id)

        prompt = (
            f"Generate a personalized {content_type.value} for a user at {level} level "
            f"with preferences: {_dump(preferences)}"
        )
        content = (await self._provider.complete(CONTENT_SYSTEM_PROMPT, prompt)).strip()

        info(
            LogRecord(
                event=LogEvent.PERSONALIZED_CONTENT_GENERATED.value,
                message="Personalized content generated",
                request_id=request_id,
                data={
                    "user_id": user_id,
                    "content_type": content_type.value,
                    "level": level,
                },
            )
        )
        return PersonalizedContent(content_type=content_type, level=level, content=content)
