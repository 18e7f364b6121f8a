import json

import pytest

from mentorhub.application.learning import (
    LearningPathPlanner,
    PersonalizedContentGenerator,
    ProjectGenerator,
    VirtualMentor,
)
from mentorhub.constants import (
    CONTENT_SYSTEM_PROMPT,
    LEARNING_PATH_FALLBACK_ESTIMATE,
    MENTOR_FALLBACK_RESPONSE,
    MENTOR_SYSTEM_PROMPT,
    PROJECT_SYSTEM_PROMPT,
)
from mentorhub.domain.models import ContentType, ProjectRequest, UserSkill

from conftest import ScriptedProvider

PROJECT = {
    "title": "Todo API",
    "description": "Build a REST API",
    "difficulty": 4,
    "technologies": ["python", "fastapi"],
    "timeEstimate": "1 week",
    "learningObjectives": ["routing"],
    "codeTemplate": "app = FastAPI()",
    "resources": [{"title": "Docs", "url": "https://fastapi.tiangolo.com"}],
}


class TestProjectGenerator:
    @pytest.mark.anyio
    async def test_generates_and_persists(self, store):
        await store.upsert_user_skills(
            [UserSkill(user_id="u1", skill_name="python", skill_level=7.0)]
        )
        provider = ScriptedProvider(json.dumps(PROJECT))
        request = ProjectRequest(user_id="u1", technologies=["python", "fastapi"], difficulty=4)

        project = await ProjectGenerator(store, provider).generate(request)

        assert project.title == "Todo API"
        assert project.to_wire()["timeEstimate"] == "1 week"
        assert project.resources[0].url == "https://fastapi.tiangolo.com"

        system, prompt = provider.calls[0]
        assert system == PROJECT_SYSTEM_PROMPT
        assert "Technologies: python, fastapi" in prompt
        assert "Difficulty Level: 4/10" in prompt
        assert "Time Frame: 2 weeks" in prompt
        assert '"skill_name": "python"' in prompt

        stored = store.generated_projects[0]
        assert stored["user_id"] == "u1"
        assert stored["project_data"]["title"] == "Todo API"
        assert stored["difficulty"] == 4

    @pytest.mark.anyio
    async def test_fenced_output_accepted(self, store):
        provider = ScriptedProvider(f"```json\n{json.dumps(PROJECT)}\n```")
        project = await ProjectGenerator(store, provider).generate(ProjectRequest(user_id="u1"))
        assert project.title == "Todo API"

    @pytest.mark.anyio
    async def test_unparseable_output_falls_back_to_request(self, store):
        provider = ScriptedProvider("I cannot do that")
        request = ProjectRequest(user_id="u1", technologies=["go"], difficulty=8, time_frame="1 month")

        project = await ProjectGenerator(store, provider).generate(request)

        assert project.difficulty == 8
        assert project.technologies == ["go"]
        assert project.time_estimate == "1 month"
        assert len(store.generated_projects) == 1


class TestVirtualMentor:
    @pytest.mark.anyio
    async def test_reply_uses_context_and_persists(self, store):
        store.add_user_profile("u1", name="Ada", experience="junior")
        store.learning_paths["u1"] = {"milestones": ["basics"]}
        provider = ScriptedProvider("  Keep going!  ")

        reply = await VirtualMentor(store, provider).reply("u1", "How do I learn recursion?")

        assert reply.response == "Keep going!"
        system, prompt = provider.calls[0]
        assert system == MENTOR_SYSTEM_PROMPT
        assert "Ada" in prompt
        assert "basics" in prompt
        assert 'User Message: "How do I learn recursion?"' in prompt
        assert store.mentor_interactions[0]["mentor_response"] == "Keep going!"

    @pytest.mark.anyio
    async def test_empty_completion_uses_fallback(self, store):
        reply = await VirtualMentor(store, ScriptedProvider("   ")).reply("u1", "hi")
        assert reply.response == MENTOR_FALLBACK_RESPONSE
        assert store.mentor_interactions[0]["mentor_response"] == MENTOR_FALLBACK_RESPONSE

    @pytest.mark.anyio
    async def test_unknown_user_still_answered(self, store):
        provider = ScriptedProvider("Hello")
        await VirtualMentor(store, provider).reply("nobody", "hi")
        _, prompt = provider.calls[0]
        assert "User Profile: null" in prompt


class TestLearningPathPlanner:
    @pytest.mark.anyio
    async def test_json_plan_returned_as_is(self, store):
        store.add_user_profile("u1", name="Ada")
        store.user_goals["u1"].append({"goal": "backend developer"})
        plan = {"milestones": [{"title": "HTTP"}], "estimatedTime": "6 weeks"}
        provider = ScriptedProvider(json.dumps(plan))

        path = await LearningPathPlanner(store, provider).generate("u1")

        assert path == plan
        _, prompt = provider.calls[0]
        assert "backend developer" in prompt

    @pytest.mark.anyio
    async def test_plain_text_plan_split_into_milestones(self, store):
        provider = ScriptedProvider("1. Learn Python\n\n2. Build an API\n  \n3. Deploy it\n")

        path = await LearningPathPlanner(store, provider).generate("u1")

        assert path == {
            "milestones": ["1. Learn Python", "2. Build an API", "3. Deploy it"],
            "estimatedTime": LEARNING_PATH_FALLBACK_ESTIMATE,
        }


class TestPersonalizedContentGenerator:
    @pytest.mark.anyio
    async def test_uses_recorded_level_and_preferences(self, store):
        store.set_user_proficiency("u1", "advanced")
        store.set_user_preferences("u1", topics=["graphs"], style="hands-on")
        provider = ScriptedProvider("  Implement Dijkstra with a binary heap.  ")

        content = await PersonalizedContentGenerator(store, provider).generate(
            "u1", ContentType.EXERCISE
        )

        assert content.content == "Implement Dijkstra with a binary heap."
        assert content.level == "advanced"
        assert content.to_wire()["contentType"] == "exercise"
        system, prompt = provider.calls[0]
        assert system == CONTENT_SYSTEM_PROMPT
        assert prompt.startswith("Generate a personalized exercise for a user at advanced level")
        assert '"style": "hands-on"' in prompt

    @pytest.mark.anyio
    async def test_unknown_user_defaults_to_beginner(self, store):
        provider = ScriptedProvider("An intro to variables")

        content = await PersonalizedContentGenerator(store, provider).generate(
            "nobody", ContentType.ARTICLE
        )

        assert content.level == "beginner"
        _, prompt = provider.calls[0]
        assert prompt == (
            "Generate a personalized article for a user at beginner level "
            "with preferences: null"
        )
