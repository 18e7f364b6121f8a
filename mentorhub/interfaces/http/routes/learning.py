import uuid
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ....application.learning import (
    LearningPathPlanner,
    PersonalizedContentGenerator,
    ProjectGenerator,
    VirtualMentor,
)
from ....constants import (
    ERROR_GENERATE_PROJECT,
    ERROR_LEARNING_PATH,
    ERROR_MENTOR_RESPONSE,
    ERROR_PERSONALIZED_CONTENT,
)
from ....domain.models import (
    LearningPathRequest,
    MentorRequest,
    PersonalizedContentRequest,
    ProjectRequest,
)
from ..errors import handle_route_exception

router = APIRouter()


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


@router.post("/api/generate-project", response_model=None)
async def generate_project(request: Request) -> JSONResponse:
    """Generate a coding project for the requested technologies and difficulty."""
    generator: ProjectGenerator = request.app.state.project_generator
    body = ProjectRequest.model_validate(await request.json())

    try:
        project = await generator.generate(body, request_id=_request_id(request))
    except Exception as e:
        return await handle_route_exception(request, e, ERROR_GENERATE_PROJECT)
    return JSONResponse(content=project.to_wire())


@router.post("/api/virtual-mentor", response_model=None)
async def virtual_mentor(request: Request) -> JSONResponse:
    mentor: VirtualMentor = request.app.state.virtual_mentor
    body = MentorRequest.model_validate(await request.json())

    try:
        reply = await mentor.reply(
            body.user_id, body.message, request_id=_request_id(request)
        )
    except Exception as e:
        return await handle_route_exception(request, e, ERROR_MENTOR_RESPONSE)
    return JSONResponse(content=reply.to_wire())


@router.post("/api/learning-path", response_model=None)
async def learning_path(request: Request) -> JSONResponse:
    planner: LearningPathPlanner = request.app.state.learning_path_planner
    body = LearningPathRequest.model_validate(await request.json())

    try:
        path = await planner.generate(body.user_id, request_id=_request_id(request))
    except Exception as e:
        return await handle_route_exception(request, e, ERROR_LEARNING_PATH)
    return JSONResponse(content=path)


@router.post("/api/personalized-content", response_model=None)
async def personalized_content(request: Request) -> JSONResponse:
    """Generate an article, exercise or project at the user's proficiency level."""
    generator: PersonalizedContentGenerator = request.app.state.personalized_content_generator
    body = PersonalizedContentRequest.model_validate(await request.json())

    try:
        content = await generator.generate(
            body.user_id, body.content_type, request_id=_request_id(request)
        )
    except Exception as e:
        return await handle_route_exception(request, e, ERROR_PERSONALIZED_CONTENT)
    return JSONResponse(content=content.to_wire())
