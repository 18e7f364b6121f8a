import uuid
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ....application.assessment import AssessmentService
from ....constants import ERROR_EVALUATE_ANSWER, ERROR_GENERATE_ASSESSMENT
from ....domain.models import StartAssessmentRequest, SubmitAnswerRequest
from ..errors import handle_route_exception

router = APIRouter()


def _request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    request.state.request_id = request_id
    return request_id


@router.post("/api/generate-assessment", response_model=None)
async def generate_assessment(request: Request) -> JSONResponse:
    """Start an assessment session and return its first question.

    The response carries the session id as ``id``; the correct answer and
    explanation stay server side.
    """
    service: AssessmentService = request.app.state.assessment_service
    request_id = _request_id(request)
    # Malformed bodies surface through the app-level 400/422 handlers
    body = StartAssessmentRequest.model_validate(await request.json())

    try:
        question = await service.start(body.user_id, request_id=request_id)
    except Exception as e:
        return await handle_route_exception(request, e, ERROR_GENERATE_ASSESSMENT)
    return JSONResponse(content=question.to_wire())


@router.post("/api/evaluate-answer", response_model=None)
async def evaluate_answer(request: Request) -> JSONResponse:
    """Grade an answer and return either the next question or the final results."""
    service: AssessmentService = request.app.state.assessment_service
    request_id = _request_id(request)
    body = SubmitAnswerRequest.model_validate(await request.json())

    try:
        progress = await service.submit_answer(
            body.user_id, body.assessment_id, body.answer, request_id=request_id
        )
    except Exception as e:
        return await handle_route_exception(request, e, ERROR_EVALUATE_ANSWER)
    return JSONResponse(content=progress.to_wire())
