import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from pydantic import ValidationError

from ...application.assessment import AssessmentService
from ...application.generation import QuestionGenerator, TextGenerationProvider
from ...application.learning import (
    LearningPathPlanner,
    PersonalizedContentGenerator,
    ProjectGenerator,
    VirtualMentor,
)
from ...config import Settings
from ...constants import ERROR_INTERNAL
from ...domain.exceptions import MentorHubException
from ...infrastructure.providers.openai_provider import OpenAIProvider
from ...infrastructure.storage import DataStore, InMemoryDataStore, RestDataStore
from ...logging import init_logging, info as log_info, shutdown_logging, LogRecord
from .errors import ErrorType, get_error_details_from_exc, log_and_return_error_response
from .middleware import logging_middleware
from .routes.assessments import router as assessments_router
from .routes.health import router as health_router
from .routes.learning import router as learning_router
from .routes.monitoring import router as monitoring_router


def _build_store(settings: Settings) -> DataStore:
    if settings.data_store_url:
        logging.info(f"Using REST data store at {settings.data_store_url}")
        return RestDataStore.from_settings(settings)
    logging.info("DATA_STORE_URL not set, using in-memory data store")
    return InMemoryDataStore()


def create_app(
    settings: Settings,
    *,
    store: Optional[DataStore] = None,
    provider: Optional[TextGenerationProvider] = None,
) -> FastAPI:
    """Creates and configures the FastAPI application instance.

    Initializes logging, wires the data store and text generation provider
    into the assessment and learning services, and registers routes.

    Args:
        settings: Configuration settings object
        store: Data store to use instead of the one chosen from settings
        provider: Text generation provider to use instead of OpenAI

    Returns:
        Fully configured FastAPI application instance
    """
    init_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_info(
            LogRecord(
                event="app_startup",
                message=f"{settings.app_name} {settings.app_version} started",
                data={
                    "store": type(app.state.store).__name__,
                    "provider": type(app.state.provider).__name__,
                    "total_questions": app.state.assessment_service.total_questions,
                },
            )
        )
        try:
            yield
        finally:
            logging.info("Initiating application shutdown")
            try:
                try:
                    await app.state.store.close()
                except Exception as e:
                    logging.error(f"Failed to close data store: {str(e)}")

                provider_ = app.state.provider
                if hasattr(provider_, "close"):
                    logging.info("Closing text generation provider")
                    try:
                        await provider_.close()
                    except Exception as e:
                        logging.error(f"Failed to close provider: {str(e)}")
            finally:
                shutdown_logging()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url=None,
        redoc_url=None,
        description="Adaptive skill assessments and personalised learning content.",
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
    )
    app.state.settings = settings

    if provider is None:
        try:
            provider = OpenAIProvider(settings)
            logging.info("OpenAI provider initialized successfully")
        except Exception as e:
            logging.error(f"Failed to initialize OpenAI provider: {str(e)}")
            raise
    if store is None:
        store = _build_store(settings)

    app.state.provider = provider
    app.state.store = store
    app.state.request_client = store.client if isinstance(store, RestDataStore) else None
    app.state.assessment_service = AssessmentService(
        store,
        QuestionGenerator(provider),
        total_questions=settings.assessment_total_questions,
    )
    app.state.project_generator = ProjectGenerator(store, provider)
    app.state.virtual_mentor = VirtualMentor(store, provider)
    app.state.learning_path_planner = LearningPathPlanner(store, provider)
    app.state.personalized_content_generator = PersonalizedContentGenerator(
        store, provider
    )

    app.middleware("http")(logging_middleware)

    if settings.enable_cors:
        logging.info(
            f"CORS enabled for origins: {settings.cors_allow_origins}, methods: {settings.cors_allow_methods}, headers: {settings.cors_allow_headers}"
        )
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
            allow_credentials=False,
            max_age=600,
        )

    app.include_router(assessments_router, tags=["Assessment"])
    app.include_router(learning_router, tags=["Learning"])
    app.include_router(health_router, tags=["Health"])
    app.include_router(monitoring_router, tags=["Monitoring"])

    @app.exception_handler(ValidationError)
    async def pydantic_validation_error_handler(request: Request, exc: ValidationError):
        return await log_and_return_error_response(
            request,
            422,
            ErrorType.INVALID_REQUEST,
            f"Validation error: {exc.errors(include_url=False, include_context=False)}",
            caught_exception=exc,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ):
        return await log_and_return_error_response(
            request,
            422,
            ErrorType.INVALID_REQUEST,
            f"Validation error: {exc.errors()}",
            caught_exception=exc,
        )

    @app.exception_handler(json.JSONDecodeError)
    async def json_decode_error_handler(request: Request, exc: json.JSONDecodeError):
        return await log_and_return_error_response(
            request,
            400,
            ErrorType.INVALID_REQUEST,
            "Invalid JSON format.",
            caught_exception=exc,
        )

    @app.exception_handler(MentorHubException)
    async def mentorhub_exception_handler(request: Request, exc: MentorHubException):
        status_code, error_type, message = get_error_details_from_exc(exc)
        return await log_and_return_error_response(
            request, status_code, error_type, message, caught_exception=exc
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        return await log_and_return_error_response(
            request,
            500,
            ErrorType.API_ERROR,
            ERROR_INTERNAL,
            caught_exception=exc,
        )

    return app
