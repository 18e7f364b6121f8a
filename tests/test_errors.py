"""Tests for HTTP error mapping."""

import json

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from mentorhub.constants import ERROR_GENERATE_PROJECT, ERROR_INTERNAL
from mentorhub.domain.exceptions import (
    GenerationParseError,
    InvalidStateError,
    NotFoundError,
    TransportError,
)
from mentorhub.interfaces.http.errors import (
    ErrorType,
    build_error_response,
    get_error_details_from_exc,
    handle_route_exception,
)


class TestGetErrorDetails:
    def test_not_found(self):
        status, error_type, message = get_error_details_from_exc(
            NotFoundError("Assessment a1 not found")
        )
        assert (status, error_type) == (404, ErrorType.NOT_FOUND)
        assert message == "Assessment a1 not found"

    def test_invalid_state(self):
        status, error_type, _ = get_error_details_from_exc(InvalidStateError("done"))
        assert (status, error_type) == (409, ErrorType.INVALID_STATE)

    @pytest.mark.parametrize(
        "exc",
        [
            TransportError("GET /rest/v1/user_skills failed with status 503", status_code=503),
            GenerationParseError("bad"),
            RuntimeError("secret internals"),
        ],
    )
    def test_system_faults_hide_details(self, exc):
        status, error_type, message = get_error_details_from_exc(exc, ERROR_GENERATE_PROJECT)
        assert status == 500
        assert error_type == ErrorType.API_ERROR
        assert message == ERROR_GENERATE_PROJECT

    def test_default_fallback_message(self):
        assert get_error_details_from_exc(RuntimeError())[2] == ERROR_INTERNAL


class TestBuildErrorResponse:
    def test_body_shape(self):
        response = build_error_response(ErrorType.NOT_FOUND, "missing", 404)
        assert response.status_code == 404
        assert json.loads(response.body) == {"error": "missing", "type": "not_found_error"}


class TestHandleRouteException:
    def test_route_errors_become_json(self):
        app = FastAPI()

        @app.get("/missing")
        async def missing(request: Request):
            return await handle_route_exception(
                request, NotFoundError("nothing here"), ERROR_INTERNAL
            )

        @app.get("/broken")
        async def broken(request: Request):
            return await handle_route_exception(
                request, TransportError("upstream 503"), "Failed to do the thing"
            )

        client = TestClient(app)
        assert client.get("/missing").json() == {
            "error": "nothing here",
            "type": "not_found_error",
        }
        response = client.get("/broken")
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to do the thing"
