"""
Name: Error Response Tests (RFC 7807)

Responsibilities:
  - Error factories carry status + stable code
  - Use case error codes map to the right HTTP status
  - Exception handlers render problem+json without leaking internals
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from kiki.api.exception_handlers import register_exception_handlers
from kiki.application.usecases.associations import AssociationError, AssociationErrorCode
from kiki.application.usecases.auth import AuthError, AuthErrorCode
from kiki.application.usecases.directory import DirectoryError, DirectoryErrorCode
from kiki.crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    conflict,
    forbidden,
    not_found,
    rate_limited,
    unauthorized,
    validation_error,
)
from kiki.crosscutting.exceptions import DatabaseError, UniqueViolationError
from kiki.interfaces.api.http.error_mapping import (
    raise_association_error,
    raise_auth_error,
    raise_directory_error,
)
from pydantic import BaseModel

pytestmark = pytest.mark.unit


class TestErrorFactories:
    def test_validation_error(self):
        exc = validation_error("Datos inválidos", [{"loc": "name", "msg": "required"}])
        assert exc.status_code == 422
        assert exc.code == ErrorCode.VALIDATION_ERROR
        assert exc.errors == [{"loc": "name", "msg": "required"}]

    def test_not_found(self):
        exc = not_found("Cuenta", "abc")
        assert exc.status_code == 404
        assert "abc" in exc.detail

    def test_unauthorized_sets_www_authenticate(self):
        exc = unauthorized(code=ErrorCode.TOKEN_EXPIRED)
        assert exc.status_code == 401
        assert exc.code == ErrorCode.TOKEN_EXPIRED
        assert exc.headers == {"WWW-Authenticate": "Bearer"}

    def test_forbidden_and_conflict(self):
        assert forbidden().status_code == 403
        assert conflict("dup").code == ErrorCode.CONFLICT

    def test_rate_limited_sets_retry_after(self):
        exc = rate_limited(retry_after=12)
        assert exc.status_code == 429
        assert exc.headers["Retry-After"] == "12"


class TestErrorMapping:
    @pytest.mark.parametrize(
        "code, status",
        [
            (AuthErrorCode.INVALID_CREDENTIALS, 401),
            (AuthErrorCode.USER_REJECTED, 401),
            (AuthErrorCode.REFRESH_TOKEN_REVOKED, 401),
            (AuthErrorCode.ASSOCIATION_PENDING, 403),
            (AuthErrorCode.CONFLICT, 409),
            (AuthErrorCode.VALIDATION_ERROR, 422),
            (AuthErrorCode.NOT_FOUND, 404),
        ],
    )
    def test_auth_errors(self, code, status):
        with pytest.raises(AppHTTPException) as exc_info:
            raise_auth_error(AuthError(code, "msg"))

        assert exc_info.value.status_code == status
        assert exc_info.value.code.value == code.value

    @pytest.mark.parametrize(
        "code, status",
        [
            (AssociationErrorCode.FORBIDDEN, 403),
            (AssociationErrorCode.NOT_FOUND, 404),
            (AssociationErrorCode.CONFLICT, 409),
            (AssociationErrorCode.INVALID_STATE, 409),
            (AssociationErrorCode.VALIDATION_ERROR, 422),
        ],
    )
    def test_association_errors(self, code, status):
        with pytest.raises(AppHTTPException) as exc_info:
            raise_association_error(AssociationError(code, "msg"))

        assert exc_info.value.status_code == status

    def test_directory_errors(self):
        with pytest.raises(AppHTTPException) as exc_info:
            raise_directory_error(DirectoryError(DirectoryErrorCode.CONFLICT, "dup"))

        assert exc_info.value.status_code == 409
        assert exc_info.value.detail == "dup"


class _Body(BaseModel):
    name: str


def _app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/app-error")
    def app_error():
        raise forbidden("No podés.")

    @app.get("/unique")
    def unique():
        raise UniqueViolationError("dup key", constraint="uq_users_email")

    @app.get("/db")
    def db():
        raise DatabaseError("connection refused to 10.0.0.5")

    @app.get("/boom")
    def boom():
        raise RuntimeError("secret internals")

    @app.post("/validate")
    def validate(body: _Body):
        return body

    return app


@pytest.fixture
def client() -> TestClient:
    return TestClient(_app(), raise_server_exceptions=False)


class TestExceptionHandlers:
    def test_app_http_exception_is_problem_json(self, client):
        response = client.get("/app-error")

        assert response.status_code == 403
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["code"] == "FORBIDDEN"
        assert body["detail"] == "No podés."
        assert body["status"] == 403
        assert body["instance"].endswith("/app-error")

    def test_unique_violation_is_conflict(self, client):
        response = client.get("/unique")

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "CONFLICT"
        assert "error_id" in body["errors"][0]

    def test_database_error_hides_message(self, client):
        response = client.get("/db")

        assert response.status_code == 503
        assert "10.0.0.5" not in response.json()["detail"]

    def test_request_validation_lists_fields(self, client):
        response = client.post("/validate", json={})

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["errors"][0]["loc"] == "body.name"

    def test_unhandled_exception_is_500(self, client, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.setenv("JWT_SECRET", "x" * 40)
        monkeypatch.setenv("JWT_COOKIE_SECURE", "true")
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/kiki")

        response = client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "INTERNAL_ERROR"
        assert "secret internals" not in body["detail"]
