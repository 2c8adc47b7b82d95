"""
Name: Observability Tests (request context + JSON logs)

Responsibilities:
  - Context vars feed the JSON formatter and are cleared per request
  - JSONFormatter emits one JSON line and redacts credentials
  - RequestContextMiddleware propagates or generates X-Request-Id
"""

import json
import logging
import sys

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from kiki.context import (
    clear_context,
    get_context_dict,
    set_principal_context,
    set_request_context,
)
from kiki.crosscutting.logger import JSONFormatter
from kiki.crosscutting.middleware import RequestContextMiddleware

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _clean_context():
    clear_context()
    yield
    clear_context()


def _record(msg: str = "evento", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="kiki-api",
        level=logging.INFO,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestContextVars:
    def test_empty_context_is_empty_dict(self):
        assert get_context_dict() == {}

    def test_request_and_principal_values(self):
        set_request_context(request_id="req-1", method="GET", path="/auth/me")
        set_principal_context(user_id="u-1", account_id="acc-1")

        assert get_context_dict() == {
            "request_id": "req-1",
            "method": "GET",
            "path": "/auth/me",
            "user_id": "u-1",
            "account_id": "acc-1",
        }

    def test_clear_context(self):
        set_request_context(request_id="req-1")
        clear_context()

        assert get_context_dict() == {}


class TestJSONFormatter:
    def test_basic_payload(self):
        payload = json.loads(JSONFormatter().format(_record("hola")))

        assert payload["message"] == "hola"
        assert payload["level"] == "INFO"
        assert payload["service"] == "kiki-api"
        assert "timestamp" in payload

    def test_includes_request_context(self):
        set_request_context(request_id="req-42", method="POST", path="/auth/login")

        payload = json.loads(JSONFormatter().format(_record()))

        assert payload["request_id"] == "req-42"
        assert payload["path"] == "/auth/login"

    @pytest.mark.parametrize(
        "field", ["password", "refresh_token", "authorization", "jwt_secret"]
    )
    def test_sensitive_fields_redacted(self, field):
        payload = json.loads(JSONFormatter().format(_record(**{field: "s3cr3t"})))

        assert payload[field] != "s3cr3t"
        assert "s3cr3t" not in json.dumps(payload)

    def test_nested_sensitive_field_redacted(self):
        record = _record(body={"email": "a@b.c", "password": "s3cr3t"})

        payload = json.loads(JSONFormatter().format(record))

        assert payload["body"]["email"] == "a@b.c"
        assert payload["body"]["password"] != "s3cr3t"

    def test_long_strings_are_truncated(self):
        payload = json.loads(JSONFormatter().format(_record(blob="x" * 10_000)))

        assert len(payload["blob"]) < 10_000

    def test_exception_info(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        payload = json.loads(JSONFormatter().format(record))

        assert payload["exception"]["type"] == "ValueError"
        assert payload["exception"]["message"] == "boom"


class TestRequestContextMiddleware:
    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_middleware(RequestContextMiddleware)

        @app.get("/ping")
        async def ping():
            return get_context_dict()

        return TestClient(app)

    def test_generates_request_id(self, client):
        response = client.get("/ping")

        request_id = response.headers["x-request-id"]
        assert len(request_id) == 36
        assert response.json()["request_id"] == request_id
        assert response.json()["path"] == "/ping"

    def test_propagates_incoming_request_id(self, client):
        response = client.get("/ping", headers={"X-Request-Id": "abc-123"})

        assert response.headers["x-request-id"] == "abc-123"

    def test_oversized_request_id_is_replaced(self, client):
        response = client.get("/ping", headers={"X-Request-Id": "a" * 500})

        assert response.headers["x-request-id"] != "a" * 500

    def test_context_cleared_after_request(self, client):
        client.get("/ping", headers={"X-Request-Id": "abc-123"})

        assert get_context_dict() == {}
