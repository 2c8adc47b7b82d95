"""
Name: Hardening Tests (settings guards + body limit)

Responsibilities:
  - Production refuses insecure JWT / cookie / backend settings
  - Settings validators reject out-of-range values
  - BodyLimitMiddleware answers 413 problem+json
"""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from kiki.crosscutting.config import Settings
from kiki.crosscutting.middleware import BodyLimitMiddleware
from pydantic import ValidationError

pytestmark = pytest.mark.unit

STRONG_SECRET = "k" * 40


def _settings(**overrides) -> Settings:
    base = {
        "database_url": "postgresql://localhost/kiki",
        "app_env": "development",
    }
    base.update(overrides)
    return Settings(**base)


class TestProductionGuards:
    def _production(self, **overrides) -> Settings:
        values = {
            "app_env": "production",
            "jwt_secret": STRONG_SECRET,
            "jwt_cookie_secure": True,
            "persistence_backend": "postgres",
        }
        values.update(overrides)
        return _settings(**values)

    def test_valid_production_settings(self):
        settings = self._production()

        assert settings.is_production()
        assert not settings.uses_memory_backend()

    @pytest.mark.parametrize("secret", ["dev-secret", "changeme", "corto"])
    def test_weak_jwt_secret_rejected(self, secret):
        with pytest.raises(ValidationError):
            self._production(jwt_secret=secret)

    def test_insecure_cookie_rejected(self):
        with pytest.raises(ValidationError):
            self._production(jwt_cookie_secure=False)

    def test_memory_backend_rejected(self):
        with pytest.raises(ValidationError):
            self._production(persistence_backend="memory")

    def test_dev_seed_rejected(self):
        with pytest.raises(ValidationError):
            self._production(dev_seed_superadmin=True)


class TestSettingsValidators:
    def test_postgres_requires_database_url(self):
        with pytest.raises(ValidationError):
            _settings(database_url="", persistence_backend="postgres")

    def test_memory_backend_without_database_url(self):
        settings = _settings(database_url="", persistence_backend="MEMORY")

        assert settings.persistence_backend == "memory"
        assert settings.uses_memory_backend()

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            _settings(persistence_backend="sqlite")

    @pytest.mark.parametrize(
        "field", ["jwt_access_ttl_minutes", "refresh_token_ttl_days"]
    )
    def test_ttls_must_be_positive(self, field):
        with pytest.raises(ValidationError):
            _settings(**{field: 0})

    def test_negative_rate_limit_rejected(self):
        with pytest.raises(ValidationError):
            _settings(rate_limit_requests=-1)

    def test_password_min_length_floor(self):
        with pytest.raises(ValidationError):
            _settings(password_min_length=4)

    def test_allowed_origins_list(self):
        settings = _settings(allowed_origins="http://a.test, http://b.test ,")

        assert settings.get_allowed_origins_list() == ["http://a.test", "http://b.test"]

    def test_defaults(self):
        settings = _settings()

        assert settings.max_body_bytes == 1024 * 1024
        assert settings.cors_allow_credentials is False
        assert settings.jwt_access_ttl_minutes == 15
        assert settings.refresh_token_ttl_days == 7


class TestBodyLimitMiddleware:
    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_middleware(BodyLimitMiddleware, max_body_bytes=16)

        @app.post("/echo")
        async def echo(request: Request):
            body = await request.body()
            return {"size": len(body)}

        return TestClient(app)

    def test_small_body_passes(self, client):
        response = client.post("/echo", content=b"hola")

        assert response.status_code == 200
        assert response.json() == {"size": 4}

    def test_declared_length_over_limit(self, client):
        response = client.post("/echo", content=b"x" * 64)

        assert response.status_code == 413
        assert response.headers["content-type"] == "application/problem+json"
        assert response.json()["code"] == "PAYLOAD_TOO_LARGE"

    def test_streamed_body_over_limit(self, client):
        def chunks():
            for _ in range(8):
                yield b"x" * 8

        response = client.post("/echo", content=chunks())

        assert response.status_code == 413
