"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Provide defaults that work for local development and tests

Collaborators:
  - api/main.py: reads settings for CORS, pool and seeding at startup
  - container.py: picks persistence backend and token lifetimes
  - identity/auth_users.py: JWT secret, TTL and cookie names

Constraints:
  - Lives in the API/infrastructure layer, NOT in domain/application
  - No business logic, pure configuration

Notes:
  - Singleton via lru_cache
  - Production guard rails live in validate_security_requirements
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PERSISTENCE_BACKENDS = {"postgres", "memory"}
_TEST_ENVS = {"test", "testing", "ci"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        database_url: PostgreSQL connection string (required for postgres backend)
        app_env: Application environment (local/development/test/production)
        persistence_backend: postgres | memory
        allowed_origins: Comma-separated CORS origins
        rate_limit_requests: Requests allowed per IP per window (0 disables)
        rate_limit_window_seconds: Window length in seconds
        max_body_bytes: Max request body size (default: 1MB)
        jwt_secret: Secret for signing JWT access tokens
        jwt_access_ttl_minutes: Access token TTL in minutes
        refresh_token_ttl_days: Refresh token TTL in days
        refresh_token_rotation: Issue a new refresh token on every refresh
        password_min_length: Minimum password length on register/change
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    database_url: str = ""
    persistence_backend: str = "postgres"

    # Environment
    app_env: str = "development"

    # CORS configuration
    allowed_origins: str = "http://localhost:3000"
    cors_allow_credentials: bool = False

    # Security - Rate Limiting (fixed window per IP)
    rate_limit_requests: int = 120
    rate_limit_window_seconds: int = 60

    # Security - Hardening
    max_body_bytes: int = 1024 * 1024

    # Security - JWT Auth
    jwt_secret: str = "dev-secret"
    jwt_access_ttl_minutes: int = 15
    jwt_cookie_name: str = "access_token"
    jwt_cookie_secure: bool = False

    # Security - Refresh tokens
    refresh_token_ttl_days: int = 7
    refresh_token_rotation: bool = True
    refresh_cookie_name: str = "refresh_token"

    # Passwords
    password_min_length: int = 6

    # Database - Connection Pool
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Seeds
    seed_roles_on_startup: bool = True
    dev_seed_superadmin: bool = False
    dev_seed_superadmin_email: str = "superadmin@local"
    dev_seed_superadmin_password: str = "superadmin"
    dev_seed_superadmin_name: str = "Super Admin"
    dev_seed_superadmin_force_reset: bool = False

    @field_validator("persistence_backend")
    @classmethod
    def persistence_backend_valid(cls, v: str) -> str:
        backend = (v or "postgres").strip().lower()
        if backend not in _PERSISTENCE_BACKENDS:
            raise ValueError("persistence_backend must be postgres or memory")
        return backend

    @field_validator("jwt_access_ttl_minutes", "refresh_token_ttl_days")
    @classmethod
    def ttl_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("token TTLs must be greater than 0")
        return v

    @field_validator("rate_limit_requests", "rate_limit_window_seconds")
    @classmethod
    def rate_limit_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("rate limit values must be >= 0")
        return v

    @field_validator("password_min_length")
    @classmethod
    def password_min_length_valid(cls, v: int) -> int:
        if v < 6:
            raise ValueError("password_min_length must be >= 6")
        return v

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    @model_validator(mode="after")
    def validate_database_requirements(self):
        if self.uses_memory_backend():
            return self
        if not self.database_url.strip():
            raise ValueError("DATABASE_URL is required when PERSISTENCE_BACKEND=postgres")
        return self

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        insecure_secrets = {"dev-secret", "changeme", "change-me", "password"}
        jwt_secret = (self.jwt_secret or "").strip()
        if not jwt_secret or jwt_secret in insecure_secrets:
            raise ValueError(
                "JWT_SECRET must be set to a strong, non-default value in production"
            )
        if len(jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters in production")
        if not self.jwt_cookie_secure:
            raise ValueError("JWT_COOKIE_SECURE must be true in production")
        if self.persistence_backend != "postgres":
            raise ValueError("PERSISTENCE_BACKEND must be postgres in production")
        if self.dev_seed_superadmin:
            raise ValueError("DEV_SEED_SUPERADMIN must be disabled in production")

        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_test(self) -> bool:
        return self.app_env.strip().lower() in _TEST_ENVS

    def uses_memory_backend(self) -> bool:
        # R: test envs always run against in-memory adapters.
        return self.persistence_backend == "memory" or self.is_test()


@lru_cache
def get_settings() -> Settings:
    """Settings singleton."""
    return Settings()
