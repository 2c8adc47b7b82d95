"""
Name: Integration Test DB Setup

Responsibilities:
  - Resolve a reachable PostgreSQL for integration tests
  - Run Alembic migrations once per test session
  - Open the global pool and seed the role catalog
  - Truncate tenant tables between tests

Notes:
  - Only runs when RUN_INTEGRATION=1
  - Uses DATABASE_URL from environment (see alembic/env.py)
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from psycopg import connect

from kiki.application.seed_roles import ensure_role_catalog
from kiki.crosscutting.config import get_settings
from kiki.infrastructure.db.pool import close_pool, get_pool, init_pool
from kiki.infrastructure.repositories.postgres import PostgresRoleRepository

DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost")
DB_PORT = os.getenv("POSTGRES_HOST_PORT", "5432")
DB_NAME = os.getenv("POSTGRES_DB", "kiki")
DEFAULT_DATABASE_URL = (
    f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

# R: orden hijo -> padre; TRUNCATE ... CASCADE igual resuelve las FKs.
TENANT_TABLES = (
    "requested_shares",
    "refresh_tokens",
    "active_associations",
    "associations",
    "students",
    "divisions",
    "users",
    "accounts",
)


def _check_reachable(url: str) -> None:
    try:
        with connect(url, autocommit=True, connect_timeout=2) as conn:
            conn.execute("SELECT 1")
    except Exception as exc:
        raise RuntimeError(
            "PostgreSQL is required for integration tests. "
            "Start the compose DB (docker compose up -d db) or set DATABASE_URL."
        ) from exc


if os.getenv("RUN_INTEGRATION") == "1":
    os.environ["APP_ENV"] = "integration"
    os.environ["PERSISTENCE_BACKEND"] = "postgres"
    os.environ.setdefault("DATABASE_URL", DEFAULT_DATABASE_URL)
    get_settings.cache_clear()


def pytest_configure(config) -> None:
    if os.getenv("RUN_INTEGRATION") == "1" and hasattr(config.option, "cov_fail_under"):
        config.option.cov_fail_under = 0


@pytest.fixture(scope="session", autouse=True)
def apply_migrations() -> None:
    """Run Alembic migrations for integration tests."""
    if os.getenv("RUN_INTEGRATION") != "1":
        return

    _check_reachable(os.environ["DATABASE_URL"])

    backend_dir = Path(__file__).resolve().parents[2]
    config = Config(str(backend_dir / "alembic.ini"))
    config.set_main_option("script_location", str(backend_dir / "alembic"))

    command.upgrade(config, "head")


@pytest.fixture(scope="session", autouse=True)
def init_db_pool(apply_migrations):
    if os.getenv("RUN_INTEGRATION") != "1":
        yield
        return

    settings = get_settings()
    init_pool(
        database_url=settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    ensure_role_catalog(PostgresRoleRepository())
    yield
    close_pool()


@pytest.fixture
def clean_db():
    """R: Empty tenant tables; the role catalog survives."""
    with get_pool().connection() as conn:
        conn.execute(f"TRUNCATE {', '.join(TENANT_TABLES)} CASCADE")
    yield
