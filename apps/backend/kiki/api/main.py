"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Initialize FastAPI application with metadata (title, version)
  - Run startup work in the lifespan: DB pool, role catalog, dev superadmin,
    refresh-token purge and stale active-association sweep
  - Configure middleware (CORS, request context, body limit, rate limit)
  - Mount feature routers under /v1 and auth routes under /auth
  - Expose health and readiness checks

Collaborators:
  - kiki.container: repositories and use cases
  - kiki.infrastructure.db.pool: pool lifecycle (postgres backend only)
  - kiki.application.seed_roles / dev_seed_admin: idempotent seeds
  - interfaces.api.http.router: /v1 endpoints
  - api.auth_routes: /auth endpoints

Notes:
  - Middleware order matters: RateLimit (outermost ASGI wrapper) ->
    RequestContext -> BodyLimit -> CORS -> routes
  - The memory backend skips the pool entirely
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..application.dev_seed_admin import ensure_dev_superadmin
from ..application.seed_roles import ensure_role_catalog
from ..container import (
    get_cleanup_active_associations_use_case,
    get_purge_refresh_tokens_use_case,
    get_role_repository,
    get_user_repository,
)
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.middleware import BodyLimitMiddleware, RequestContextMiddleware
from ..crosscutting.rate_limit import RateLimitMiddleware
from ..identity.auth_users import hash_password
from ..infrastructure.db.pool import close_pool, init_pool, ping_pool
from ..interfaces.api.http.router import router
from .auth_routes import router as auth_router
from .exception_handlers import register_exception_handlers


def _run_startup_tasks(settings) -> None:
    """Seeds and housekeeping. Everything here is idempotent."""
    if settings.seed_roles_on_startup:
        ensure_role_catalog(get_role_repository())

    ensure_dev_superadmin(
        settings,
        user_repo=get_user_repository(),
        password_hasher=hash_password,
        env=os.environ,
    )

    get_purge_refresh_tokens_use_case().execute()
    get_cleanup_active_associations_use_case().execute()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()

    if not settings.uses_memory_backend():
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    try:
        try:
            _run_startup_tasks(settings)
        except Exception as e:
            logger.error(f"Startup failed: {e}")
            raise

        logger.info(
            "Kiki API starting up",
            extra={
                "env": settings.app_env,
                "persistence_backend": settings.persistence_backend,
                "rate_limit_requests": settings.rate_limit_requests,
                "refresh_token_rotation": settings.refresh_token_rotation,
            },
        )

        yield

    finally:
        close_pool()
        logger.info("Kiki API shutting down")


app = FastAPI(
    title="Kiki API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "auth", "description": "Login, refresh tokens y sesión (JWT)"},
        {"name": "accounts", "description": "Instituciones (tenants)"},
        {"name": "divisions", "description": "Divisiones / grupos de una cuenta"},
        {"name": "students", "description": "Alumnos"},
        {"name": "users", "description": "Usuarios"},
        {"name": "roles", "description": "Catálogo de roles y grilla de permisos"},
        {"name": "associations", "description": "Asociaciones y asociación activa"},
    ],
)

# R: add_middleware stacks outward: the last one added runs first.
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().get_allowed_origins_list(),
    allow_credentials=get_settings().cors_allow_credentials,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "X-Request-Id",
        "X-Device-ID",
    ],
)
app.add_middleware(BodyLimitMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(router, prefix="/v1")
app.include_router(auth_router)

register_exception_handlers(app)


@app.get("/healthz")
def healthz(request: Request):
    """Liveness: the process is up."""
    return {"ok": True, "request_id": getattr(request.state, "request_id", None)}


@app.get("/readyz")
def readyz(request: Request):
    """
    Readiness: the persistence backend answers.

    Returns:
        ok: True if core dependencies are operational
        db: "memory", "connected" or "disconnected"
    """
    settings = get_settings()
    if settings.uses_memory_backend():
        db_status = "memory"
    else:
        db_status = "connected" if ping_pool() else "disconnected"

    return {
        "ok": db_status != "disconnected",
        "db": db_status,
        "request_id": getattr(request.state, "request_id", None),
    }


# R: Rate limit wraps the whole ASGI app (must stay at the very end).
_fastapi_app = app
app = RateLimitMiddleware(_fastapi_app)
