"""
===============================================================================
TARJETA CRC — router.py (Router raíz / Composición)
===============================================================================

Responsabilidades:
  - Definir el APIRouter raíz que se incluye en FastAPI.
  - Centralizar responses RFC7807 para OpenAPI.
  - Componer routers por feature.

Notas:
  - Se incluye desde kiki/api/main.py con prefix="/v1".
  - build_router() permite testear la composición sin efectos al importar.
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from ....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .routers import (
    accounts_router,
    associations_router,
    divisions_router,
    roles_router,
    students_router,
    users_router,
)


def build_router() -> APIRouter:
    """Construye el router raíz v1."""
    api_router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)

    api_router.include_router(accounts_router)
    api_router.include_router(divisions_router)
    api_router.include_router(students_router)
    api_router.include_router(users_router)
    api_router.include_router(roles_router)
    api_router.include_router(associations_router)

    return api_router


router = build_router()

__all__ = ["router", "build_router"]
