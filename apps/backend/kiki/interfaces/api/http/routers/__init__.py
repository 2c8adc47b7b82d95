"""
===============================================================================
TARJETA CRC — kiki/interfaces/api/http/routers/__init__.py
===============================================================================

Name:
    Routers Package (HTTP)

Responsibilities:
    - Re-exportar los routers por feature para el router raíz.

Notas:
    - Este archivo NO define endpoints.
===============================================================================
"""

from .accounts import router as accounts_router
from .associations import router as associations_router
from .divisions import router as divisions_router
from .roles import router as roles_router
from .students import router as students_router
from .users import router as users_router

__all__ = [
    "accounts_router",
    "associations_router",
    "divisions_router",
    "roles_router",
    "students_router",
    "users_router",
]
