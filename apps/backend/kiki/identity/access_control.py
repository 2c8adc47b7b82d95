"""
===============================================================================
TARJETA CRC — identity/access_control.py
===============================================================================

Módulo:
    Dependencias FastAPI de autenticación y autorización

Responsabilidades:
    - Extraer el access token (Bearer o cookie) y validarlo.
    - Resolver el Principal del request (usuario + rol efectivo + grilla).
    - Enforzar permisos de grilla (module x action) en el borde HTTP.
    - Registrar el principal en request.state y en el contexto de logs.

Colaboradores:
    - identity.auth_users: extract_access_token, decode_access_token.
    - container.get_resolve_principal_use_case: carga usuario/rol/asociación.
    - interfaces.api.http.error_mapping.raise_auth_error: AuthError -> 401/403.
    - context.set_principal_context.

Notas:
    - Sin token -> 401 TOKEN_MISSING. Token vencido/ inválido -> 401 específico.
    - El scope de cuenta (tenant) lo deciden los use cases, no este módulo.
===============================================================================
"""

from __future__ import annotations

from typing import Callable

from fastapi import Header, Request

from ..container import get_resolve_principal_use_case
from ..context import set_principal_context
from ..crosscutting.error_responses import ErrorCode, forbidden, unauthorized
from ..domain.access import Principal
from ..domain.permissions import Action, Module
from ..interfaces.api.http.error_mapping import raise_auth_error
from .auth_users import decode_access_token, extract_access_token


def _resolve_principal(request: Request, authorization: str | None) -> Principal:
    token = extract_access_token(request, authorization)
    if not token:
        raise unauthorized("Token de acceso requerido.", code=ErrorCode.TOKEN_MISSING)

    claims = decode_access_token(token)

    result = get_resolve_principal_use_case().execute(claims.user_id)
    if result.error is not None:
        raise_auth_error(result.error)

    principal = result.principal
    request.state.principal = principal
    set_principal_context(
        user_id=str(principal.user_id),
        account_id=str(principal.account_id or ""),
    )
    return principal


def require_principal() -> Callable:
    """Dependency FastAPI: requiere un usuario autenticado y aprobado."""

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> Principal:
        return _resolve_principal(request, authorization)

    return dependency


def require_permission(module: Module, action: Action) -> Callable:
    """Dependency FastAPI: principal autenticado con `module:action` en su grilla."""

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> Principal:
        principal = _resolve_principal(request, authorization)
        if not principal.can(module, action):
            raise forbidden(f"Permiso requerido: {module.value}:{action.value}.")
        return principal

    dependency._required_permission = f"{module.value}:{action.value}"
    return dependency
