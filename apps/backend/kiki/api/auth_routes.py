"""
===============================================================================
TARJETA CRC — kiki/api/auth_routes.py (Autenticación de usuarios)
===============================================================================

Responsabilidades:
  - Exponer login / refresh / logout / me / registro / cambio de password.
  - Gestionar cookies httpOnly de acceso y refresh de forma consistente.
  - Traducir AuthError -> RFC7807 (401/403/409/422).

Colaboradores:
  - application.usecases.auth (Login, RefreshSession, Logout, Register,
    ChangePassword)
  - identity.auth_users: extracción de refresh token y DeviceInfo
  - identity.access_control.require_principal
  - kiki.container (factories DI)

Notas:
  - El refresh token viaja en el body o en cookie; nunca se loguea.
  - Logout limpia cookies aunque no hubiera token que revocar.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response

from ..application.usecases.auth import (
    ChangePasswordUseCase,
    LoginUseCase,
    LogoutUseCase,
    RefreshSessionUseCase,
    RegisterUserInput,
    RegisterUserUseCase,
    SessionTokens,
)
from ..container import (
    get_change_password_use_case,
    get_login_use_case,
    get_logout_use_case,
    get_refresh_session_use_case,
    get_register_user_use_case,
)
from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES, ErrorCode, unauthorized
from ..domain.access import Principal
from ..domain.entities import User
from ..identity.access_control import require_principal
from ..identity.auth_users import (
    device_info_from_request,
    extract_refresh_token,
    get_auth_settings,
)
from ..interfaces.api.http.error_mapping import raise_auth_error
from ..interfaces.api.http.schemas.associations import to_active_association_res
from ..interfaces.api.http.schemas.auth import (
    ChangePasswordReq,
    ChangePasswordRes,
    LoginReq,
    LogoutReq,
    LogoutRes,
    MeRes,
    RefreshReq,
    RegisterReq,
    RegisterRes,
    TokenRes,
)
from ..interfaces.api.http.schemas.common import grants_to_schema
from ..interfaces.api.http.schemas.users import to_user_res

router = APIRouter(prefix="/auth", tags=["auth"], responses=OPENAPI_ERROR_RESPONSES)


# -----------------------------------------------------------------------------
# Helpers (cookies)
# -----------------------------------------------------------------------------


def _set_session_cookies(response: Response, tokens: SessionTokens) -> None:
    settings = get_auth_settings()
    response.set_cookie(
        key=settings.jwt_cookie_name,
        value=tokens.access_token,
        httponly=True,
        secure=settings.jwt_cookie_secure,
        samesite="lax",
        max_age=tokens.expires_in,
        path="/",
    )
    refresh_max_age = int(
        (tokens.refresh_expires_at - datetime.now(timezone.utc)).total_seconds()
    )
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=tokens.refresh_token,
        httponly=True,
        secure=settings.jwt_cookie_secure,
        samesite="lax",
        max_age=max(refresh_max_age, 0),
        path="/auth",
    )


def _clear_session_cookies(response: Response) -> None:
    settings = get_auth_settings()
    response.delete_cookie(
        key=settings.jwt_cookie_name,
        path="/",
        samesite="lax",
        secure=settings.jwt_cookie_secure,
    )
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        path="/auth",
        samesite="lax",
        secure=settings.jwt_cookie_secure,
    )


def _token_response(user: User, tokens: SessionTokens) -> TokenRes:
    return TokenRes(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        expires_in=tokens.expires_in,
        refresh_expires_at=tokens.refresh_expires_at,
        user=to_user_res(user),
    )


# -----------------------------------------------------------------------------
# Endpoints públicos
# -----------------------------------------------------------------------------


@router.post("/login", response_model=TokenRes)
def login(
    req: LoginReq,
    request: Request,
    response: Response,
    use_case: LoginUseCase = Depends(get_login_use_case),
):
    """Inicia sesión: access token (JWT) + refresh token opaco."""
    result = use_case.execute(req.email, req.password, device_info_from_request(request))
    if result.error is not None:
        raise_auth_error(result.error)

    _set_session_cookies(response, result.tokens)
    return _token_response(result.user, result.tokens)


@router.post("/refresh", response_model=TokenRes)
def refresh(
    request: Request,
    response: Response,
    req: RefreshReq | None = None,
    use_case: RefreshSessionUseCase = Depends(get_refresh_session_use_case),
):
    """Renueva el access token (y rota el refresh si está habilitado)."""
    token = extract_refresh_token(request, req.refresh_token if req else None)
    if not token:
        raise unauthorized(
            "Refresh token requerido.", code=ErrorCode.REFRESH_TOKEN_INVALID
        )

    result = use_case.execute(token, device_info_from_request(request))
    if result.error is not None:
        raise_auth_error(result.error)

    _set_session_cookies(response, result.tokens)
    return _token_response(result.user, result.tokens)


@router.post("/register", response_model=RegisterRes, status_code=201)
def register(
    req: RegisterReq,
    use_case: RegisterUserUseCase = Depends(get_register_user_use_case),
):
    """Auto-registro de familias: usuario pending (+ asociación pending)."""
    result = use_case.execute(
        RegisterUserInput(
            name=req.name,
            email=req.email,
            password=req.password,
            role_name=req.role,
            account_id=req.account_id,
            division_id=req.division_id,
            student_id=req.student_id,
            dni=req.dni,
            phone=req.phone,
        )
    )
    if result.error is not None:
        raise_auth_error(result.error)

    return RegisterRes(
        user=to_user_res(result.user),
        association_id=result.association.id if result.association else None,
        shared_association_ids=[a.id for a in result.shared_associations],
    )


# -----------------------------------------------------------------------------
# Endpoints autenticados
# -----------------------------------------------------------------------------


@router.post("/logout", response_model=LogoutRes)
def logout(
    request: Request,
    response: Response,
    req: LogoutReq | None = None,
    principal: Principal = Depends(require_principal()),
    use_case: LogoutUseCase = Depends(get_logout_use_case),
):
    """Revoca la sesión actual o, con all_sessions, todas las del usuario."""
    token = extract_refresh_token(request, req.refresh_token if req else None)
    result = use_case.execute(
        principal.user_id,
        token,
        all_sessions=bool(req and req.all_sessions),
    )
    if result.error is not None:
        raise_auth_error(result.error)

    _clear_session_cookies(response)
    return LogoutRes(revoked=result.revoked)


@router.get("/me", response_model=MeRes)
def me(principal: Principal = Depends(require_principal())):
    """Usuario autenticado + rol efectivo, asociación activa y grilla."""
    active = principal.active_association
    return MeRes(
        user=to_user_res(principal.user),
        role=principal.role_name,
        account_id=principal.account_id,
        active_association=to_active_association_res(active) if active else None,
        permissions=grants_to_schema(principal.permissions),
    )


@router.post("/password", response_model=ChangePasswordRes)
def change_password(
    req: ChangePasswordReq,
    response: Response,
    principal: Principal = Depends(require_principal()),
    use_case: ChangePasswordUseCase = Depends(get_change_password_use_case),
):
    """Cambia el password y revoca todas las sesiones (hay que volver a loguear)."""
    result = use_case.execute(principal.user_id, req.current_password, req.new_password)
    if result.error is not None:
        raise_auth_error(result.error)

    _clear_session_cookies(response)
    return ChangePasswordRes(revoked_sessions=result.revoked_sessions)


__all__ = ["router"]
