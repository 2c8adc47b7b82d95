"""
===============================================================================
AUTH USE CASE RESULTS
===============================================================================

Responsibilities:
    - Códigos de error estables del flujo de autenticación (los mismos que
      viajan en el campo `code` del problem+json).
    - Resultados tipados de login, refresh, logout, registro, cambio de
      password y resolución del principal.

Collaborators:
    - interfaces.api.http.error_mapping.raise_auth_error
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ....domain.access import Principal
from ....domain.entities import Association, RefreshToken, User, UserStatus


class AuthErrorCode(str, Enum):
    # 401
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_NOT_APPROVED = "USER_NOT_APPROVED"
    USER_REJECTED = "USER_REJECTED"
    REFRESH_TOKEN_INVALID = "REFRESH_TOKEN_INVALID"
    REFRESH_TOKEN_EXPIRED = "REFRESH_TOKEN_EXPIRED"
    REFRESH_TOKEN_REVOKED = "REFRESH_TOKEN_REVOKED"
    # 403
    ASSOCIATION_PENDING = "ASSOCIATION_PENDING"
    FORBIDDEN = "FORBIDDEN"
    # 404 / 409 / 409 / 422
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INVALID_STATE = "INVALID_STATE"
    VALIDATION_ERROR = "VALIDATION_ERROR"


@dataclass(frozen=True)
class AuthError:
    code: AuthErrorCode
    message: str


@dataclass(frozen=True)
class SessionTokens:
    """Par de tokens entregado al cliente. refresh_token es el valor en claro."""

    access_token: str
    expires_in: int
    refresh_token: str
    refresh_expires_at: datetime
    token_type: str = "bearer"


@dataclass
class LoginResult:
    user: User | None = None
    tokens: SessionTokens | None = None
    error: AuthError | None = None


@dataclass
class RefreshResult:
    user: User | None = None
    tokens: SessionTokens | None = None
    refresh_record: RefreshToken | None = None
    error: AuthError | None = None


@dataclass
class LogoutResult:
    revoked: int = 0
    error: AuthError | None = None


@dataclass
class RegisterResult:
    user: User | None = None
    association: Association | None = None
    shared_associations: list[Association] = field(default_factory=list)
    error: AuthError | None = None


@dataclass
class ChangePasswordResult:
    user: User | None = None
    revoked_sessions: int = 0
    error: AuthError | None = None


@dataclass
class PrincipalResult:
    principal: Principal | None = None
    error: AuthError | None = None


def user_status_error(user: User) -> AuthError | None:
    """USER_NOT_APPROVED / USER_REJECTED según el estado, o None si está aprobado."""
    if user.is_approved:
        return None
    if user.status == UserStatus.REJECTED:
        return AuthError(AuthErrorCode.USER_REJECTED, "El usuario fue rechazado.")
    return AuthError(
        AuthErrorCode.USER_NOT_APPROVED, "El usuario aún no fue aprobado."
    )
