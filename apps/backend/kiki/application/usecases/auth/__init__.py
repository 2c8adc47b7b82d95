"""
Auth use cases (public exports).
"""

from __future__ import annotations

from .auth_results import (
    AuthError,
    AuthErrorCode,
    ChangePasswordResult,
    LoginResult,
    LogoutResult,
    PrincipalResult,
    RefreshResult,
    RegisterResult,
    SessionTokens,
)
from .change_password import ChangePasswordUseCase
from .login import LoginUseCase
from .logout import LogoutUseCase, PurgeRefreshTokensUseCase
from .refresh_session import RefreshSessionUseCase
from .register_user import RegisterUserInput, RegisterUserUseCase
from .resolve_principal import ResolvePrincipalUseCase
from .session_issuer import SessionIssuer

__all__ = [
    "AuthError",
    "AuthErrorCode",
    "ChangePasswordResult",
    "ChangePasswordUseCase",
    "LoginResult",
    "LoginUseCase",
    "LogoutResult",
    "LogoutUseCase",
    "PrincipalResult",
    "PurgeRefreshTokensUseCase",
    "RefreshResult",
    "RefreshSessionUseCase",
    "RegisterResult",
    "RegisterUserInput",
    "RegisterUserUseCase",
    "ResolvePrincipalUseCase",
    "SessionIssuer",
    "SessionTokens",
]
