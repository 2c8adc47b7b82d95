"""
===============================================================================
USE CASE: Change Password
===============================================================================

Reglas:
  - El password actual debe verificar (INVALID_CREDENTIALS si no).
  - El nuevo respeta el largo mínimo y difiere del actual.
  - Éxito: nuevo hash, password_changed_at, is_first_login=False y se
    revocan todos los refresh tokens del usuario.
===============================================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID

from ....crosscutting.logger import logger
from ....domain.repositories import RefreshTokenRepository, UserRepository
from .auth_results import AuthError, AuthErrorCode, ChangePasswordResult


class ChangePasswordUseCase:
    def __init__(
        self,
        user_repository: UserRepository,
        refresh_token_repository: RefreshTokenRepository,
        *,
        password_hasher: Callable[[str], str],
        password_verifier: Callable[[str, str], bool],
        password_min_length: int = 6,
    ) -> None:
        self._users = user_repository
        self._refresh_tokens = refresh_token_repository
        self._hash = password_hasher
        self._verify = password_verifier
        self._min_length = password_min_length

    def execute(
        self, user_id: UUID, current_password: str, new_password: str
    ) -> ChangePasswordResult:
        user = self._users.get_user_by_id(user_id)
        if user is None:
            return ChangePasswordResult(
                error=AuthError(AuthErrorCode.USER_NOT_FOUND, "Usuario no encontrado.")
            )

        if not current_password or not self._verify(current_password, user.password_hash):
            return ChangePasswordResult(
                error=AuthError(
                    AuthErrorCode.INVALID_CREDENTIALS, "La contraseña actual es incorrecta."
                )
            )

        if len(new_password or "") < self._min_length:
            return ChangePasswordResult(
                error=AuthError(
                    AuthErrorCode.VALIDATION_ERROR,
                    f"La contraseña debe tener al menos {self._min_length} caracteres.",
                )
            )
        if new_password == current_password:
            return ChangePasswordResult(
                error=AuthError(
                    AuthErrorCode.VALIDATION_ERROR,
                    "La nueva contraseña debe ser distinta de la actual.",
                )
            )

        now = datetime.now(timezone.utc)
        updated = self._users.update_user(
            replace(
                user,
                password_hash=self._hash(new_password),
                password_changed_at=now,
                is_first_login=False,
                updated_at=now,
            )
        )
        revoked = self._refresh_tokens.revoke_all_for_user(user_id)
        logger.info(
            "Password changed; sessions revoked",
            extra={"user_id": str(user_id), "revoked": revoked},
        )
        return ChangePasswordResult(user=updated or user, revoked_sessions=revoked)
