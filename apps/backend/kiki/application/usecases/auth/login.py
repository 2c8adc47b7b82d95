"""
===============================================================================
USE CASE: Login
===============================================================================

Reglas:
  - Email normalizado (strip + lower).
  - Email desconocido o password incorrecto -> INVALID_CREDENTIALS
    (mismo mensaje en ambos casos).
  - Estado pending/rejected -> USER_NOT_APPROVED / USER_REJECTED, chequeado
    antes del password.
  - Usuarios no superadmin sin ninguna asociación active -> ASSOCIATION_PENDING.
  - Éxito: last_login_at, access + refresh token. Si el usuario tiene
    exactamente una asociación active y no está actuando con ninguna, se fija
    como activa.
===============================================================================
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable

from ....crosscutting.logger import logger
from ....domain.entities import (
    ActiveAssociation,
    AssociationStatus,
    DeviceInfo,
)
from ....domain.repositories import (
    ActiveAssociationRepository,
    AssociationRepository,
    UserRepository,
)
from ....domain.roles import RoleName
from .auth_results import AuthError, AuthErrorCode, LoginResult, user_status_error
from .session_issuer import SessionIssuer

_INVALID_CREDENTIALS = AuthError(
    AuthErrorCode.INVALID_CREDENTIALS, "Email o contraseña incorrectos."
)


class LoginUseCase:
    def __init__(
        self,
        user_repository: UserRepository,
        association_repository: AssociationRepository,
        active_association_repository: ActiveAssociationRepository,
        session_issuer: SessionIssuer,
        *,
        password_verifier: Callable[[str, str], bool],
    ) -> None:
        self._users = user_repository
        self._associations = association_repository
        self._active = active_association_repository
        self._sessions = session_issuer
        self._verify = password_verifier

    def execute(
        self, email: str, password: str, device: DeviceInfo | None = None
    ) -> LoginResult:
        # 1. Buscar usuario
        normalized = (email or "").strip().lower()
        user = self._users.get_user_by_email(normalized) if normalized else None
        if user is None:
            return LoginResult(error=_INVALID_CREDENTIALS)

        # 2. Estado (antes del password)
        status_error = user_status_error(user)
        if status_error:
            return LoginResult(error=status_error)

        # 3. Password
        if not password or not self._verify(password, user.password_hash):
            return LoginResult(error=_INVALID_CREDENTIALS)

        # 4. Asociaciones
        active_associations = self._associations.list_for_user(
            user.id, status=AssociationStatus.ACTIVE
        )
        if user.role_name != RoleName.SUPERADMIN and not active_associations:
            return LoginResult(
                error=AuthError(
                    AuthErrorCode.ASSOCIATION_PENDING,
                    "El usuario no tiene asociaciones activas; esperá la aprobación.",
                )
            )
        if len(active_associations) == 1 and self._active.get_active(user.id) is None:
            self._active.upsert_active(
                ActiveAssociation.from_association(active_associations[0])
            )

        # 5. Registrar login + emitir tokens
        now = self._sessions.now()
        user = self._users.update_user(
            replace(user, last_login_at=now, updated_at=now)
        ) or user
        tokens, _ = self._sessions.issue(user, device)

        logger.info("User logged in", extra={"user_id": str(user.id)})
        return LoginResult(user=user, tokens=tokens)
