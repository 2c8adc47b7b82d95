"""
===============================================================================
USE CASE: Refresh Session
===============================================================================

Cambia un refresh token opaco por un nuevo access token.

Reglas (en orden):
  1. Hash desconocido -> REFRESH_TOKEN_INVALID.
  2. Expirado -> se marca revocado y REFRESH_TOKEN_EXPIRED. Se evalúa antes
     que la revocación: reintentar un token vencido sigue siendo "expirado".
  3. Revocado -> REFRESH_TOKEN_REVOKED. Con rotación activa, presentar un
     token ya rotado (replaced_by_id) es reuso: se revocan todos los del
     usuario.
  4. Usuario inexistente -> USER_NOT_FOUND; no aprobado -> USER_NOT_APPROVED /
     USER_REJECTED.
  5. Éxito: last_used_at; con rotación el token viejo se revoca con
     compare-and-set y queda encadenado al nuevo. Si otro request ganó la
     rotación, es reuso. Siempre se emite un access nuevo.
===============================================================================
"""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID, uuid4

from ....crosscutting.logger import logger
from ....domain.entities import DeviceInfo
from ....domain.repositories import RefreshTokenRepository, UserRepository
from .auth_results import (
    AuthError,
    AuthErrorCode,
    RefreshResult,
    SessionTokens,
    user_status_error,
)
from .session_issuer import SessionIssuer

_REVOKED = AuthError(AuthErrorCode.REFRESH_TOKEN_REVOKED, "Refresh token revocado.")


class RefreshSessionUseCase:
    def __init__(
        self,
        refresh_token_repository: RefreshTokenRepository,
        user_repository: UserRepository,
        session_issuer: SessionIssuer,
        *,
        rotation: bool = True,
    ) -> None:
        self._refresh_tokens = refresh_token_repository
        self._users = user_repository
        self._sessions = session_issuer
        self._rotation = rotation

    def execute(
        self, refresh_token: str, device: DeviceInfo | None = None
    ) -> RefreshResult:
        now = self._sessions.now()

        # 1. Lookup por hash
        record = None
        if refresh_token:
            record = self._refresh_tokens.get_by_hash(
                self._sessions.hash_token(refresh_token)
            )
        if record is None:
            return RefreshResult(
                error=AuthError(
                    AuthErrorCode.REFRESH_TOKEN_INVALID, "Refresh token inválido."
                )
            )

        # 2. Expirado
        if record.is_expired(now):
            self._refresh_tokens.revoke_token(record.id)
            return RefreshResult(
                error=AuthError(
                    AuthErrorCode.REFRESH_TOKEN_EXPIRED, "Refresh token expirado."
                )
            )

        # 3. Revocado (reuso solo si fue rotado)
        if record.is_revoked:
            if self._rotation and record.replaced_by_id is not None:
                self._revoke_everything(record.user_id)
            return RefreshResult(error=_REVOKED)

        # 4. Usuario
        user = self._users.get_user_by_id(record.user_id)
        if user is None:
            return RefreshResult(
                error=AuthError(AuthErrorCode.USER_NOT_FOUND, "Usuario no encontrado.")
            )
        status_error = user_status_error(user)
        if status_error:
            return RefreshResult(error=status_error)

        # 5. Emitir
        if not self._rotation:
            record = self._refresh_tokens.update_token(
                replace(record, last_used_at=now)
            ) or record
            access_token, expires_in = self._sessions.issue_access(user)
            tokens = SessionTokens(
                access_token=access_token,
                expires_in=expires_in,
                refresh_token=refresh_token,
                refresh_expires_at=record.expires_at,
            )
            return RefreshResult(user=user, tokens=tokens, refresh_record=record)

        successor_id = uuid4()
        if not self._refresh_tokens.revoke_token(
            record.id, used_at=now, replaced_by_id=successor_id
        ):
            # R: otro request rotó este token entre la lectura y el revoke.
            self._revoke_everything(record.user_id)
            return RefreshResult(error=_REVOKED)

        tokens, new_record = self._sessions.issue(
            user, device or record.device, token_id=successor_id
        )
        return RefreshResult(user=user, tokens=tokens, refresh_record=new_record)

    def _revoke_everything(self, user_id: UUID) -> None:
        revoked = self._refresh_tokens.revoke_all_for_user(user_id)
        logger.warning(
            "Rotated refresh token reused; all sessions revoked",
            extra={"user_id": str(user_id), "revoked": revoked},
        )
