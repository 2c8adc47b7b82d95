"""
===============================================================================
USE CASES: Logout + Purge Refresh Tokens
===============================================================================

Logout:
  - Revoca el refresh token presentado (solo si es del usuario).
  - all_sessions=True revoca todos los tokens del usuario y borra su
    asociación activa.
  - Idempotente: un token desconocido o ya revocado no es un error.

Purge:
  - Borra los refresh tokens expirados o revocados (startup / CLI).
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable
from uuid import UUID

from ....crosscutting.logger import logger
from ....domain.repositories import (
    ActiveAssociationRepository,
    RefreshTokenRepository,
)
from .auth_results import LogoutResult


class LogoutUseCase:
    def __init__(
        self,
        refresh_token_repository: RefreshTokenRepository,
        active_association_repository: ActiveAssociationRepository,
        *,
        token_hasher: Callable[[str], str],
    ) -> None:
        self._refresh_tokens = refresh_token_repository
        self._active = active_association_repository
        self._hash = token_hasher

    def execute(
        self,
        user_id: UUID,
        refresh_token: str | None = None,
        *,
        all_sessions: bool = False,
    ) -> LogoutResult:
        if all_sessions:
            revoked = self._refresh_tokens.revoke_all_for_user(user_id)
            self._active.delete_active(user_id)
            logger.info(
                "User logged out from all sessions",
                extra={"user_id": str(user_id), "revoked": revoked},
            )
            return LogoutResult(revoked=revoked)

        if not refresh_token:
            return LogoutResult(revoked=0)

        record = self._refresh_tokens.get_by_hash(self._hash(refresh_token))
        if record is None or record.user_id != user_id or record.is_revoked:
            return LogoutResult(revoked=0)

        revoked = self._refresh_tokens.revoke_token(record.id)
        return LogoutResult(revoked=1 if revoked else 0)


class PurgeRefreshTokensUseCase:
    def __init__(
        self,
        refresh_token_repository: RefreshTokenRepository,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._refresh_tokens = refresh_token_repository
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def execute(self) -> int:
        deleted = self._refresh_tokens.delete_expired(self._clock())
        logger.info("Refresh tokens purged", extra={"deleted": deleted})
        return deleted
