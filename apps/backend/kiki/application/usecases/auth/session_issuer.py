"""
===============================================================================
SESSION ISSUER
===============================================================================

Emite el par access + refresh para un usuario y persiste el registro del
refresh token (solo su hash).

Colaboradores (inyectados por el container):
  - access_token_issuer: User -> (jwt, expires_in)
  - token_generator: () -> valor opaco
  - token_hasher: valor -> sha256 hex
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

from ....domain.entities import DeviceInfo, RefreshToken, User
from ....domain.repositories import RefreshTokenRepository
from .auth_results import SessionTokens


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionIssuer:
    def __init__(
        self,
        refresh_token_repository: RefreshTokenRepository,
        *,
        access_token_issuer: Callable[[User], tuple[str, int]],
        token_generator: Callable[[], str],
        token_hasher: Callable[[str], str],
        refresh_ttl: timedelta,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._refresh_tokens = refresh_token_repository
        self._issue_access = access_token_issuer
        self._generate = token_generator
        self._hash = token_hasher
        self._refresh_ttl = refresh_ttl
        self._clock = clock

    def hash_token(self, value: str) -> str:
        return self._hash(value)

    def now(self) -> datetime:
        return self._clock()

    def issue_access(self, user: User) -> tuple[str, int]:
        return self._issue_access(user)

    def issue(
        self,
        user: User,
        device: DeviceInfo | None = None,
        *,
        token_id: UUID | None = None,
    ) -> tuple[SessionTokens, RefreshToken]:
        """
        Nuevo access token + nuevo refresh token persistido.

        token_id reserva el id del registro (la rotación lo encadena antes
        de crearlo).
        """
        access_token, expires_in = self._issue_access(user)

        value = self._generate()
        record = RefreshToken(
            user_id=user.id,
            token_hash=self._hash(value),
            expires_at=self._clock() + self._refresh_ttl,
            device=device or DeviceInfo(),
        )
        if token_id is not None:
            record.id = token_id
        record = self._refresh_tokens.create_token(record)
        tokens = SessionTokens(
            access_token=access_token,
            expires_in=expires_in,
            refresh_token=value,
            refresh_expires_at=record.expires_at,
        )
        return tokens, record
