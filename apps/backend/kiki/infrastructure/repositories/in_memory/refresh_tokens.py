"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/refresh_tokens.py
============================================================
Class: InMemoryRefreshTokenRepository

Responsibilities:
  - Registros de refresh token indexados por hash (único).
  - Revocación compare-and-set, masiva por usuario y purga de expirados.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from threading import Lock
from typing import Dict
from uuid import UUID

from ....crosscutting.exceptions import UniqueViolationError
from ....domain.entities import RefreshToken


class InMemoryRefreshTokenRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._tokens: Dict[UUID, RefreshToken] = {}

    def create_token(self, token: RefreshToken) -> RefreshToken:
        with self._lock:
            if any(t.token_hash == token.token_hash for t in self._tokens.values()):
                raise UniqueViolationError(
                    "Refresh token hash already exists",
                    constraint="uq_refresh_tokens_token_hash",
                )
            self._tokens[token.id] = replace(token)
            return replace(token)

    def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        with self._lock:
            for token in self._tokens.values():
                if token.token_hash == token_hash:
                    return replace(token)
        return None

    def update_token(self, token: RefreshToken) -> RefreshToken | None:
        with self._lock:
            if token.id not in self._tokens:
                return None
            self._tokens[token.id] = replace(token)
            return replace(token)

    def revoke_token(
        self,
        token_id: UUID,
        *,
        used_at: datetime | None = None,
        replaced_by_id: UUID | None = None,
    ) -> bool:
        with self._lock:
            token = self._tokens.get(token_id)
            if token is None or token.is_revoked:
                return False
            self._tokens[token_id] = replace(
                token,
                is_revoked=True,
                last_used_at=used_at or token.last_used_at,
                replaced_by_id=replaced_by_id or token.replaced_by_id,
            )
            return True

    def revoke_all_for_user(self, user_id: UUID) -> int:
        with self._lock:
            revoked = 0
            for token_id, token in self._tokens.items():
                if token.user_id == user_id and not token.is_revoked:
                    self._tokens[token_id] = replace(token, is_revoked=True)
                    revoked += 1
            return revoked

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            doomed = [
                token_id
                for token_id, token in self._tokens.items()
                if token.is_expired(now)
            ]
            for token_id in doomed:
                del self._tokens[token_id]
            return len(doomed)
