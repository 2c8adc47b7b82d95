"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/refresh_tokens.py
============================================================
Class: PostgresRefreshTokenRepository

Responsibilities:
  - Persistir refresh tokens (solo hash) con metadata de dispositivo.
  - Revocación compare-and-set, masiva por usuario y purga de expirados.
============================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import DeviceInfo, RefreshToken
from ._base import PostgresRepositoryBase

_COLUMNS = (
    "id, user_id, token_hash, expires_at, is_revoked, user_agent, ip_address, "
    "device_id, last_used_at, replaced_by_id, created_at"
)


def _row_to_token(row: tuple) -> RefreshToken:
    return RefreshToken(
        id=row[0],
        user_id=row[1],
        token_hash=row[2],
        expires_at=row[3],
        is_revoked=row[4],
        device=DeviceInfo(user_agent=row[5], ip_address=row[6], device_id=row[7]),
        last_used_at=row[8],
        replaced_by_id=row[9],
        created_at=row[10],
    )


class PostgresRefreshTokenRepository(PostgresRepositoryBase):
    _SQL_INSERT = f"""
        INSERT INTO refresh_tokens ({_COLUMNS})
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {_COLUMNS}
    """

    _SQL_GET_BY_HASH = f"SELECT {_COLUMNS} FROM refresh_tokens WHERE token_hash = %s"

    _SQL_UPDATE = f"""
        UPDATE refresh_tokens
        SET is_revoked = %s, last_used_at = %s, replaced_by_id = %s
        WHERE id = %s
        RETURNING {_COLUMNS}
    """

    _SQL_REVOKE = """
        UPDATE refresh_tokens
        SET is_revoked = TRUE,
            last_used_at = COALESCE(%s, last_used_at),
            replaced_by_id = COALESCE(%s, replaced_by_id)
        WHERE id = %s AND is_revoked = FALSE
        RETURNING id
    """

    _SQL_REVOKE_ALL = """
        UPDATE refresh_tokens
        SET is_revoked = TRUE
        WHERE user_id = %s AND is_revoked = FALSE
    """

    _SQL_DELETE_EXPIRED = """
        DELETE FROM refresh_tokens
        WHERE expires_at <= %s
    """

    def create_token(self, token: RefreshToken) -> RefreshToken:
        row = self._fetchone(
            query=self._SQL_INSERT,
            params=[
                token.id,
                token.user_id,
                token.token_hash,
                token.expires_at,
                token.is_revoked,
                token.device.user_agent,
                token.device.ip_address,
                token.device.device_id,
                token.last_used_at,
                token.replaced_by_id,
                token.created_at,
            ],
            context_msg="PostgresRefreshTokenRepository: create_token failed",
            extra={"user_id": str(token.user_id)},
        )
        if not row:
            raise DatabaseError("PostgresRefreshTokenRepository: create_token returned no row")
        return _row_to_token(row)

    def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        row = self._fetchone(
            query=self._SQL_GET_BY_HASH,
            params=[token_hash],
            context_msg="PostgresRefreshTokenRepository: get_by_hash failed",
            extra={},
        )
        return _row_to_token(row) if row else None

    def update_token(self, token: RefreshToken) -> RefreshToken | None:
        row = self._fetchone(
            query=self._SQL_UPDATE,
            params=[token.is_revoked, token.last_used_at, token.replaced_by_id, token.id],
            context_msg="PostgresRefreshTokenRepository: update_token failed",
            extra={"token_id": str(token.id)},
        )
        return _row_to_token(row) if row else None

    def revoke_token(
        self,
        token_id: UUID,
        *,
        used_at: datetime | None = None,
        replaced_by_id: UUID | None = None,
    ) -> bool:
        row = self._fetchone(
            query=self._SQL_REVOKE,
            params=[used_at, replaced_by_id, token_id],
            context_msg="PostgresRefreshTokenRepository: revoke_token failed",
            extra={"token_id": str(token_id)},
        )
        return row is not None

    def revoke_all_for_user(self, user_id: UUID) -> int:
        return self._execute(
            query=self._SQL_REVOKE_ALL,
            params=[user_id],
            context_msg="PostgresRefreshTokenRepository: revoke_all_for_user failed",
            extra={"user_id": str(user_id)},
        )

    def delete_expired(self, now: datetime) -> int:
        return self._execute(
            query=self._SQL_DELETE_EXPIRED,
            params=[now],
            context_msg="PostgresRefreshTokenRepository: delete_expired failed",
            extra={},
        )
