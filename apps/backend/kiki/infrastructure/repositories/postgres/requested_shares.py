"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/requested_shares.py
============================================================
Class: PostgresRequestedShareRepository

Responsibilities:
  - Persistir solicitudes de compartir (`requested_shares`).
  - El índice parcial uq_requested_shares_pending impide dos solicitudes
    pending para el mismo (email, account, student).
  - mark_completed es un UPDATE condicionado a status = 'pending'.
============================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import RequestedShare, RequestedShareStatus
from ....domain.roles import RoleName
from ._base import PostgresRepositoryBase

REQUESTED_SHARE_COLUMNS = (
    "id, requested_by, requested_email, account_id, role_name, division_id, "
    "student_id, status, completed_by, completed_at, created_at, updated_at"
)


def row_to_requested_share(row: tuple) -> RequestedShare:
    try:
        role_name = RoleName(row[4])
        status = RequestedShareStatus(row[7])
    except ValueError as exc:
        raise DatabaseError(f"Invalid requested share row in database: {row[0]}") from exc

    return RequestedShare(
        id=row[0],
        requested_by=row[1],
        requested_email=row[2],
        account_id=row[3],
        role_name=role_name,
        division_id=row[5],
        student_id=row[6],
        status=status,
        completed_by=row[8],
        completed_at=row[9],
        created_at=row[10],
        updated_at=row[11],
    )


class PostgresRequestedShareRepository(PostgresRepositoryBase):
    _SQL_INSERT = f"""
        INSERT INTO requested_shares ({REQUESTED_SHARE_COLUMNS})
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {REQUESTED_SHARE_COLUMNS}
    """

    _SQL_FIND_PENDING = f"""
        SELECT {REQUESTED_SHARE_COLUMNS}
        FROM requested_shares
        WHERE requested_email = %s
          AND account_id = %s
          AND student_id = %s
          AND status = 'pending'
        LIMIT 1
    """

    _SQL_LIST_PENDING_FOR_EMAIL = f"""
        SELECT {REQUESTED_SHARE_COLUMNS}
        FROM requested_shares
        WHERE requested_email = %s AND status = 'pending'
        ORDER BY created_at ASC, id ASC
    """

    _SQL_MARK_COMPLETED = """
        UPDATE requested_shares
        SET status = 'completed', completed_by = %s, completed_at = %s, updated_at = %s
        WHERE id = %s AND status = 'pending'
        RETURNING id
    """

    def create_request(self, request: RequestedShare) -> RequestedShare:
        row = self._fetchone(
            query=self._SQL_INSERT,
            params=[
                request.id,
                request.requested_by,
                request.requested_email,
                request.account_id,
                request.role_name.value,
                request.division_id,
                request.student_id,
                request.status.value,
                request.completed_by,
                request.completed_at,
                request.created_at,
                request.updated_at,
            ],
            context_msg="PostgresRequestedShareRepository: create_request failed",
            extra={"account_id": str(request.account_id)},
        )
        if not row:
            raise DatabaseError(
                "PostgresRequestedShareRepository: create_request returned no row"
            )
        return row_to_requested_share(row)

    def find_pending(
        self, *, email: str, account_id: UUID, student_id: UUID
    ) -> RequestedShare | None:
        row = self._fetchone(
            query=self._SQL_FIND_PENDING,
            params=[email, account_id, student_id],
            context_msg="PostgresRequestedShareRepository: find_pending failed",
            extra={"account_id": str(account_id)},
        )
        return row_to_requested_share(row) if row else None

    def list_pending_for_email(self, email: str) -> list[RequestedShare]:
        rows = self._fetchall(
            query=self._SQL_LIST_PENDING_FOR_EMAIL,
            params=[email],
            context_msg="PostgresRequestedShareRepository: list_pending_for_email failed",
            extra={},
        )
        return [row_to_requested_share(r) for r in rows]

    def mark_completed(
        self, request_id: UUID, *, completed_by: UUID, completed_at: datetime
    ) -> bool:
        row = self._fetchone(
            query=self._SQL_MARK_COMPLETED,
            params=[completed_by, completed_at, completed_at, request_id],
            context_msg="PostgresRequestedShareRepository: mark_completed failed",
            extra={"request_id": str(request_id)},
        )
        return row is not None
