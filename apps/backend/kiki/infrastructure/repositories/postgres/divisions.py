"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/divisions.py
============================================================
Class: PostgresDivisionRepository

Responsibilities:
  - CRUD de `divisions` (member_ids como uuid[]).
  - Unicidad (account_id, lower(name)) vía índice uq_divisions_account_name.
============================================================
"""

from __future__ import annotations

from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import Division
from ._base import PostgresRepositoryBase

_COLUMNS = (
    "id, account_id, name, description, member_ids, created_by, is_active, "
    "created_at, updated_at"
)


def _row_to_division(row: tuple) -> Division:
    return Division(
        id=row[0],
        account_id=row[1],
        name=row[2],
        description=row[3],
        member_ids=list(row[4] or []),
        created_by=row[5],
        is_active=row[6],
        created_at=row[7],
        updated_at=row[8],
    )


class PostgresDivisionRepository(PostgresRepositoryBase):
    _SQL_INSERT = f"""
        INSERT INTO divisions (id, account_id, name, description, member_ids, created_by,
                               is_active, created_at, updated_at)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {_COLUMNS}
    """

    _SQL_GET = f"SELECT {_COLUMNS} FROM divisions WHERE id = %s"

    _SQL_GET_BY_NAME = f"""
        SELECT {_COLUMNS}
        FROM divisions
        WHERE account_id = %s AND lower(name) = lower(%s)
    """

    _SQL_LIST = f"""
        SELECT {_COLUMNS}, COUNT(*) OVER() AS total
        FROM divisions
        WHERE account_id = %s
          AND (%s::boolean IS NULL OR is_active = %s::boolean)
          AND (%s::text IS NULL OR name ILIKE %s)
        ORDER BY lower(name) ASC, id ASC
        LIMIT %s OFFSET %s
    """

    _SQL_UPDATE = f"""
        UPDATE divisions
        SET name = %s, description = %s, member_ids = %s, is_active = %s, updated_at = %s
        WHERE id = %s
        RETURNING {_COLUMNS}
    """

    def create_division(self, division: Division) -> Division:
        row = self._fetchone(
            query=self._SQL_INSERT,
            params=[
                division.id,
                division.account_id,
                division.name,
                division.description,
                list(division.member_ids),
                division.created_by,
                division.is_active,
                division.created_at,
                division.updated_at,
            ],
            context_msg="PostgresDivisionRepository: create_division failed",
            extra={"account_id": str(division.account_id)},
        )
        if not row:
            raise DatabaseError("PostgresDivisionRepository: create_division returned no row")
        return _row_to_division(row)

    def get_division(self, division_id: UUID) -> Division | None:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[division_id],
            context_msg="PostgresDivisionRepository: get_division failed",
            extra={"division_id": str(division_id)},
        )
        return _row_to_division(row) if row else None

    def get_division_by_name(self, account_id: UUID, name: str) -> Division | None:
        row = self._fetchone(
            query=self._SQL_GET_BY_NAME,
            params=[account_id, name.strip()],
            context_msg="PostgresDivisionRepository: get_division_by_name failed",
            extra={"account_id": str(account_id)},
        )
        return _row_to_division(row) if row else None

    def list_divisions(
        self,
        account_id: UUID,
        *,
        is_active: bool | None = None,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Division], int]:
        needle = (search or "").strip()
        like = f"%{needle}%" if needle else None
        rows = self._fetchall(
            query=self._SQL_LIST,
            params=[account_id, is_active, is_active, like, like, limit, offset],
            context_msg="PostgresDivisionRepository: list_divisions failed",
            extra={"account_id": str(account_id)},
        )
        total = int(rows[0][-1]) if rows else 0
        return [_row_to_division(r) for r in rows], total

    def update_division(self, division: Division) -> Division | None:
        row = self._fetchone(
            query=self._SQL_UPDATE,
            params=[
                division.name,
                division.description,
                list(division.member_ids),
                division.is_active,
                division.updated_at,
                division.id,
            ],
            context_msg="PostgresDivisionRepository: update_division failed",
            extra={"division_id": str(division.id)},
        )
        return _row_to_division(row) if row else None
