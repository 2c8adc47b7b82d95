"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/active_associations.py
============================================================
Class: PostgresActiveAssociationRepository

Responsibilities:
  - Puntero por usuario en `active_associations` (PK user_id).
  - Upsert atómico INSERT ... ON CONFLICT (user_id) DO UPDATE: dos
    escrituras concurrentes nunca dejan dos filas; gana la última.
============================================================
"""

from __future__ import annotations

from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import ActiveAssociation
from ....domain.roles import RoleName
from ._base import PostgresRepositoryBase

_COLUMNS = "user_id, association_id, account_id, role_name, division_id, student_id, activated_at"


def _row_to_active(row: tuple) -> ActiveAssociation:
    try:
        role_name = RoleName(row[3])
    except ValueError as exc:
        raise DatabaseError(f"Invalid active association role: {row[3]}") from exc

    return ActiveAssociation(
        user_id=row[0],
        association_id=row[1],
        account_id=row[2],
        role_name=role_name,
        division_id=row[4],
        student_id=row[5],
        activated_at=row[6],
    )


class PostgresActiveAssociationRepository(PostgresRepositoryBase):
    _SQL_GET = f"SELECT {_COLUMNS} FROM active_associations WHERE user_id = %s"

    _SQL_UPSERT = f"""
        INSERT INTO active_associations ({_COLUMNS})
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        ON CONFLICT (user_id) DO UPDATE SET
            association_id = EXCLUDED.association_id,
            account_id = EXCLUDED.account_id,
            role_name = EXCLUDED.role_name,
            division_id = EXCLUDED.division_id,
            student_id = EXCLUDED.student_id,
            activated_at = EXCLUDED.activated_at
        RETURNING {_COLUMNS}
    """

    _SQL_DELETE = "DELETE FROM active_associations WHERE user_id = %s"
    _SQL_DELETE_BY_ASSOCIATION = "DELETE FROM active_associations WHERE association_id = %s"
    _SQL_LIST_ALL = f"SELECT {_COLUMNS} FROM active_associations ORDER BY activated_at ASC"

    def get_active(self, user_id: UUID) -> ActiveAssociation | None:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[user_id],
            context_msg="PostgresActiveAssociationRepository: get_active failed",
            extra={"user_id": str(user_id)},
        )
        return _row_to_active(row) if row else None

    def upsert_active(self, active: ActiveAssociation) -> ActiveAssociation:
        row = self._fetchone(
            query=self._SQL_UPSERT,
            params=[
                active.user_id,
                active.association_id,
                active.account_id,
                active.role_name.value,
                active.division_id,
                active.student_id,
                active.activated_at,
            ],
            context_msg="PostgresActiveAssociationRepository: upsert_active failed",
            extra={"user_id": str(active.user_id)},
        )
        if not row:
            raise DatabaseError("PostgresActiveAssociationRepository: upsert returned no row")
        return _row_to_active(row)

    def delete_active(self, user_id: UUID) -> bool:
        deleted = self._execute(
            query=self._SQL_DELETE,
            params=[user_id],
            context_msg="PostgresActiveAssociationRepository: delete_active failed",
            extra={"user_id": str(user_id)},
        )
        return deleted > 0

    def delete_by_association(self, association_id: UUID) -> int:
        return self._execute(
            query=self._SQL_DELETE_BY_ASSOCIATION,
            params=[association_id],
            context_msg="PostgresActiveAssociationRepository: delete_by_association failed",
            extra={"association_id": str(association_id)},
        )

    def list_all_active(self) -> list[ActiveAssociation]:
        rows = self._fetchall(
            query=self._SQL_LIST_ALL,
            params=[],
            context_msg="PostgresActiveAssociationRepository: list_all_active failed",
            extra={},
        )
        return [_row_to_active(r) for r in rows]
