"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/associations.py
============================================================
Class: PostgresAssociationRepository

Responsibilities:
  - CRUD de `associations` (Shared); override de grilla en JSONB.
  - find_live_association compara scope con IS NOT DISTINCT FROM (NULL-safe).
  - El índice parcial uq_associations_live_scope impide dos asociaciones
    vivas con el mismo scope.
============================================================
"""

from __future__ import annotations

from uuid import UUID

from psycopg.types.json import Jsonb

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import Association, AssociationStatus
from ....domain.permissions import parse_permissions, serialize_permissions
from ....domain.roles import RoleName
from ._base import PostgresRepositoryBase

ASSOCIATION_COLUMNS = (
    "id, user_id, account_id, role_name, division_id, student_id, status, "
    "permissions, created_by, created_at, updated_at"
)

SQL_INSERT_ASSOCIATION = f"""
    INSERT INTO associations ({ASSOCIATION_COLUMNS})
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
    RETURNING {ASSOCIATION_COLUMNS}
"""


def association_params(association: Association) -> list[object]:
    return [
        association.id,
        association.user_id,
        association.account_id,
        association.role_name.value,
        association.division_id,
        association.student_id,
        association.status.value,
        Jsonb(serialize_permissions(association.permissions)),
        association.created_by,
        association.created_at,
        association.updated_at,
    ]


def row_to_association(row: tuple) -> Association:
    try:
        role_name = RoleName(row[3])
        status = AssociationStatus(row[6])
        permissions = parse_permissions(row[7] or [])
    except ValueError as exc:
        raise DatabaseError(f"Invalid association row in database: {row[0]}") from exc

    return Association(
        id=row[0],
        user_id=row[1],
        account_id=row[2],
        role_name=role_name,
        division_id=row[4],
        student_id=row[5],
        status=status,
        permissions=permissions,
        created_by=row[8],
        created_at=row[9],
        updated_at=row[10],
    )


class PostgresAssociationRepository(PostgresRepositoryBase):
    _SQL_GET = f"SELECT {ASSOCIATION_COLUMNS} FROM associations WHERE id = %s"

    _SQL_LIST_FOR_USER = f"""
        SELECT {ASSOCIATION_COLUMNS}
        FROM associations
        WHERE user_id = %s AND (%s::text IS NULL OR status = %s::text)
        ORDER BY created_at DESC, id DESC
    """

    _SQL_LIST_FOR_ACCOUNT = f"""
        SELECT {ASSOCIATION_COLUMNS}
        FROM associations
        WHERE account_id = %s AND (%s::text IS NULL OR status = %s::text)
        ORDER BY created_at DESC, id DESC
    """

    _SQL_FIND_LIVE = f"""
        SELECT {ASSOCIATION_COLUMNS}
        FROM associations
        WHERE user_id = %s
          AND account_id = %s
          AND role_name = %s
          AND division_id IS NOT DISTINCT FROM %s::uuid
          AND student_id IS NOT DISTINCT FROM %s::uuid
          AND status IN ('pending', 'active')
        LIMIT 1
    """

    _SQL_UPDATE = f"""
        UPDATE associations
        SET role_name = %s, division_id = %s, student_id = %s, status = %s,
            permissions = %s, updated_at = %s
        WHERE id = %s
        RETURNING {ASSOCIATION_COLUMNS}
    """

    def create_association(self, association: Association) -> Association:
        row = self._fetchone(
            query=SQL_INSERT_ASSOCIATION,
            params=association_params(association),
            context_msg="PostgresAssociationRepository: create_association failed",
            extra={"user_id": str(association.user_id)},
        )
        if not row:
            raise DatabaseError(
                "PostgresAssociationRepository: create_association returned no row"
            )
        return row_to_association(row)

    def get_association(self, association_id: UUID) -> Association | None:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[association_id],
            context_msg="PostgresAssociationRepository: get_association failed",
            extra={"association_id": str(association_id)},
        )
        return row_to_association(row) if row else None

    def list_for_user(
        self, user_id: UUID, *, status: AssociationStatus | None = None
    ) -> list[Association]:
        status_value = status.value if status else None
        rows = self._fetchall(
            query=self._SQL_LIST_FOR_USER,
            params=[user_id, status_value, status_value],
            context_msg="PostgresAssociationRepository: list_for_user failed",
            extra={"user_id": str(user_id)},
        )
        return [row_to_association(r) for r in rows]

    def list_for_account(
        self, account_id: UUID, *, status: AssociationStatus | None = None
    ) -> list[Association]:
        status_value = status.value if status else None
        rows = self._fetchall(
            query=self._SQL_LIST_FOR_ACCOUNT,
            params=[account_id, status_value, status_value],
            context_msg="PostgresAssociationRepository: list_for_account failed",
            extra={"account_id": str(account_id)},
        )
        return [row_to_association(r) for r in rows]

    def find_live_association(
        self,
        *,
        user_id: UUID,
        account_id: UUID,
        role_name: RoleName,
        division_id: UUID | None,
        student_id: UUID | None,
    ) -> Association | None:
        row = self._fetchone(
            query=self._SQL_FIND_LIVE,
            params=[user_id, account_id, role_name.value, division_id, student_id],
            context_msg="PostgresAssociationRepository: find_live_association failed",
            extra={"user_id": str(user_id), "account_id": str(account_id)},
        )
        return row_to_association(row) if row else None

    def update_association(self, association: Association) -> Association | None:
        row = self._fetchone(
            query=self._SQL_UPDATE,
            params=[
                association.role_name.value,
                association.division_id,
                association.student_id,
                association.status.value,
                Jsonb(serialize_permissions(association.permissions)),
                association.updated_at,
                association.id,
            ],
            context_msg="PostgresAssociationRepository: update_association failed",
            extra={"association_id": str(association.id)},
        )
        return row_to_association(row) if row else None
