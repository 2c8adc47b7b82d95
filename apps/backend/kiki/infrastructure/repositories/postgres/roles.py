"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/roles.py
============================================================
Class: PostgresRoleRepository

Responsibilities:
  - Catálogo de roles en la tabla `roles` (grilla en JSONB).
  - Upsert por nombre (ON CONFLICT (name)).
  - Mapear filas -> Role validando nombre y grilla.
============================================================
"""

from __future__ import annotations

from psycopg.types.json import Jsonb

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import Role
from ....domain.permissions import parse_permissions, serialize_permissions
from ....domain.roles import RoleName
from ._base import PostgresRepositoryBase

_COLUMNS = (
    "id, name, description, level, permissions, is_active, is_system, "
    "created_at, updated_at"
)


def _row_to_role(row: tuple) -> Role:
    try:
        name = RoleName(row[1])
        permissions = parse_permissions(row[4] or [])
    except ValueError as exc:
        raise DatabaseError(f"Invalid role row in database: {row[1]}") from exc

    return Role(
        id=row[0],
        name=name,
        description=row[2],
        level=row[3],
        permissions=permissions,
        is_active=row[5],
        is_system=row[6],
        created_at=row[7],
        updated_at=row[8],
    )


class PostgresRoleRepository(PostgresRepositoryBase):
    _SQL_LIST = f"""
        SELECT {_COLUMNS}
        FROM roles
        WHERE (%s OR is_active)
        ORDER BY level ASC, name ASC
    """

    _SQL_GET = f"SELECT {_COLUMNS} FROM roles WHERE name = %s"

    _SQL_UPSERT = f"""
        INSERT INTO roles (id, name, description, level, permissions, is_active, is_system,
                           created_at, updated_at)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
        ON CONFLICT (name) DO UPDATE SET
            description = EXCLUDED.description,
            level = EXCLUDED.level,
            permissions = EXCLUDED.permissions,
            is_active = EXCLUDED.is_active,
            updated_at = EXCLUDED.updated_at
        RETURNING {_COLUMNS}
    """

    _SQL_COUNT = "SELECT COUNT(*) FROM roles"

    def list_roles(self, *, include_inactive: bool = False) -> list[Role]:
        rows = self._fetchall(
            query=self._SQL_LIST,
            params=[include_inactive],
            context_msg="PostgresRoleRepository: list_roles failed",
            extra={},
        )
        return [_row_to_role(r) for r in rows]

    def get_role(self, name: RoleName) -> Role | None:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[name.value],
            context_msg="PostgresRoleRepository: get_role failed",
            extra={"role": name.value},
        )
        return _row_to_role(row) if row else None

    def save_role(self, role: Role) -> Role:
        row = self._fetchone(
            query=self._SQL_UPSERT,
            params=[
                role.id,
                role.name.value,
                role.description,
                role.level,
                Jsonb(serialize_permissions(role.permissions)),
                role.is_active,
                role.is_system,
                role.created_at,
                role.updated_at,
            ],
            context_msg="PostgresRoleRepository: save_role failed",
            extra={"role": role.name.value},
        )
        if not row:
            raise DatabaseError("PostgresRoleRepository: save_role returned no row")
        return _row_to_role(row)

    def count_roles(self) -> int:
        row = self._fetchone(
            query=self._SQL_COUNT,
            params=[],
            context_msg="PostgresRoleRepository: count_roles failed",
            extra={},
        )
        return int(row[0]) if row else 0
