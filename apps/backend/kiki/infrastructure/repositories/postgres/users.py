"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/users.py
============================================================
Class: PostgresUserRepository

Responsibilities:
  - Cargar usuarios para autenticación (por email / por id).
  - Crear / actualizar usuarios (fila completa).
  - Listado filtrado y paginado, created_at DESC.
  - Mapear filas -> User validando rol y estado (drift -> DatabaseError).

Constraints:
  - El email llega normalizado (lower) desde los use cases.
  - uq_users_email protege la unicidad (UniqueViolationError).
============================================================
"""

from __future__ import annotations

from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import User, UserStatus
from ....domain.roles import RoleName
from ._base import PostgresRepositoryBase

USER_COLUMNS = (
    "id, name, email, password_hash, role_name, status, account_id, dni, phone, "
    "address, birth_date, avatar_url, is_first_login, last_login_at, "
    "password_changed_at, created_at, updated_at"
)

SQL_INSERT_USER = f"""
    INSERT INTO users ({USER_COLUMNS})
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
    RETURNING {USER_COLUMNS}
"""


def user_params(user: User) -> list[object]:
    return [
        user.id,
        user.name,
        user.email,
        user.password_hash,
        user.role_name.value,
        user.status.value,
        user.account_id,
        user.dni,
        user.phone,
        user.address,
        user.birth_date,
        user.avatar_url,
        user.is_first_login,
        user.last_login_at,
        user.password_changed_at,
        user.created_at,
        user.updated_at,
    ]


def row_to_user(row: tuple) -> User:
    try:
        role_name = RoleName(row[4])
        status = UserStatus(row[5])
    except ValueError as exc:
        raise DatabaseError(f"Invalid user role/status in database: {row[4]}/{row[5]}") from exc

    return User(
        id=row[0],
        name=row[1],
        email=row[2],
        password_hash=row[3],
        role_name=role_name,
        status=status,
        account_id=row[6],
        dni=row[7],
        phone=row[8],
        address=row[9],
        birth_date=row[10],
        avatar_url=row[11],
        is_first_login=row[12],
        last_login_at=row[13],
        password_changed_at=row[14],
        created_at=row[15],
        updated_at=row[16],
    )


class PostgresUserRepository(PostgresRepositoryBase):
    _SQL_GET_BY_ID = f"SELECT {USER_COLUMNS} FROM users WHERE id = %s"
    _SQL_GET_BY_EMAIL = f"SELECT {USER_COLUMNS} FROM users WHERE email = %s"

    _SQL_LIST = f"""
        SELECT {USER_COLUMNS}, COUNT(*) OVER() AS total
        FROM users
        WHERE (%s::uuid IS NULL OR account_id = %s::uuid)
          AND (%s::text IS NULL OR role_name = %s::text)
          AND (%s::text IS NULL OR status = %s::text)
        ORDER BY created_at DESC, id DESC
        LIMIT %s OFFSET %s
    """

    _SQL_UPDATE = f"""
        UPDATE users
        SET name = %s, email = %s, password_hash = %s, role_name = %s, status = %s,
            account_id = %s, dni = %s, phone = %s, address = %s, birth_date = %s,
            avatar_url = %s, is_first_login = %s, last_login_at = %s,
            password_changed_at = %s, updated_at = %s
        WHERE id = %s
        RETURNING {USER_COLUMNS}
    """

    def create_user(self, user: User) -> User:
        row = self._fetchone(
            query=SQL_INSERT_USER,
            params=user_params(user),
            context_msg="PostgresUserRepository: create_user failed",
            extra={"user_id": str(user.id)},
        )
        if not row:
            raise DatabaseError("PostgresUserRepository: create_user returned no row")
        return row_to_user(row)

    def get_user_by_id(self, user_id: UUID) -> User | None:
        row = self._fetchone(
            query=self._SQL_GET_BY_ID,
            params=[user_id],
            context_msg="PostgresUserRepository: get_user_by_id failed",
            extra={"user_id": str(user_id)},
        )
        return row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> User | None:
        row = self._fetchone(
            query=self._SQL_GET_BY_EMAIL,
            params=[email],
            context_msg="PostgresUserRepository: get_user_by_email failed",
            extra={},
        )
        return row_to_user(row) if row else None

    def list_users(
        self,
        *,
        account_id: UUID | None = None,
        role_name: RoleName | None = None,
        status: UserStatus | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[User], int]:
        role_value = role_name.value if role_name else None
        status_value = status.value if status else None
        rows = self._fetchall(
            query=self._SQL_LIST,
            params=[
                account_id,
                account_id,
                role_value,
                role_value,
                status_value,
                status_value,
                limit,
                offset,
            ],
            context_msg="PostgresUserRepository: list_users failed",
            extra={"limit": limit, "offset": offset},
        )
        total = int(rows[0][-1]) if rows else 0
        return [row_to_user(r) for r in rows], total

    def update_user(self, user: User) -> User | None:
        params = user_params(user)
        # R: SET usa todas las columnas salvo id y created_at; id va al final.
        row = self._fetchone(
            query=self._SQL_UPDATE,
            params=[*params[1:15], user.updated_at, user.id],
            context_msg="PostgresUserRepository: update_user failed",
            extra={"user_id": str(user.id)},
        )
        return row_to_user(row) if row else None
