"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/accounts.py
============================================================
Class: PostgresAccountRepository

Responsibilities:
  - CRUD de la tabla `accounts`.
  - Listado con filtros ILIKE + COUNT(*) OVER() para el total paginado.
============================================================
"""

from __future__ import annotations

from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import Account
from ._base import PostgresRepositoryBase

ACCOUNT_COLUMNS = (
    "id, name, legal_name, admin_email, address, logo_url, admin_user_id, "
    "is_active, created_at, updated_at"
)

SQL_INSERT_ACCOUNT = f"""
    INSERT INTO accounts (id, name, legal_name, admin_email, address, logo_url,
                          admin_user_id, is_active, created_at, updated_at)
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
    RETURNING {ACCOUNT_COLUMNS}
"""


def account_params(account: Account) -> list[object]:
    return [
        account.id,
        account.name,
        account.legal_name,
        account.admin_email,
        account.address,
        account.logo_url,
        account.admin_user_id,
        account.is_active,
        account.created_at,
        account.updated_at,
    ]


def row_to_account(row: tuple) -> Account:
    return Account(
        id=row[0],
        name=row[1],
        legal_name=row[2],
        admin_email=row[3],
        address=row[4],
        logo_url=row[5],
        admin_user_id=row[6],
        is_active=row[7],
        created_at=row[8],
        updated_at=row[9],
    )


def _like(value: str | None) -> str | None:
    value = (value or "").strip()
    return f"%{value}%" if value else None


class PostgresAccountRepository(PostgresRepositoryBase):
    _SQL_GET = f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE id = %s"

    _SQL_LIST = f"""
        SELECT {ACCOUNT_COLUMNS}, COUNT(*) OVER() AS total
        FROM accounts
        WHERE (%s OR is_active)
          AND (%s::text IS NULL OR name ILIKE %s)
          AND (%s::text IS NULL OR legal_name ILIKE %s)
          AND (%s::uuid[] IS NULL OR id = ANY(%s::uuid[]))
        ORDER BY created_at DESC, id DESC
        LIMIT %s OFFSET %s
    """

    _SQL_UPDATE = f"""
        UPDATE accounts
        SET name = %s, legal_name = %s, admin_email = %s, address = %s,
            logo_url = %s, admin_user_id = %s, is_active = %s, updated_at = %s
        WHERE id = %s
        RETURNING {ACCOUNT_COLUMNS}
    """

    def create_account(self, account: Account) -> Account:
        row = self._fetchone(
            query=SQL_INSERT_ACCOUNT,
            params=account_params(account),
            context_msg="PostgresAccountRepository: create_account failed",
            extra={"account_id": str(account.id)},
        )
        if not row:
            raise DatabaseError("PostgresAccountRepository: create_account returned no row")
        return row_to_account(row)

    def get_account(self, account_id: UUID) -> Account | None:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[account_id],
            context_msg="PostgresAccountRepository: get_account failed",
            extra={"account_id": str(account_id)},
        )
        return row_to_account(row) if row else None

    def list_accounts(
        self,
        *,
        name: str | None = None,
        legal_name: str | None = None,
        include_inactive: bool = False,
        account_ids: list[UUID] | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Account], int]:
        name_like = _like(name)
        legal_like = _like(legal_name)
        rows = self._fetchall(
            query=self._SQL_LIST,
            params=[
                include_inactive,
                name_like,
                name_like,
                legal_like,
                legal_like,
                account_ids,
                account_ids,
                limit,
                offset,
            ],
            context_msg="PostgresAccountRepository: list_accounts failed",
            extra={"limit": limit, "offset": offset},
        )
        total = int(rows[0][-1]) if rows else 0
        return [row_to_account(r) for r in rows], total

    def update_account(self, account: Account) -> Account | None:
        row = self._fetchone(
            query=self._SQL_UPDATE,
            params=[
                account.name,
                account.legal_name,
                account.admin_email,
                account.address,
                account.logo_url,
                account.admin_user_id,
                account.is_active,
                account.updated_at,
                account.id,
            ],
            context_msg="PostgresAccountRepository: update_account failed",
            extra={"account_id": str(account.id)},
        )
        return row_to_account(row) if row else None
