"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/onboarding.py
============================================================
Class: PostgresTenantOnboardingRepository

Responsibilities:
  - Insertar cuenta + usuario administrador + asociación active en una
    única transacción (todo o nada).

Collaborators:
  - SQL/mappers de accounts, users y associations.
============================================================
"""

from __future__ import annotations

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import Account, Association, User
from ._base import PostgresRepositoryBase, wrap_db_error
from .accounts import SQL_INSERT_ACCOUNT, account_params, row_to_account
from .associations import SQL_INSERT_ASSOCIATION, association_params
from .users import SQL_INSERT_USER, user_params


class PostgresTenantOnboardingRepository(PostgresRepositoryBase):
    def onboard_account(
        self, account: Account, admin_user: User, association: Association
    ) -> Account:
        extra = {"account_id": str(account.id), "admin_user_id": str(admin_user.id)}
        try:
            with self._get_pool().connection() as conn:
                with conn.transaction():
                    row = conn.execute(SQL_INSERT_ACCOUNT, account_params(account)).fetchone()
                    conn.execute(SQL_INSERT_USER, user_params(admin_user))
                    conn.execute(SQL_INSERT_ASSOCIATION, association_params(association))
        except Exception as exc:
            raise wrap_db_error(
                exc, "PostgresTenantOnboardingRepository: onboard_account failed", extra
            ) from exc

        if not row:
            raise DatabaseError("PostgresTenantOnboardingRepository: no account row returned")
        return row_to_account(row)
