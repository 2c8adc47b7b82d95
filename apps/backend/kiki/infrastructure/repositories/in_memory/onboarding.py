"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/onboarding.py
============================================================
Class: InMemoryTenantOnboardingRepository

Responsibilities:
  - Alta de cuenta + admin + asociación componiendo los repos en memoria.
  - Compensar (borrar lo ya creado) si un paso falla, para que el efecto
    sea todo o nada como en la transacción de Postgres.
============================================================
"""

from __future__ import annotations

from ....domain.entities import Account, Association, User
from .accounts import InMemoryAccountRepository
from .associations import InMemoryAssociationRepository
from .users import InMemoryUserRepository


class InMemoryTenantOnboardingRepository:
    def __init__(
        self,
        accounts: InMemoryAccountRepository,
        users: InMemoryUserRepository,
        associations: InMemoryAssociationRepository,
    ) -> None:
        self._accounts = accounts
        self._users = users
        self._associations = associations

    def onboard_account(
        self, account: Account, admin_user: User, association: Association
    ) -> Account:
        created = self._accounts.create_account(account)
        try:
            self._users.create_user(admin_user)
        except Exception:
            self._accounts.discard(created.id)
            raise
        try:
            self._associations.create_association(association)
        except Exception:
            self._users.discard(admin_user.id)
            self._accounts.discard(created.id)
            raise
        return created
