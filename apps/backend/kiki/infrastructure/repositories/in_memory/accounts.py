"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/accounts.py
============================================================
Class: InMemoryAccountRepository

Responsibilities:
  - Cuentas (tenants) en memoria para tests / local.
  - Filtros case-insensitive por substring y paginado (items, total).
  - Orden: created_at DESC (más nuevas primero).
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Dict
from uuid import UUID

from ....domain.entities import Account


def _contains(value: str, needle: str | None) -> bool:
    return not needle or needle.strip().lower() in value.lower()


class InMemoryAccountRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._accounts: Dict[UUID, Account] = {}

    def create_account(self, account: Account) -> Account:
        with self._lock:
            self._accounts[account.id] = replace(account)
            return replace(account)

    def get_account(self, account_id: UUID) -> Account | None:
        with self._lock:
            account = self._accounts.get(account_id)
            return replace(account) if account else None

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
        with self._lock:
            matches = [
                replace(account)
                for account in self._accounts.values()
                if (include_inactive or account.is_active)
                and (account_ids is None or account.id in account_ids)
                and _contains(account.name, name)
                and _contains(account.legal_name, legal_name)
            ]
        matches.sort(key=lambda a: a.created_at, reverse=True)
        return matches[offset : offset + limit], len(matches)

    def update_account(self, account: Account) -> Account | None:
        with self._lock:
            if account.id not in self._accounts:
                return None
            self._accounts[account.id] = replace(account)
            return replace(account)

    def discard(self, account_id: UUID) -> None:
        """Compensación del onboarding en memoria."""
        with self._lock:
            self._accounts.pop(account_id, None)
