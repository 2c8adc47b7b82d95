"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/associations.py
============================================================
Class: InMemoryAssociationRepository

Responsibilities:
  - Asociaciones (Shared) en memoria.
  - Replicar el índice único parcial: una sola asociación viva
    (pending/active) por (user, account, role, division, student).
  - Listados newest first.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Dict
from uuid import UUID

from ....crosscutting.exceptions import UniqueViolationError
from ....domain.entities import Association, AssociationStatus
from ....domain.roles import RoleName

_LIVE = (AssociationStatus.PENDING, AssociationStatus.ACTIVE)


def _copy(association: Association) -> Association:
    return replace(association, permissions=list(association.permissions))


class InMemoryAssociationRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._associations: Dict[UUID, Association] = {}

    def _check_live_unique(self, association: Association) -> None:
        if association.status not in _LIVE:
            return
        key = association.scope_key()
        for other in self._associations.values():
            if other.id != association.id and other.status in _LIVE and other.scope_key() == key:
                raise UniqueViolationError(
                    "Live association already exists",
                    constraint="uq_associations_live_scope",
                )

    def _sorted(self, items: list[Association]) -> list[Association]:
        return sorted(items, key=lambda a: a.created_at, reverse=True)

    def create_association(self, association: Association) -> Association:
        with self._lock:
            self._check_live_unique(association)
            self._associations[association.id] = _copy(association)
            return _copy(association)

    def get_association(self, association_id: UUID) -> Association | None:
        with self._lock:
            association = self._associations.get(association_id)
            return _copy(association) if association else None

    def list_for_user(
        self, user_id: UUID, *, status: AssociationStatus | None = None
    ) -> list[Association]:
        with self._lock:
            items = [
                _copy(a)
                for a in self._associations.values()
                if a.user_id == user_id and (status is None or a.status == status)
            ]
        return self._sorted(items)

    def list_for_account(
        self, account_id: UUID, *, status: AssociationStatus | None = None
    ) -> list[Association]:
        with self._lock:
            items = [
                _copy(a)
                for a in self._associations.values()
                if a.account_id == account_id and (status is None or a.status == status)
            ]
        return self._sorted(items)

    def find_live_association(
        self,
        *,
        user_id: UUID,
        account_id: UUID,
        role_name: RoleName,
        division_id: UUID | None,
        student_id: UUID | None,
    ) -> Association | None:
        key = (user_id, account_id, role_name, division_id, student_id)
        with self._lock:
            for association in self._associations.values():
                if association.status in _LIVE and association.scope_key() == key:
                    return _copy(association)
        return None

    def update_association(self, association: Association) -> Association | None:
        with self._lock:
            if association.id not in self._associations:
                return None
            self._check_live_unique(association)
            self._associations[association.id] = _copy(association)
            return _copy(association)
