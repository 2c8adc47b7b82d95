"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/active_associations.py
============================================================
Class: InMemoryActiveAssociationRepository

Responsibilities:
  - Un puntero por usuario (dict keyed por user_id).
  - Upsert atómico bajo Lock: last write wins.
============================================================
"""

from __future__ import annotations

from threading import Lock
from typing import Dict
from uuid import UUID

from ....domain.entities import ActiveAssociation


class InMemoryActiveAssociationRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._active: Dict[UUID, ActiveAssociation] = {}

    def get_active(self, user_id: UUID) -> ActiveAssociation | None:
        with self._lock:
            return self._active.get(user_id)

    def upsert_active(self, active: ActiveAssociation) -> ActiveAssociation:
        with self._lock:
            self._active[active.user_id] = active
            return active

    def delete_active(self, user_id: UUID) -> bool:
        with self._lock:
            return self._active.pop(user_id, None) is not None

    def delete_by_association(self, association_id: UUID) -> int:
        with self._lock:
            stale = [
                user_id
                for user_id, active in self._active.items()
                if active.association_id == association_id
            ]
            for user_id in stale:
                del self._active[user_id]
            return len(stale)

    def list_all_active(self) -> list[ActiveAssociation]:
        with self._lock:
            return list(self._active.values())
