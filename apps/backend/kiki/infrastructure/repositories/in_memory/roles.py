"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/roles.py
============================================================
Class: InMemoryRoleRepository

Responsibilities:
  - Catálogo de roles en memoria, keyed por nombre (único).
  - Listar ordenado por nivel (1 primero).

Constraints:
  - Thread-safe (Lock) y copias defensivas (las grillas son listas).
============================================================
"""

from __future__ import annotations

import copy
from threading import Lock
from typing import Dict

from ....domain.entities import Role
from ....domain.roles import RoleName


class InMemoryRoleRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._roles: Dict[RoleName, Role] = {}

    def list_roles(self, *, include_inactive: bool = False) -> list[Role]:
        with self._lock:
            roles = [
                copy.deepcopy(role)
                for role in self._roles.values()
                if include_inactive or role.is_active
            ]
        return sorted(roles, key=lambda role: role.level)

    def get_role(self, name: RoleName) -> Role | None:
        with self._lock:
            role = self._roles.get(name)
            return copy.deepcopy(role) if role else None

    def save_role(self, role: Role) -> Role:
        with self._lock:
            existing = self._roles.get(role.name)
            stored = copy.deepcopy(role)
            if existing is not None:
                # R: upsert por nombre conserva la identidad original.
                stored.id = existing.id
                stored.created_at = existing.created_at
            self._roles[role.name] = stored
            return copy.deepcopy(stored)

    def count_roles(self) -> int:
        with self._lock:
            return len(self._roles)
