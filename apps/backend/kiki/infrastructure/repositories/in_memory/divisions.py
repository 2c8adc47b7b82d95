"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/divisions.py
============================================================
Class: InMemoryDivisionRepository

Responsibilities:
  - Divisiones en memoria.
  - Replicar el índice único (account_id, lower(name)).

Constraints:
  - Copias defensivas de member_ids.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Dict
from uuid import UUID

from ....crosscutting.exceptions import UniqueViolationError
from ....domain.entities import Division


def _copy(division: Division) -> Division:
    return replace(division, member_ids=list(division.member_ids))


class InMemoryDivisionRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._divisions: Dict[UUID, Division] = {}

    def _name_taken(self, division: Division) -> bool:
        wanted = division.name.strip().lower()
        return any(
            other.id != division.id
            and other.account_id == division.account_id
            and other.name.strip().lower() == wanted
            for other in self._divisions.values()
        )

    def create_division(self, division: Division) -> Division:
        with self._lock:
            if self._name_taken(division):
                raise UniqueViolationError(
                    "Division name already exists in account",
                    constraint="uq_divisions_account_name",
                )
            self._divisions[division.id] = _copy(division)
            return _copy(division)

    def get_division(self, division_id: UUID) -> Division | None:
        with self._lock:
            division = self._divisions.get(division_id)
            return _copy(division) if division else None

    def get_division_by_name(self, account_id: UUID, name: str) -> Division | None:
        wanted = name.strip().lower()
        with self._lock:
            for division in self._divisions.values():
                if division.account_id == account_id and division.name.lower() == wanted:
                    return _copy(division)
        return None

    def list_divisions(
        self,
        account_id: UUID,
        *,
        is_active: bool | None = None,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Division], int]:
        needle = (search or "").strip().lower()
        with self._lock:
            matches = [
                _copy(d)
                for d in self._divisions.values()
                if d.account_id == account_id
                and (is_active is None or d.is_active == is_active)
                and (not needle or needle in d.name.lower())
            ]
        matches.sort(key=lambda d: d.name.lower())
        return matches[offset : offset + limit], len(matches)

    def update_division(self, division: Division) -> Division | None:
        with self._lock:
            if division.id not in self._divisions:
                return None
            if self._name_taken(division):
                raise UniqueViolationError(
                    "Division name already exists in account",
                    constraint="uq_divisions_account_name",
                )
            self._divisions[division.id] = _copy(division)
            return _copy(division)
