"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/users.py
============================================================
Class: InMemoryUserRepository

Responsibilities:
  - Usuarios en memoria (User es inmutable: no requiere copias).
  - Replicar el índice único de email.
  - Listado filtrado y paginado, created_at DESC.
============================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Dict
from uuid import UUID

from ....crosscutting.exceptions import UniqueViolationError
from ....domain.entities import User, UserStatus
from ....domain.roles import RoleName

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class InMemoryUserRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._users: Dict[UUID, User] = {}

    def _email_taken(self, user: User) -> bool:
        return any(
            other.id != user.id and other.email == user.email
            for other in self._users.values()
        )

    def create_user(self, user: User) -> User:
        with self._lock:
            if self._email_taken(user):
                raise UniqueViolationError("Email already exists", constraint="uq_users_email")
            self._users[user.id] = user
            return user

    def get_user_by_id(self, user_id: UUID) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_email(self, email: str) -> User | None:
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user
        return None

    def list_users(
        self,
        *,
        account_id: UUID | None = None,
        role_name: RoleName | None = None,
        status: UserStatus | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[User], int]:
        with self._lock:
            matches = [
                u
                for u in self._users.values()
                if (account_id is None or u.account_id == account_id)
                and (role_name is None or u.role_name == role_name)
                and (status is None or u.status == status)
            ]
        matches.sort(key=lambda u: u.created_at or _EPOCH, reverse=True)
        return matches[offset : offset + limit], len(matches)

    def update_user(self, user: User) -> User | None:
        with self._lock:
            if user.id not in self._users:
                return None
            if self._email_taken(user):
                raise UniqueViolationError("Email already exists", constraint="uq_users_email")
            self._users[user.id] = user
            return user

    def discard(self, user_id: UUID) -> None:
        """Compensación del onboarding en memoria."""
        with self._lock:
            self._users.pop(user_id, None)
