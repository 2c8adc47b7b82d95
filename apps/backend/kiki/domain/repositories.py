"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define persistence contracts (ports) for roles, tenants, divisions,
  students, users, associations, active associations, share requests and
  refresh tokens.
- Keep application/domain independent from PostgreSQL or in-memory storage.

Collaborators
- domain.entities
- infrastructure.repositories.postgres / in_memory implementations

Constraints
- Pure interfaces: no SQL, no side effects.
- "Not found" is None, never an exception.
- Paged listings return (items, total) so the API can build pagination metadata.
- Uniqueness (email, DNI, active association per user) is enforced by the
  implementations as a last line of defense (UniqueViolationError).
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from .entities import (
    Account,
    ActiveAssociation,
    Association,
    AssociationStatus,
    Division,
    RefreshToken,
    RequestedShare,
    Role,
    Student,
    User,
    UserStatus,
)
from .roles import RoleName


class RoleRepository(Protocol):
    """R: Role catalog. Ordered by level (1 first)."""

    def list_roles(self, *, include_inactive: bool = False) -> list[Role]: ...

    def get_role(self, name: RoleName) -> Role | None: ...

    def save_role(self, role: Role) -> Role:
        """R: Upsert by name."""
        ...

    def count_roles(self) -> int: ...


class AccountRepository(Protocol):
    def create_account(self, account: Account) -> Account: ...

    def get_account(self, account_id: UUID) -> Account | None: ...

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
        """R: Case-insensitive substring filters; newest first."""
        ...

    def update_account(self, account: Account) -> Account | None: ...


class DivisionRepository(Protocol):
    def create_division(self, division: Division) -> Division: ...

    def get_division(self, division_id: UUID) -> Division | None: ...

    def get_division_by_name(self, account_id: UUID, name: str) -> Division | None:
        """R: Case-insensitive match within the account."""
        ...

    def list_divisions(
        self,
        account_id: UUID,
        *,
        is_active: bool | None = None,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Division], int]: ...

    def update_division(self, division: Division) -> Division | None: ...


class StudentRepository(Protocol):
    def create_student(self, student: Student) -> Student: ...

    def get_student(self, student_id: UUID) -> Student | None: ...

    def get_student_by_dni(self, dni: str) -> Student | None: ...

    def get_student_by_email(self, email: str) -> Student | None: ...

    def list_students(
        self,
        account_id: UUID,
        *,
        division_id: UUID | None = None,
        search: str | None = None,
        include_inactive: bool = False,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Student], int]: ...

    def update_student(self, student: Student) -> Student | None: ...


class UserRepository(Protocol):
    def create_user(self, user: User) -> User: ...

    def get_user_by_id(self, user_id: UUID) -> User | None: ...

    def get_user_by_email(self, email: str) -> User | None:
        """R: Email must already be normalized (lower-case)."""
        ...

    def list_users(
        self,
        *,
        account_id: UUID | None = None,
        role_name: RoleName | None = None,
        status: UserStatus | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[User], int]: ...

    def update_user(self, user: User) -> User | None: ...


class AssociationRepository(Protocol):
    def create_association(self, association: Association) -> Association: ...

    def get_association(self, association_id: UUID) -> Association | None: ...

    def list_for_user(
        self, user_id: UUID, *, status: AssociationStatus | None = None
    ) -> list[Association]:
        """R: Newest first."""
        ...

    def list_for_account(
        self, account_id: UUID, *, status: AssociationStatus | None = None
    ) -> list[Association]:
        """R: Newest first."""
        ...

    def find_live_association(
        self,
        *,
        user_id: UUID,
        account_id: UUID,
        role_name: RoleName,
        division_id: UUID | None,
        student_id: UUID | None,
    ) -> Association | None:
        """R: Same scope tuple with status pending or active."""
        ...

    def update_association(self, association: Association) -> Association | None: ...


class RequestedShareRepository(Protocol):
    """R: At most one pending request per (email, account, student)."""

    def create_request(self, request: RequestedShare) -> RequestedShare: ...

    def find_pending(
        self, *, email: str, account_id: UUID, student_id: UUID
    ) -> RequestedShare | None: ...

    def list_pending_for_email(self, email: str) -> list[RequestedShare]:
        """R: Oldest first."""
        ...

    def mark_completed(
        self, request_id: UUID, *, completed_by: UUID, completed_at: datetime
    ) -> bool:
        """R: Compare-and-set from pending; False when already closed."""
        ...


class ActiveAssociationRepository(Protocol):
    """R: At most one row per user (unique on user_id)."""

    def get_active(self, user_id: UUID) -> ActiveAssociation | None: ...

    def upsert_active(self, active: ActiveAssociation) -> ActiveAssociation:
        """R: Atomic upsert keyed by user_id; last write wins."""
        ...

    def delete_active(self, user_id: UUID) -> bool: ...

    def delete_by_association(self, association_id: UUID) -> int: ...

    def list_all_active(self) -> list[ActiveAssociation]: ...


class RefreshTokenRepository(Protocol):
    def create_token(self, token: RefreshToken) -> RefreshToken: ...

    def get_by_hash(self, token_hash: str) -> RefreshToken | None: ...

    def update_token(self, token: RefreshToken) -> RefreshToken | None: ...

    def revoke_token(
        self,
        token_id: UUID,
        *,
        used_at: datetime | None = None,
        replaced_by_id: UUID | None = None,
    ) -> bool:
        """R: Compare-and-set; False when the token was already revoked."""
        ...

    def revoke_all_for_user(self, user_id: UUID) -> int:
        """R: Returns how many live tokens were revoked."""
        ...

    def delete_expired(self, now: datetime) -> int:
        """R: Deletes expired tokens only; revoked ones keep the rotation chain."""
        ...


class TenantOnboardingRepository(Protocol):
    """R: Creates account + admin user + admin association as one unit."""

    def onboard_account(
        self, account: Account, admin_user: User, association: Association
    ) -> Account: ...
