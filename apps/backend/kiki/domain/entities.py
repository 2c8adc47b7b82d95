"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades del dominio institucional

Responsabilidades:
    - Modelar Role, Account, Division, Student, User, Association (Shared),
      RequestedShare, ActiveAssociation y RefreshToken como dataclasses sin
      dependencias.
    - Exponer helpers de estado (is_approved, is_active, is_valid) que usan
      policy y use cases.

Colaboradores:
    - domain.permissions / domain.roles: enums y grillas.
    - domain.repositories: contratos que persisten estas entidades.
    - infrastructure.repositories.*: mapean filas <-> entidades.

Notas:
    - IDs UUID generados en memoria (uuid4).
    - Timestamps siempre timezone-aware (UTC).
===============================================================================
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from .permissions import Action, Module, PermissionGrant, has_permission
from .roles import RoleName


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserStatus(str, Enum):
    """Estado de alta del usuario (gatea el login)."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AssociationStatus(str, Enum):
    """Ciclo de vida de una asociación (Shared)."""

    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


# -----------------------------------------------------------------------------
# Role
# -----------------------------------------------------------------------------
@dataclass
class Role:
    """Rol con grilla de permisos y nivel jerárquico (1 = mayor autoridad)."""

    name: RoleName
    description: str
    level: int
    permissions: list[PermissionGrant] = field(default_factory=list)
    id: UUID = field(default_factory=uuid4)
    is_active: bool = True
    is_system: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def has_permission(self, module: Module | str, action: Action | str) -> bool:
        return has_permission(self.permissions, module, action)


# -----------------------------------------------------------------------------
# Account (tenant)
# -----------------------------------------------------------------------------
@dataclass
class Account:
    """Institución (tenant)."""

    name: str
    legal_name: str
    admin_email: str
    address: str | None = None
    logo_url: str | None = None
    admin_user_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


# -----------------------------------------------------------------------------
# Division (grupo / aula)
# -----------------------------------------------------------------------------
@dataclass
class Division:
    """Sub-unidad de una cuenta. member_ids puede estar vacío."""

    account_id: UUID
    name: str
    description: str | None = None
    member_ids: list[UUID] = field(default_factory=list)
    created_by: UUID | None = None
    id: UUID = field(default_factory=uuid4)
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


# -----------------------------------------------------------------------------
# Student
# -----------------------------------------------------------------------------
def generate_qr_code(student_id: UUID, dni: str, at: datetime | None = None) -> str:
    """Código QR estable: primeros 16 hex de sha256(id-dni-timestamp_ms)."""
    moment = at or _utcnow()
    raw = f"{student_id}-{dni}-{int(moment.timestamp() * 1000)}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]


@dataclass
class Student:
    account_id: UUID
    division_id: UUID
    first_name: str
    last_name: str
    dni: str
    email: str | None = None
    avatar_url: str | None = None
    qr_code: str | None = None
    created_by: UUID | None = None
    id: UUID = field(default_factory=uuid4)
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# -----------------------------------------------------------------------------
# User
# -----------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class User:
    """Principal autenticable. El password solo existe hasheado (Argon2)."""

    id: UUID
    name: str
    email: str
    password_hash: str
    role_name: RoleName
    status: UserStatus = UserStatus.PENDING
    account_id: UUID | None = None
    dni: str | None = None
    phone: str | None = None
    address: str | None = None
    birth_date: date | None = None
    avatar_url: str | None = None
    is_first_login: bool = True
    last_login_at: datetime | None = None
    password_changed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_approved(self) -> bool:
        return self.status == UserStatus.APPROVED


# -----------------------------------------------------------------------------
# Association (Shared)
# -----------------------------------------------------------------------------
@dataclass
class Association:
    """
    Otorga a un User un Role dentro de una Account, opcionalmente acotado a
    una Division y/o un Student.
    """

    user_id: UUID
    account_id: UUID
    role_name: RoleName
    division_id: UUID | None = None
    student_id: UUID | None = None
    status: AssociationStatus = AssociationStatus.PENDING
    permissions: list[PermissionGrant] = field(default_factory=list)
    created_by: UUID | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == AssociationStatus.ACTIVE

    def scope_key(self) -> tuple:
        """Tupla que identifica "la misma" asociación (para unicidad)."""
        return (
            self.user_id,
            self.account_id,
            self.role_name,
            self.division_id,
            self.student_id,
        )


# -----------------------------------------------------------------------------
# RequestedShare
# -----------------------------------------------------------------------------
class RequestedShareStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


@dataclass
class RequestedShare:
    """
    Invitación de un familyadmin a un email todavía no registrado.

    Guarda el scope (cuenta / división / alumno) y el rol a otorgar; se
    consume cuando ese email se registra.
    """

    requested_by: UUID
    requested_email: str
    account_id: UUID
    role_name: RoleName
    division_id: UUID
    student_id: UUID
    status: RequestedShareStatus = RequestedShareStatus.PENDING
    completed_by: UUID | None = None
    completed_at: datetime | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_pending(self) -> bool:
        return self.status == RequestedShareStatus.PENDING


# -----------------------------------------------------------------------------
# ActiveAssociation
# -----------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ActiveAssociation:
    """Puntero (uno por usuario) a la asociación con la que está actuando."""

    user_id: UUID
    association_id: UUID
    account_id: UUID
    role_name: RoleName
    division_id: UUID | None = None
    student_id: UUID | None = None
    activated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_association(
        cls, association: Association, *, at: datetime | None = None
    ) -> "ActiveAssociation":
        return cls(
            user_id=association.user_id,
            association_id=association.id,
            account_id=association.account_id,
            role_name=association.role_name,
            division_id=association.division_id,
            student_id=association.student_id,
            activated_at=at or _utcnow(),
        )


# -----------------------------------------------------------------------------
# RefreshToken
# -----------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class DeviceInfo:
    user_agent: str | None = None
    ip_address: str | None = None
    device_id: str | None = None


@dataclass
class RefreshToken:
    """
    Registro server-side de un refresh token.

    Solo se persiste el sha256 del valor opaco; el valor en claro se entrega
    una única vez al cliente.
    """

    user_id: UUID
    token_hash: str
    expires_at: datetime
    device: DeviceInfo = field(default_factory=DeviceInfo)
    id: UUID = field(default_factory=uuid4)
    is_revoked: bool = False
    last_used_at: datetime | None = None
    replaced_by_id: UUID | None = None
    created_at: datetime = field(default_factory=_utcnow)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or _utcnow()) >= self.expires_at

    def is_valid(self, now: datetime | None = None) -> bool:
        return not self.is_revoked and not self.is_expired(now)
