"""
===============================================================================
DIRECTORY USE CASE RESULTS (cuentas, divisiones, alumnos, usuarios, roles)
===============================================================================

Responsibilities:
    - Códigos de error comunes del directorio.
    - Resultados tipados por entidad (único / listado paginado).
    - Helpers de autorización de lectura (leer o ver).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ....domain.access import Principal, can_access_account
from ....domain.entities import Account, Division, Role, Student, User
from ....domain.permissions import Action, Module


class DirectoryErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INVALID_STATE = "INVALID_STATE"


@dataclass(frozen=True)
class DirectoryError:
    code: DirectoryErrorCode
    message: str


def validation(message: str) -> DirectoryError:
    return DirectoryError(DirectoryErrorCode.VALIDATION_ERROR, message)


def forbidden(message: str = "Acceso denegado.") -> DirectoryError:
    return DirectoryError(DirectoryErrorCode.FORBIDDEN, message)


def not_found(message: str) -> DirectoryError:
    return DirectoryError(DirectoryErrorCode.NOT_FOUND, message)


def conflict(message: str) -> DirectoryError:
    return DirectoryError(DirectoryErrorCode.CONFLICT, message)


def can_read(principal: Principal | None, module: Module) -> bool:
    """Lectura = leer o ver."""
    if principal is None:
        return False
    return principal.can(module, Action.LEER) or principal.can(module, Action.VER)


def can_read_account(principal: Principal | None, module: Module, account_id) -> bool:
    return can_read(principal, module) and can_access_account(principal, account_id)


def check_length(value: str, label: str, minimum: int, maximum: int) -> DirectoryError | None:
    if not minimum <= len(value) <= maximum:
        return validation(f"{label} debe tener entre {minimum} y {maximum} caracteres.")
    return None


@dataclass
class AccountResult:
    account: Account | None = None
    error: DirectoryError | None = None


@dataclass
class AccountListResult:
    accounts: list[Account] = field(default_factory=list)
    total: int = 0
    error: DirectoryError | None = None


@dataclass
class DivisionResult:
    division: Division | None = None
    error: DirectoryError | None = None


@dataclass
class DivisionListResult:
    divisions: list[Division] = field(default_factory=list)
    total: int = 0
    error: DirectoryError | None = None


@dataclass
class StudentResult:
    student: Student | None = None
    error: DirectoryError | None = None


@dataclass
class StudentListResult:
    students: list[Student] = field(default_factory=list)
    total: int = 0
    error: DirectoryError | None = None


@dataclass
class UserResult:
    user: User | None = None
    error: DirectoryError | None = None


@dataclass
class UserListResult:
    users: list[User] = field(default_factory=list)
    total: int = 0
    error: DirectoryError | None = None


@dataclass
class RoleResult:
    role: Role | None = None
    error: DirectoryError | None = None


@dataclass
class RoleListResult:
    roles: list[Role] = field(default_factory=list)
    error: DirectoryError | None = None
