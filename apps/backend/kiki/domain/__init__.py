"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio

Responsabilidades:
    - Centralizar exports para imports limpios en application/interfaces.
    - Mantener estable el "surface area" del dominio.

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .access import Principal, can_access_account, can_act_on_account
from .association_policy import (
    AssociationEvent,
    AssociationOrigin,
    initial_status,
    next_status,
    validate_scope,
)
from .entities import (
    Account,
    ActiveAssociation,
    Association,
    AssociationStatus,
    DeviceInfo,
    Division,
    RefreshToken,
    Role,
    Student,
    User,
    UserStatus,
)
from .permissions import (
    Action,
    Module,
    PermissionGrant,
    effective_permissions,
    has_permission,
)
from .repositories import (
    AccountRepository,
    ActiveAssociationRepository,
    AssociationRepository,
    DivisionRepository,
    RefreshTokenRepository,
    RoleRepository,
    StudentRepository,
    TenantOnboardingRepository,
    UserRepository,
)
from .roles import RoleName, can_assign_role, is_administrator

__all__ = [
    # Entities
    "Account",
    "ActiveAssociation",
    "Association",
    "AssociationStatus",
    "DeviceInfo",
    "Division",
    "RefreshToken",
    "Role",
    "Student",
    "User",
    "UserStatus",
    # Permissions / roles
    "Action",
    "Module",
    "PermissionGrant",
    "RoleName",
    "can_assign_role",
    "effective_permissions",
    "has_permission",
    "is_administrator",
    # Policy
    "AssociationEvent",
    "AssociationOrigin",
    "Principal",
    "can_access_account",
    "can_act_on_account",
    "initial_status",
    "next_status",
    "validate_scope",
    # Repositories
    "AccountRepository",
    "ActiveAssociationRepository",
    "AssociationRepository",
    "DivisionRepository",
    "RefreshTokenRepository",
    "RoleRepository",
    "StudentRepository",
    "TenantOnboardingRepository",
    "UserRepository",
]
