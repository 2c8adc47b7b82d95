"""
===============================================================================
TARJETA CRC — domain/roles.py
===============================================================================

Módulo:
    Catálogo de roles del sistema

Responsabilidades:
    - Definir el enum cerrado de nombres de rol.
    - Definir nivel jerárquico y grilla por defecto de cada rol (seed).
    - Proveer el predicado central `is_administrator`.
    - Decidir qué roles puede asignar un actor (jerarquía).

Colaboradores:
    - domain.permissions: Module, Action, grillas.
    - application.seed_roles: persiste el catálogo.
    - domain.association_policy: scope requerido por rol.

Notas:
    - Nivel 1 = máxima autoridad.
    - is_administrator NO otorga permisos: la autorización sale siempre de la grilla.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from .permissions import Action, Module, PermissionGrant, full_grid, grant


class RoleName(str, Enum):
    SUPERADMIN = "superadmin"
    ADMINACCOUNT = "adminaccount"
    COORDINADOR = "coordinador"
    FAMILYADMIN = "familyadmin"
    FAMILYVIEWER = "familyviewer"


ADMINISTRATOR_ROLES: frozenset[RoleName] = frozenset(
    {RoleName.SUPERADMIN, RoleName.ADMINACCOUNT}
)
FAMILY_ROLES: frozenset[RoleName] = frozenset(
    {RoleName.FAMILYADMIN, RoleName.FAMILYVIEWER}
)

MIN_LEVEL = 1
MAX_LEVEL = 5


def is_administrator(role_name: RoleName | str | None) -> bool:
    """Único predicado de "es administrador" (superadmin / adminaccount)."""
    if role_name is None:
        return False
    try:
        return RoleName(role_name) in ADMINISTRATOR_ROLES
    except ValueError:
        return False


@dataclass(frozen=True, slots=True)
class RoleDefinition:
    """Definición de seed de un rol."""

    name: RoleName
    description: str
    level: int
    permissions: tuple[PermissionGrant, ...]


_ACCOUNT_MODULES = (
    Module.USUARIOS,
    Module.GRUPOS,
    Module.REPORTES,
    Module.CONFIGURACION,
    Module.FAMILIAS,
)

DEFAULT_ROLE_CATALOG: tuple[RoleDefinition, ...] = (
    RoleDefinition(
        name=RoleName.SUPERADMIN,
        description="Super Administrador - Acceso completo al sistema",
        level=1,
        permissions=tuple(full_grid()),
    ),
    RoleDefinition(
        name=RoleName.ADMINACCOUNT,
        description="Administrador de Cuenta - Gestión completa de su institución",
        level=2,
        permissions=(
            *full_grid(_ACCOUNT_MODULES),
            grant(Module.CUENTAS, Action.LEER, Action.ACTUALIZAR, Action.VER),
            grant(Module.ROLES, Action.LEER, Action.VER),
        ),
    ),
    RoleDefinition(
        name=RoleName.COORDINADOR,
        description="Coordinador - Gestión de grupos y familias de su división",
        level=3,
        permissions=(
            grant(Module.USUARIOS, Action.CREAR, Action.LEER, Action.ACTUALIZAR),
            grant(Module.CUENTAS, Action.LEER),
            grant(Module.GRUPOS, Action.CREAR, Action.LEER, Action.ACTUALIZAR),
            grant(Module.REPORTES, Action.CREAR, Action.LEER),
            grant(Module.FAMILIAS, Action.CREAR, Action.LEER, Action.ACTUALIZAR),
        ),
    ),
    RoleDefinition(
        name=RoleName.FAMILYADMIN,
        description="Administrador Familiar - Gestión de su grupo familiar",
        level=4,
        permissions=(
            grant(Module.USUARIOS, Action.LEER, Action.ACTUALIZAR),
            grant(Module.CUENTAS, Action.LEER),
            grant(Module.GRUPOS, Action.LEER),
            grant(Module.REPORTES, Action.LEER),
            grant(Module.FAMILIAS, Action.LEER, Action.ACTUALIZAR),
        ),
    ),
    RoleDefinition(
        name=RoleName.FAMILYVIEWER,
        description="Visualizador Familiar - Solo lectura de la información familiar",
        level=5,
        permissions=(
            grant(Module.USUARIOS, Action.VER),
            grant(Module.CUENTAS, Action.VER),
            grant(Module.GRUPOS, Action.VER),
            grant(Module.REPORTES, Action.VER),
            grant(Module.FAMILIAS, Action.VER),
        ),
    ),
)

DEFAULT_LEVELS: Mapping[RoleName, int] = {
    definition.name: definition.level for definition in DEFAULT_ROLE_CATALOG
}


def default_definition(name: RoleName) -> RoleDefinition:
    for definition in DEFAULT_ROLE_CATALOG:
        if definition.name == name:
            return definition
    raise KeyError(name)


def can_assign_role(
    actor_role: RoleName,
    target_role: RoleName,
    levels: Mapping[RoleName, int] = DEFAULT_LEVELS,
) -> bool:
    """
    Un actor puede otorgar roles de igual o menor autoridad (nivel >= el suyo).

    superadmin solo puede ser otorgado por otro superadmin.
    """
    if actor_role == RoleName.SUPERADMIN:
        return True
    if target_role == RoleName.SUPERADMIN:
        return False
    return levels.get(target_role, MAX_LEVEL) >= levels.get(actor_role, MAX_LEVEL)
