"""
===============================================================================
TARJETA CRC — domain/permissions.py
===============================================================================

Módulo:
    Grilla de permisos (módulo x acción)

Responsabilidades:
    - Definir el catálogo cerrado de módulos y acciones.
    - Evaluar si una grilla permite (módulo, acción): has_permission.
    - Combinar la grilla de un rol con los overrides de una asociación.
    - Validar/parsear grillas que llegan desde la API o la DB.

Colaboradores:
    - domain.roles: grillas por defecto de cada rol.
    - domain.entities.Role / Association: guardan grillas.
    - domain.access.Principal: evalúa la grilla efectiva por request.

Reglas:
    - has_permission es una función pura: barrido lineal + pertenencia.
    - No hay atajos por nombre de rol: los administradores tienen su grilla completa.
    - Un override para un módulo reemplaza la entrada del rol para ese módulo.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Sequence


class Module(str, Enum):
    USUARIOS = "usuarios"
    CUENTAS = "cuentas"
    GRUPOS = "grupos"
    ROLES = "roles"
    REPORTES = "reportes"
    CONFIGURACION = "configuracion"
    FAMILIAS = "familias"


class Action(str, Enum):
    CREAR = "crear"
    LEER = "leer"
    ACTUALIZAR = "actualizar"
    ELIMINAR = "eliminar"
    ADMINISTRAR = "administrar"
    VER = "ver"


@dataclass(frozen=True, slots=True)
class PermissionGrant:
    """Una fila de la grilla: un módulo y las acciones permitidas en él."""

    module: Module
    actions: tuple[Action, ...]

    def allows(self, action: Action) -> bool:
        return action in self.actions

    def to_dict(self) -> dict[str, Any]:
        return {
            "module": self.module.value,
            "actions": [action.value for action in self.actions],
        }


def _coerce_module(module: Module | str) -> Module | None:
    try:
        return Module(module)
    except ValueError:
        return None


def _coerce_action(action: Action | str) -> Action | None:
    try:
        return Action(action)
    except ValueError:
        return None


def has_permission(
    grants: Iterable[PermissionGrant], module: Module | str, action: Action | str
) -> bool:
    """
    True si la grilla permite `action` sobre `module`.

    Módulos o acciones desconocidos nunca están permitidos.
    """
    wanted_module = _coerce_module(module)
    wanted_action = _coerce_action(action)
    if wanted_module is None or wanted_action is None:
        return False

    for grant in grants:
        if grant.module == wanted_module:
            return grant.allows(wanted_action)
    return False


def effective_permissions(
    role_grants: Sequence[PermissionGrant],
    overrides: Sequence[PermissionGrant] | None,
) -> list[PermissionGrant]:
    """
    Grilla efectiva = grilla del rol con los overrides de la asociación.

    Se respeta el orden del rol; los módulos que solo aparecen en el override
    se agregan al final.
    """
    if not overrides:
        return list(role_grants)

    by_module = {grant.module: grant for grant in overrides}
    merged: list[PermissionGrant] = []
    for grant in role_grants:
        merged.append(by_module.pop(grant.module, grant))
    merged.extend(grant for grant in overrides if grant.module in by_module)
    return merged


def full_grid(
    modules: Iterable[Module] | None = None,
    actions: Iterable[Action] | None = None,
) -> list[PermissionGrant]:
    """Grilla con todas las acciones sobre los módulos indicados (default: todos)."""
    action_tuple = tuple(actions or Action)
    return [PermissionGrant(module, action_tuple) for module in (modules or Module)]


def grant(module: Module, *actions: Action) -> PermissionGrant:
    return PermissionGrant(module=module, actions=tuple(actions))


def parse_permissions(raw: Iterable[dict[str, Any]] | None) -> list[PermissionGrant]:
    """
    Parsea [{"module": "...", "actions": [...]}] a PermissionGrant.

    Lanza ValueError ante módulos/acciones desconocidos o módulos repetidos.
    Las acciones repetidas se colapsan preservando el orden.
    """
    grants: list[PermissionGrant] = []
    seen: set[Module] = set()
    for item in raw or []:
        module = _coerce_module(item.get("module", ""))
        if module is None:
            raise ValueError(f"Módulo desconocido: {item.get('module')!r}")
        if module in seen:
            raise ValueError(f"Módulo repetido en la grilla: {module.value}")
        seen.add(module)

        actions: list[Action] = []
        for raw_action in item.get("actions", []) or []:
            action = _coerce_action(raw_action)
            if action is None:
                raise ValueError(f"Acción desconocida: {raw_action!r}")
            if action not in actions:
                actions.append(action)
        grants.append(PermissionGrant(module=module, actions=tuple(actions)))
    return grants


def serialize_permissions(grants: Iterable[PermissionGrant]) -> list[dict[str, Any]]:
    return [g.to_dict() for g in grants]
