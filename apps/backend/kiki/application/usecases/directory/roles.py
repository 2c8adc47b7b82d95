"""
===============================================================================
USE CASES: Roles
===============================================================================

Reglas:
  - El catálogo es visible para cualquier principal autenticado;
    assignable_only filtra a los roles que el actor puede otorgar.
  - Solo se editan grilla y descripción (roles:actualizar). El nombre y el
    nivel de los roles del sistema son inmutables.
===============================================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from ....domain.access import Principal
from ....domain.permissions import Action, Module, parse_permissions
from ....domain.repositories import RoleRepository
from ....domain.roles import RoleName, can_assign_role
from .directory_results import (
    RoleListResult,
    RoleResult,
    forbidden,
    not_found,
    validation,
)


class ListRolesUseCase:
    def __init__(self, role_repository: RoleRepository) -> None:
        self._roles = role_repository

    def execute(self, actor: Principal | None, *, assignable_only: bool = False) -> RoleListResult:
        if actor is None:
            return RoleListResult(error=forbidden())

        roles = self._roles.list_roles()
        if assignable_only:
            roles = [role for role in roles if can_assign_role(actor.role_name, role.name)]
        return RoleListResult(roles=roles)


class GetRoleUseCase:
    def __init__(self, role_repository: RoleRepository) -> None:
        self._roles = role_repository

    def execute(self, name: str, actor: Principal | None) -> RoleResult:
        if actor is None:
            return RoleResult(error=forbidden())
        try:
            role_name = RoleName(name)
        except ValueError:
            return RoleResult(error=not_found("Rol no encontrado."))

        role = self._roles.get_role(role_name)
        if role is None:
            return RoleResult(error=not_found("Rol no encontrado."))
        return RoleResult(role=role)


class UpdateRolePermissionsUseCase:
    def __init__(self, role_repository: RoleRepository) -> None:
        self._roles = role_repository

    def execute(
        self,
        name: str,
        actor: Principal | None,
        *,
        permissions: list[dict[str, Any]],
        description: str | None = None,
    ) -> RoleResult:
        # 1. Autorización
        if actor is None or not actor.can(Module.ROLES, Action.ACTUALIZAR):
            return RoleResult(error=forbidden())

        # 2. Cargar
        try:
            role_name = RoleName(name)
        except ValueError:
            return RoleResult(error=not_found("Rol no encontrado."))
        role = self._roles.get_role(role_name)
        if role is None:
            return RoleResult(error=not_found("Rol no encontrado."))

        # 3. Validar grilla
        try:
            grants = parse_permissions(permissions)
        except ValueError as exc:
            return RoleResult(error=validation(str(exc)))

        changes: dict = {"permissions": grants}
        if description is not None:
            if not description.strip():
                return RoleResult(error=validation("La descripción no puede estar vacía."))
            changes["description"] = description.strip()

        saved = self._roles.save_role(
            replace(role, updated_at=datetime.now(timezone.utc), **changes)
        )
        return RoleResult(role=saved)
