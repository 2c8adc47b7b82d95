"""
===============================================================================
TASK: Seed Role Catalog
===============================================================================

Asegura que el catálogo de roles del sistema exista en el repositorio.

Reglas:
  - Crea los roles faltantes con su grilla por defecto.
  - Los roles existentes no se tocan salvo update_existing=True
    (restablece descripción, nivel y grilla por defecto).
  - Idempotente: correrlo N veces deja el mismo estado.
===============================================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from ..crosscutting.logger import logger
from ..domain.entities import Role
from ..domain.repositories import RoleRepository
from ..domain.roles import DEFAULT_ROLE_CATALOG, RoleDefinition


def _role_from_definition(definition: RoleDefinition) -> Role:
    return Role(
        name=definition.name,
        description=definition.description,
        level=definition.level,
        permissions=list(definition.permissions),
        is_system=True,
    )


def ensure_role_catalog(roles: RoleRepository, *, update_existing: bool = False) -> int:
    """Crea (o restablece) los roles del catálogo. Retorna cuántos se escribieron."""
    written = 0
    for definition in DEFAULT_ROLE_CATALOG:
        existing = roles.get_role(definition.name)

        if existing is None:
            roles.save_role(_role_from_definition(definition))
            written += 1
            continue

        if update_existing:
            roles.save_role(
                replace(
                    existing,
                    description=definition.description,
                    level=definition.level,
                    permissions=list(definition.permissions),
                    is_active=True,
                    updated_at=datetime.now(timezone.utc),
                )
            )
            written += 1

    logger.info(
        "Role catalog ensured",
        extra={"written": written, "update_existing": update_existing},
    )
    return written
