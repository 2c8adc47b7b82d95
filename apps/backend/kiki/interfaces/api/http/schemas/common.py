"""
===============================================================================
TARJETA CRC — schemas/common.py
===============================================================================

Responsabilidades:
    - DTO compartido para filas de la grilla de permisos.
    - Conversión grilla de dominio <-> DTO.
===============================================================================
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .....domain.permissions import Action, Module, PermissionGrant, parse_permissions


class PermissionGrantSchema(BaseModel):
    module: Module
    actions: list[Action] = Field(default_factory=list, max_length=len(Action))


def grants_to_schema(grants: list[PermissionGrant] | tuple) -> list[PermissionGrantSchema]:
    return [
        PermissionGrantSchema(module=g.module, actions=list(g.actions)) for g in grants
    ]


def schema_to_raw(items: list[PermissionGrantSchema]) -> list[dict[str, Any]]:
    return [
        {"module": item.module.value, "actions": [a.value for a in item.actions]}
        for item in items
    ]


def schema_to_grants(items: list[PermissionGrantSchema]) -> list[PermissionGrant]:
    """Lanza ValueError si hay módulos repetidos."""
    return parse_permissions(schema_to_raw(items))
