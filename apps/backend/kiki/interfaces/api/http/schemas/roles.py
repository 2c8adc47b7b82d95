"""
===============================================================================
TARJETA CRC — schemas/roles.py
===============================================================================

Responsabilidades:
    - DTOs del catálogo de roles y de edición de grilla.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .....domain.entities import Role
from .....domain.roles import RoleName
from .common import PermissionGrantSchema, grants_to_schema


class RoleRes(BaseModel):
    id: UUID
    name: RoleName
    description: str
    level: int
    permissions: list[PermissionGrantSchema]
    is_active: bool
    is_system: bool
    created_at: datetime
    updated_at: datetime


class RolesListRes(BaseModel):
    roles: list[RoleRes]


class UpdateRolePermissionsReq(BaseModel):
    permissions: list[PermissionGrantSchema] = Field(..., max_length=20)
    description: str | None = Field(default=None, max_length=200)


def to_role_res(role: Role) -> RoleRes:
    return RoleRes(
        id=role.id,
        name=role.name,
        description=role.description,
        level=role.level,
        permissions=grants_to_schema(role.permissions),
        is_active=role.is_active,
        is_system=role.is_system,
        created_at=role.created_at,
        updated_at=role.updated_at,
    )
