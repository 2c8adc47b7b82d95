"""
===============================================================================
TARJETA CRC — kiki/interfaces/api/http/routers/roles.py
===============================================================================

Class/Module:
    Roles Router

Responsibilities:
    - Catálogo de roles (lectura para cualquier autenticado).
    - Edición de grilla/descripción (roles:actualizar).
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from .....application.usecases.directory import (
    GetRoleUseCase,
    ListRolesUseCase,
    UpdateRolePermissionsUseCase,
)
from .....container import (
    get_get_role_use_case,
    get_list_roles_use_case,
    get_update_role_permissions_use_case,
)
from .....domain.access import Principal
from .....identity.access_control import require_principal
from ..error_mapping import raise_directory_error
from ..schemas.common import schema_to_raw
from ..schemas.roles import RoleRes, RolesListRes, UpdateRolePermissionsReq, to_role_res

router = APIRouter(tags=["roles"])


@router.get("/roles", response_model=RolesListRes)
def list_roles(
    assignable_only: bool = Query(False),
    use_case: ListRolesUseCase = Depends(get_list_roles_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(principal, assignable_only=assignable_only)
    if result.error is not None:
        raise_directory_error(result.error)
    return RolesListRes(roles=[to_role_res(r) for r in result.roles])


@router.get("/roles/{role_name}", response_model=RoleRes)
def get_role(
    role_name: str,
    use_case: GetRoleUseCase = Depends(get_get_role_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(role_name, principal)
    if result.error is not None:
        raise_directory_error(result.error)
    return to_role_res(result.role)


@router.put("/roles/{role_name}/permissions", response_model=RoleRes)
def update_role_permissions(
    role_name: str,
    req: UpdateRolePermissionsReq,
    use_case: UpdateRolePermissionsUseCase = Depends(get_update_role_permissions_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(
        role_name,
        principal,
        permissions=schema_to_raw(req.permissions),
        description=req.description,
    )
    if result.error is not None:
        raise_directory_error(result.error)
    return to_role_res(result.role)
