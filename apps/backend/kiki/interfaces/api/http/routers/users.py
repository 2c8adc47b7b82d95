"""
===============================================================================
TARJETA CRC — kiki/interfaces/api/http/routers/users.py
===============================================================================

Class/Module:
    Users Router

Responsibilities:
    - Alta de usuarios por administradores (approved + asociación active).
    - Listado paginado con scope de cuenta, detalle y edición de perfil.
    - Cambio de estado (pending/approved/rejected).
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from .....application.usecases.directory import (
    ChangeUserStatusUseCase,
    GetUserUseCase,
    ListUsersUseCase,
    ProvisionUserInput,
    ProvisionUserUseCase,
    UpdateProfileInput,
    UpdateProfileUseCase,
)
from .....container import (
    get_change_user_status_use_case,
    get_get_user_use_case,
    get_list_users_use_case,
    get_provision_user_use_case,
    get_update_profile_use_case,
)
from .....crosscutting.pagination import MAX_LIMIT, PageParams, build_page
from .....domain.access import Principal
from .....domain.entities import UserStatus
from .....domain.roles import RoleName
from .....identity.access_control import require_principal
from ..error_mapping import raise_directory_error
from ..schemas.users import (
    ChangeStatusReq,
    ProvisionUserReq,
    UpdateProfileReq,
    UserRes,
    UsersListRes,
    to_user_res,
)

router = APIRouter(tags=["users"])


@router.get("/users", response_model=UsersListRes)
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    account_id: UUID | None = Query(None),
    role: RoleName | None = Query(None),
    status: UserStatus | None = Query(None),
    use_case: ListUsersUseCase = Depends(get_list_users_use_case),
    principal: Principal = Depends(require_principal()),
):
    params = PageParams.of(page, limit)
    result = use_case.execute(
        principal, params, account_id=account_id, role_name=role, status=status
    )
    if result.error is not None:
        raise_directory_error(result.error)

    page_data = build_page([to_user_res(u) for u in result.users], params, result.total)
    return UsersListRes(items=page_data.items, pagination=page_data.pagination)


@router.post("/users", response_model=UserRes, status_code=201)
def provision_user(
    req: ProvisionUserReq,
    use_case: ProvisionUserUseCase = Depends(get_provision_user_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(
        ProvisionUserInput(
            name=req.name,
            email=req.email,
            password=req.password,
            role_name=req.role,
            account_id=req.account_id,
            division_id=req.division_id,
            student_id=req.student_id,
            dni=req.dni,
            phone=req.phone,
        ),
        principal,
    )
    if result.error is not None:
        raise_directory_error(result.error)
    return to_user_res(result.user)


@router.get("/users/{user_id}", response_model=UserRes)
def get_user(
    user_id: UUID,
    use_case: GetUserUseCase = Depends(get_get_user_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(user_id, principal)
    if result.error is not None:
        raise_directory_error(result.error)
    return to_user_res(result.user)


@router.patch("/users/{user_id}", response_model=UserRes)
def update_profile(
    user_id: UUID,
    req: UpdateProfileReq,
    use_case: UpdateProfileUseCase = Depends(get_update_profile_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(
        user_id,
        UpdateProfileInput(
            name=req.name,
            email=req.email,
            dni=req.dni,
            phone=req.phone,
            address=req.address,
            birth_date=req.birth_date,
            avatar_url=req.avatar_url,
        ),
        principal,
    )
    if result.error is not None:
        raise_directory_error(result.error)
    return to_user_res(result.user)


@router.post("/users/{user_id}/status", response_model=UserRes)
def change_user_status(
    user_id: UUID,
    req: ChangeStatusReq,
    use_case: ChangeUserStatusUseCase = Depends(get_change_user_status_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(user_id, req.status, principal)
    if result.error is not None:
        raise_directory_error(result.error)
    return to_user_res(result.user)
