"""
===============================================================================
TARJETA CRC — kiki/interfaces/api/http/routers/divisions.py
===============================================================================

Class/Module:
    Divisions Router

Responsibilities:
    - Endpoints de divisiones (grupos/aulas) de una cuenta.
    - Alta/baja de miembros.
    - Traducir DirectoryError -> RFC7807.

Collaborators:
    - application.usecases.directory (divisions)
    - identity.access_control.require_principal
    - schemas.divisions
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from .....application.usecases.directory import (
    CreateDivisionInput,
    CreateDivisionUseCase,
    GetDivisionUseCase,
    ListDivisionsUseCase,
    ManageDivisionMembersUseCase,
    UpdateDivisionInput,
    UpdateDivisionUseCase,
)
from .....container import (
    get_create_division_use_case,
    get_get_division_use_case,
    get_list_divisions_use_case,
    get_manage_division_members_use_case,
    get_update_division_use_case,
)
from .....crosscutting.pagination import MAX_LIMIT, PageParams, build_page
from .....domain.access import Principal
from .....identity.access_control import require_principal
from ..error_mapping import raise_directory_error
from ..schemas.divisions import (
    CreateDivisionReq,
    DivisionMembersReq,
    DivisionRes,
    DivisionsListRes,
    UpdateDivisionReq,
    to_division_res,
)

router = APIRouter(tags=["divisions"])


@router.get("/accounts/{account_id}/divisions", response_model=DivisionsListRes)
def list_divisions(
    account_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    is_active: bool | None = Query(None),
    search: str | None = Query(None, max_length=100),
    use_case: ListDivisionsUseCase = Depends(get_list_divisions_use_case),
    principal: Principal = Depends(require_principal()),
):
    params = PageParams.of(page, limit)
    result = use_case.execute(
        account_id, principal, params, is_active=is_active, search=search
    )
    if result.error is not None:
        raise_directory_error(result.error)

    page_data = build_page(
        [to_division_res(d) for d in result.divisions], params, result.total
    )
    return DivisionsListRes(items=page_data.items, pagination=page_data.pagination)


@router.post(
    "/accounts/{account_id}/divisions", response_model=DivisionRes, status_code=201
)
def create_division(
    account_id: UUID,
    req: CreateDivisionReq,
    use_case: CreateDivisionUseCase = Depends(get_create_division_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(
        CreateDivisionInput(
            account_id=account_id,
            name=req.name,
            description=req.description,
            member_ids=list(req.member_ids),
        ),
        principal,
    )
    if result.error is not None:
        raise_directory_error(result.error)
    return to_division_res(result.division)


@router.get("/divisions/{division_id}", response_model=DivisionRes)
def get_division(
    division_id: UUID,
    use_case: GetDivisionUseCase = Depends(get_get_division_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(division_id, principal)
    if result.error is not None:
        raise_directory_error(result.error)
    return to_division_res(result.division)


@router.patch("/divisions/{division_id}", response_model=DivisionRes)
def update_division(
    division_id: UUID,
    req: UpdateDivisionReq,
    use_case: UpdateDivisionUseCase = Depends(get_update_division_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(
        division_id,
        UpdateDivisionInput(
            name=req.name, description=req.description, is_active=req.is_active
        ),
        principal,
    )
    if result.error is not None:
        raise_directory_error(result.error)
    return to_division_res(result.division)


@router.post("/divisions/{division_id}/members", response_model=DivisionRes)
def manage_division_members(
    division_id: UUID,
    req: DivisionMembersReq,
    use_case: ManageDivisionMembersUseCase = Depends(get_manage_division_members_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(
        division_id, principal, add=list(req.add), remove=list(req.remove)
    )
    if result.error is not None:
        raise_directory_error(result.error)
    return to_division_res(result.division)
