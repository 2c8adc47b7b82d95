"""
===============================================================================
TARJETA CRC — kiki/interfaces/api/http/routers/accounts.py
===============================================================================

Class/Module:
    Accounts Router

Responsibilities:
    - Exponer endpoints HTTP de cuentas (instituciones).
    - Convertir requests HTTP -> inputs de casos de uso.
    - Traducir DirectoryError -> RFC7807.

Collaborators:
    - application.usecases.directory (Create/List/Get/Update/Deactivate)
    - identity.access_control.require_principal
    - kiki.container (factories DI)
    - schemas.accounts (DTOs Pydantic)
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from .....application.usecases.directory import (
    CreateAccountInput,
    CreateAccountUseCase,
    DeactivateAccountUseCase,
    GetAccountUseCase,
    ListAccountsUseCase,
    UpdateAccountInput,
    UpdateAccountUseCase,
)
from .....container import (
    get_create_account_use_case,
    get_deactivate_account_use_case,
    get_get_account_use_case,
    get_list_accounts_use_case,
    get_update_account_use_case,
)
from .....crosscutting.pagination import MAX_LIMIT, PageParams, build_page
from .....domain.access import Principal
from .....identity.access_control import require_principal
from ..error_mapping import raise_directory_error
from ..schemas.accounts import (
    AccountRes,
    AccountsListRes,
    CreateAccountReq,
    UpdateAccountReq,
    to_account_res,
)

router = APIRouter(tags=["accounts"])


@router.get("/accounts", response_model=AccountsListRes)
def list_accounts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    name: str | None = Query(None, max_length=100),
    legal_name: str | None = Query(None, max_length=200),
    include_inactive: bool = Query(False),
    use_case: ListAccountsUseCase = Depends(get_list_accounts_use_case),
    principal: Principal = Depends(require_principal()),
):
    params = PageParams.of(page, limit)
    result = use_case.execute(
        principal,
        params,
        name=name,
        legal_name=legal_name,
        include_inactive=include_inactive,
    )
    if result.error is not None:
        raise_directory_error(result.error)

    page_data = build_page([to_account_res(a) for a in result.accounts], params, result.total)
    return AccountsListRes(items=page_data.items, pagination=page_data.pagination)


@router.post("/accounts", response_model=AccountRes, status_code=201)
def create_account(
    req: CreateAccountReq,
    use_case: CreateAccountUseCase = Depends(get_create_account_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(
        CreateAccountInput(
            name=req.name,
            legal_name=req.legal_name,
            admin_email=req.admin_email,
            admin_name=req.admin_name,
            admin_password=req.admin_password,
            address=req.address,
            logo_url=req.logo_url,
        ),
        principal,
    )
    if result.error is not None:
        raise_directory_error(result.error)
    return to_account_res(result.account)


@router.get("/accounts/{account_id}", response_model=AccountRes)
def get_account(
    account_id: UUID,
    use_case: GetAccountUseCase = Depends(get_get_account_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(account_id, principal)
    if result.error is not None:
        raise_directory_error(result.error)
    return to_account_res(result.account)


@router.patch("/accounts/{account_id}", response_model=AccountRes)
def update_account(
    account_id: UUID,
    req: UpdateAccountReq,
    use_case: UpdateAccountUseCase = Depends(get_update_account_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(
        account_id,
        UpdateAccountInput(
            name=req.name,
            legal_name=req.legal_name,
            address=req.address,
            logo_url=req.logo_url,
            admin_email=req.admin_email,
        ),
        principal,
    )
    if result.error is not None:
        raise_directory_error(result.error)
    return to_account_res(result.account)


@router.post("/accounts/{account_id}/deactivate", response_model=AccountRes)
def deactivate_account(
    account_id: UUID,
    use_case: DeactivateAccountUseCase = Depends(get_deactivate_account_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(account_id, principal)
    if result.error is not None:
        raise_directory_error(result.error)
    return to_account_res(result.account)
