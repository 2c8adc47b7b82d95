"""
===============================================================================
TARJETA CRC — kiki/interfaces/api/http/routers/associations.py
===============================================================================

Class/Module:
    Associations Router

Responsibilities:
    - Ciclo de vida de asociaciones: invitar, aprobar, rechazar, desactivar.
    - Cola de aprobación por cuenta (filtro por estado).
    - Asociación activa del usuario autenticado (ver, elegir, limpiar) y
      asociaciones disponibles para elegir.
    - Compartir el alcance familiar con otro email (familyadmin).

Collaborators:
    - application.usecases.associations
    - identity.access_control.require_principal
    - schemas.associations
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from .....application.usecases.associations import (
    ApproveAssociationUseCase,
    ClearActiveAssociationUseCase,
    CreateAssociationInput,
    CreateAssociationUseCase,
    DeactivateAssociationUseCase,
    GetActiveAssociationUseCase,
    ListAccountAssociationsUseCase,
    ListAvailableAssociationsUseCase,
    RejectAssociationUseCase,
    RequestShareInput,
    RequestShareUseCase,
    SetActiveAssociationUseCase,
)
from .....container import (
    get_approve_association_use_case,
    get_clear_active_association_use_case,
    get_create_association_use_case,
    get_deactivate_association_use_case,
    get_get_active_association_use_case,
    get_list_account_associations_use_case,
    get_list_available_associations_use_case,
    get_reject_association_use_case,
    get_request_share_use_case,
    get_set_active_association_use_case,
)
from .....crosscutting.error_responses import validation_error
from .....domain.access import Principal
from .....domain.entities import AssociationStatus
from .....identity.access_control import require_principal
from ..error_mapping import raise_association_error
from ..schemas.associations import (
    ActiveAssociationRes,
    AssociationRes,
    AssociationsListRes,
    CreateAssociationReq,
    SetActiveAssociationReq,
    ShareReq,
    ShareRes,
    to_active_association_res,
    to_association_res,
    to_requested_share_res,
)
from ..schemas.common import schema_to_grants

router = APIRouter(tags=["associations"])


# =============================================================================
# Gestión (administradores)
# =============================================================================


@router.post("/associations", response_model=AssociationRes, status_code=201)
def create_association(
    req: CreateAssociationReq,
    use_case: CreateAssociationUseCase = Depends(get_create_association_use_case),
    principal: Principal = Depends(require_principal()),
):
    try:
        permissions = schema_to_grants(req.permissions)
    except ValueError as exc:
        raise validation_error(str(exc)) from exc

    result = use_case.execute(
        CreateAssociationInput(
            user_id=req.user_id,
            account_id=req.account_id,
            role_name=req.role,
            division_id=req.division_id,
            student_id=req.student_id,
            permissions=permissions,
        ),
        principal,
    )
    if result.error is not None:
        raise_association_error(result.error)
    return to_association_res(result.association)


@router.get("/accounts/{account_id}/associations", response_model=AssociationsListRes)
def list_account_associations(
    account_id: UUID,
    status: AssociationStatus | None = Query(None),
    use_case: ListAccountAssociationsUseCase = Depends(
        get_list_account_associations_use_case
    ),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(account_id, principal, status=status)
    if result.error is not None:
        raise_association_error(result.error)
    return AssociationsListRes(
        associations=[to_association_res(a) for a in result.associations]
    )


@router.post("/associations/{association_id}/approve", response_model=AssociationRes)
def approve_association(
    association_id: UUID,
    use_case: ApproveAssociationUseCase = Depends(get_approve_association_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(association_id, principal)
    if result.error is not None:
        raise_association_error(result.error)
    return to_association_res(result.association)


@router.post("/associations/{association_id}/reject", response_model=AssociationRes)
def reject_association(
    association_id: UUID,
    use_case: RejectAssociationUseCase = Depends(get_reject_association_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(association_id, principal)
    if result.error is not None:
        raise_association_error(result.error)
    return to_association_res(result.association)


@router.post("/associations/{association_id}/deactivate", response_model=AssociationRes)
def deactivate_association(
    association_id: UUID,
    use_case: DeactivateAssociationUseCase = Depends(get_deactivate_association_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(association_id, principal)
    if result.error is not None:
        raise_association_error(result.error)
    return to_association_res(result.association)


# =============================================================================
# Asociación activa (usuario autenticado)
# =============================================================================


@router.get("/me/associations", response_model=AssociationsListRes)
def list_my_associations(
    use_case: ListAvailableAssociationsUseCase = Depends(
        get_list_available_associations_use_case
    ),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(principal.user_id)
    if result.error is not None:
        raise_association_error(result.error)
    return AssociationsListRes(
        associations=[to_association_res(a) for a in result.associations]
    )


@router.get(
    "/me/active-association",
    response_model=ActiveAssociationRes | None,
)
def get_my_active_association(
    use_case: GetActiveAssociationUseCase = Depends(get_get_active_association_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(principal.user_id)
    if result.error is not None:
        raise_association_error(result.error)
    if result.active is None:
        return None
    return to_active_association_res(result.active)


@router.put("/me/active-association", response_model=ActiveAssociationRes)
def set_my_active_association(
    req: SetActiveAssociationReq,
    use_case: SetActiveAssociationUseCase = Depends(get_set_active_association_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(principal.user_id, req.association_id)
    if result.error is not None:
        raise_association_error(result.error)
    return to_active_association_res(result.active)


@router.delete("/me/active-association", status_code=204)
def clear_my_active_association(
    use_case: ClearActiveAssociationUseCase = Depends(get_clear_active_association_use_case),
    principal: Principal = Depends(require_principal()),
):
    use_case.execute(principal.user_id)
    return Response(status_code=204)


# =============================================================================
# Compartir alcance familiar
# =============================================================================


@router.post("/me/shares", response_model=ShareRes, status_code=201)
def share_my_scope(
    req: ShareReq,
    use_case: RequestShareUseCase = Depends(get_request_share_use_case),
    principal: Principal = Depends(require_principal()),
):
    """Email registrado: asociación active. Si no: solicitud pending."""
    result = use_case.execute(RequestShareInput(email=req.email, role_name=req.role), principal)
    if result.error is not None:
        raise_association_error(result.error)
    if result.association is not None:
        return ShareRes(association=to_association_res(result.association))
    return ShareRes(request=to_requested_share_res(result.request))
