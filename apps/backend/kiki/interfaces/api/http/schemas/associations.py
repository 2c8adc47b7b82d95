"""
===============================================================================
TARJETA CRC — schemas/associations.py
===============================================================================

Responsabilidades:
    - DTOs de asociaciones (Shared), del puntero de asociación activa y de
      las solicitudes de compartir.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .....domain.entities import (
    ActiveAssociation,
    Association,
    AssociationStatus,
    RequestedShare,
    RequestedShareStatus,
)
from .....domain.roles import RoleName
from .common import PermissionGrantSchema, grants_to_schema


class CreateAssociationReq(BaseModel):
    user_id: UUID
    account_id: UUID
    role: RoleName
    division_id: UUID | None = None
    student_id: UUID | None = None
    permissions: list[PermissionGrantSchema] = Field(
        default_factory=list,
        description="Override de grilla (vacío = grilla del rol)",
    )


class AssociationRes(BaseModel):
    id: UUID
    user_id: UUID
    account_id: UUID
    role: RoleName
    division_id: UUID | None = None
    student_id: UUID | None = None
    status: AssociationStatus
    permissions: list[PermissionGrantSchema]
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class AssociationsListRes(BaseModel):
    associations: list[AssociationRes]


class SetActiveAssociationReq(BaseModel):
    association_id: UUID


class ActiveAssociationRes(BaseModel):
    association_id: UUID
    account_id: UUID
    role: RoleName
    division_id: UUID | None = None
    student_id: UUID | None = None
    activated_at: datetime


def to_association_res(association: Association) -> AssociationRes:
    return AssociationRes(
        id=association.id,
        user_id=association.user_id,
        account_id=association.account_id,
        role=association.role_name,
        division_id=association.division_id,
        student_id=association.student_id,
        status=association.status,
        permissions=grants_to_schema(association.permissions),
        created_by=association.created_by,
        created_at=association.created_at,
        updated_at=association.updated_at,
    )


def to_active_association_res(active: ActiveAssociation) -> ActiveAssociationRes:
    return ActiveAssociationRes(
        association_id=active.association_id,
        account_id=active.account_id,
        role=active.role_name,
        division_id=active.division_id,
        student_id=active.student_id,
        activated_at=active.activated_at,
    )


class ShareReq(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    role: RoleName = RoleName.FAMILYVIEWER


class RequestedShareRes(BaseModel):
    id: UUID
    requested_email: str
    account_id: UUID
    role: RoleName
    division_id: UUID
    student_id: UUID
    status: RequestedShareStatus
    created_at: datetime


class ShareRes(BaseModel):
    """association si el email ya tenía cuenta; request si quedó pendiente."""

    association: AssociationRes | None = None
    request: RequestedShareRes | None = None


def to_requested_share_res(request: RequestedShare) -> RequestedShareRes:
    return RequestedShareRes(
        id=request.id,
        requested_email=request.requested_email,
        account_id=request.account_id,
        role=request.role_name,
        division_id=request.division_id,
        student_id=request.student_id,
        status=request.status,
        created_at=request.created_at,
    )
