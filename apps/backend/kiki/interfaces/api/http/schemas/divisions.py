"""
===============================================================================
TARJETA CRC — schemas/divisions.py
===============================================================================

Responsabilidades:
    - DTOs de divisiones (grupos/aulas) y de gestión de miembros.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .....crosscutting.pagination import PaginationInfo
from .....domain.entities import Division


class CreateDivisionReq(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    member_ids: list[UUID] = Field(default_factory=list, max_length=500)


class UpdateDivisionReq(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None


class DivisionMembersReq(BaseModel):
    add: list[UUID] = Field(default_factory=list, max_length=500)
    remove: list[UUID] = Field(default_factory=list, max_length=500)


class DivisionRes(BaseModel):
    id: UUID
    account_id: UUID
    name: str
    description: str | None = None
    member_ids: list[UUID]
    created_by: UUID | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class DivisionsListRes(BaseModel):
    items: list[DivisionRes]
    pagination: PaginationInfo


def to_division_res(division: Division) -> DivisionRes:
    return DivisionRes(
        id=division.id,
        account_id=division.account_id,
        name=division.name,
        description=division.description,
        member_ids=list(division.member_ids),
        created_by=division.created_by,
        is_active=division.is_active,
        created_at=division.created_at,
        updated_at=division.updated_at,
    )
