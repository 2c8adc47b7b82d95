"""
===============================================================================
TARJETA CRC — schemas/users.py
===============================================================================

Responsabilidades:
    - DTOs de usuarios (alta por administrador, perfil, estado, listado).
    - Mapear User (dominio) -> UserRes sin exponer password_hash.
===============================================================================
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .....crosscutting.pagination import PaginationInfo
from .....domain.entities import User, UserStatus
from .....domain.roles import RoleName


class UserRes(BaseModel):
    id: UUID
    name: str
    email: str
    role: RoleName
    status: UserStatus
    account_id: UUID | None = None
    dni: str | None = None
    phone: str | None = None
    address: str | None = None
    birth_date: date | None = None
    avatar_url: str | None = None
    is_first_login: bool
    last_login_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UsersListRes(BaseModel):
    items: list[UserRes]
    pagination: PaginationInfo


class ProvisionUserReq(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=256)
    role: RoleName
    account_id: UUID
    division_id: UUID | None = None
    student_id: UUID | None = None
    dni: str | None = Field(default=None, max_length=20)
    phone: str | None = Field(default=None, max_length=30)


class UpdateProfileReq(BaseModel):
    name: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=320)
    dni: str | None = Field(default=None, max_length=20)
    phone: str | None = Field(default=None, max_length=30)
    address: str | None = Field(default=None, max_length=200)
    birth_date: date | None = None
    avatar_url: str | None = Field(default=None, max_length=500)


class ChangeStatusReq(BaseModel):
    status: UserStatus


def to_user_res(user: User) -> UserRes:
    return UserRes(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role_name,
        status=user.status,
        account_id=user.account_id,
        dni=user.dni,
        phone=user.phone,
        address=user.address,
        birth_date=user.birth_date,
        avatar_url=user.avatar_url,
        is_first_login=user.is_first_login,
        last_login_at=user.last_login_at,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )
