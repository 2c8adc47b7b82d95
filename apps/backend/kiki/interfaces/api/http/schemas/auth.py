"""
===============================================================================
TARJETA CRC — schemas/auth.py
===============================================================================

Módulo:
    DTOs de autenticación (login, refresh, logout, registro, password)

Notas:
    - Los passwords nunca se devuelven ni se loguean.
    - refresh_token en el body es opcional: también se acepta por cookie.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .....domain.roles import RoleName
from .associations import ActiveAssociationRes
from .common import PermissionGrantSchema
from .users import UserRes


class LoginReq(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=256)


class RefreshReq(BaseModel):
    refresh_token: str | None = Field(default=None, max_length=512)


class LogoutReq(BaseModel):
    refresh_token: str | None = Field(default=None, max_length=512)
    all_sessions: bool = False


class TokenRes(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    refresh_expires_at: datetime
    user: UserRes


class LogoutRes(BaseModel):
    revoked: int


class RegisterReq(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=256)
    role: RoleName = RoleName.FAMILYADMIN
    account_id: UUID | None = None
    division_id: UUID | None = None
    student_id: UUID | None = None
    dni: str | None = Field(default=None, max_length=20)
    phone: str | None = Field(default=None, max_length=30)


class RegisterRes(BaseModel):
    user: UserRes
    association_id: UUID | None = None
    shared_association_ids: list[UUID] = Field(default_factory=list)


class ChangePasswordReq(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=256)
    new_password: str = Field(..., min_length=1, max_length=256)


class ChangePasswordRes(BaseModel):
    revoked_sessions: int


class MeRes(BaseModel):
    user: UserRes
    role: RoleName
    account_id: UUID | None = None
    active_association: ActiveAssociationRes | None = None
    permissions: list[PermissionGrantSchema]
