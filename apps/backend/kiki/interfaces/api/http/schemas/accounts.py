"""
===============================================================================
TARJETA CRC — schemas/accounts.py
===============================================================================

Responsabilidades:
    - DTOs de cuentas (instituciones) y alta con administrador inicial.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .....crosscutting.pagination import PaginationInfo
from .....domain.entities import Account


class CreateAccountReq(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    legal_name: str = Field(..., min_length=2, max_length=200)
    admin_email: str = Field(..., min_length=3, max_length=320)
    admin_name: str = Field(..., min_length=2, max_length=50)
    admin_password: str = Field(..., min_length=1, max_length=256)
    address: str | None = Field(default=None, max_length=200)
    logo_url: str | None = Field(default=None, max_length=500)


class UpdateAccountReq(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    legal_name: str | None = Field(default=None, max_length=200)
    address: str | None = Field(default=None, max_length=200)
    logo_url: str | None = Field(default=None, max_length=500)
    admin_email: str | None = Field(default=None, max_length=320)


class AccountRes(BaseModel):
    id: UUID
    name: str
    legal_name: str
    admin_email: str
    address: str | None = None
    logo_url: str | None = None
    admin_user_id: UUID | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class AccountsListRes(BaseModel):
    items: list[AccountRes]
    pagination: PaginationInfo


def to_account_res(account: Account) -> AccountRes:
    return AccountRes(
        id=account.id,
        name=account.name,
        legal_name=account.legal_name,
        admin_email=account.admin_email,
        address=account.address,
        logo_url=account.logo_url,
        admin_user_id=account.admin_user_id,
        is_active=account.is_active,
        created_at=account.created_at,
        updated_at=account.updated_at,
    )
