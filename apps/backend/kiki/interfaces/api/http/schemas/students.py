"""
===============================================================================
TARJETA CRC — schemas/students.py
===============================================================================

Responsabilidades:
    - DTOs de alumnos. qr_code es de solo lectura (lo genera el alta).
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .....crosscutting.pagination import PaginationInfo
from .....domain.entities import Student


class CreateStudentReq(BaseModel):
    division_id: UUID
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    dni: str = Field(..., min_length=1, max_length=20)
    email: str | None = Field(default=None, max_length=320)
    avatar_url: str | None = Field(default=None, max_length=500)


class UpdateStudentReq(BaseModel):
    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)
    dni: str | None = Field(default=None, max_length=20)
    email: str | None = Field(default=None, max_length=320)
    avatar_url: str | None = Field(default=None, max_length=500)
    division_id: UUID | None = None
    is_active: bool | None = None


class StudentRes(BaseModel):
    id: UUID
    account_id: UUID
    division_id: UUID
    first_name: str
    last_name: str
    full_name: str
    dni: str
    email: str | None = None
    avatar_url: str | None = None
    qr_code: str | None = None
    created_by: UUID | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class StudentsListRes(BaseModel):
    items: list[StudentRes]
    pagination: PaginationInfo


def to_student_res(student: Student) -> StudentRes:
    return StudentRes(
        id=student.id,
        account_id=student.account_id,
        division_id=student.division_id,
        first_name=student.first_name,
        last_name=student.last_name,
        full_name=student.full_name,
        dni=student.dni,
        email=student.email,
        avatar_url=student.avatar_url,
        qr_code=student.qr_code,
        created_by=student.created_by,
        is_active=student.is_active,
        created_at=student.created_at,
        updated_at=student.updated_at,
    )
