"""
===============================================================================
TARJETA CRC — kiki/interfaces/api/http/routers/students.py
===============================================================================

Class/Module:
    Students Router

Responsibilities:
    - Endpoints de alumnos de una cuenta (alta con QR, listado, edición).
    - Traducir DirectoryError -> RFC7807.
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from .....application.usecases.directory import (
    CreateStudentInput,
    CreateStudentUseCase,
    GetStudentUseCase,
    ListStudentsUseCase,
    UpdateStudentInput,
    UpdateStudentUseCase,
)
from .....container import (
    get_create_student_use_case,
    get_get_student_use_case,
    get_list_students_use_case,
    get_update_student_use_case,
)
from .....crosscutting.pagination import MAX_LIMIT, PageParams, build_page
from .....domain.access import Principal
from .....identity.access_control import require_principal
from ..error_mapping import raise_directory_error
from ..schemas.students import (
    CreateStudentReq,
    StudentRes,
    StudentsListRes,
    UpdateStudentReq,
    to_student_res,
)

router = APIRouter(tags=["students"])


@router.get("/accounts/{account_id}/students", response_model=StudentsListRes)
def list_students(
    account_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    division_id: UUID | None = Query(None),
    search: str | None = Query(None, max_length=100),
    include_inactive: bool = Query(False),
    use_case: ListStudentsUseCase = Depends(get_list_students_use_case),
    principal: Principal = Depends(require_principal()),
):
    params = PageParams.of(page, limit)
    result = use_case.execute(
        account_id,
        principal,
        params,
        division_id=division_id,
        search=search,
        include_inactive=include_inactive,
    )
    if result.error is not None:
        raise_directory_error(result.error)

    page_data = build_page([to_student_res(s) for s in result.students], params, result.total)
    return StudentsListRes(items=page_data.items, pagination=page_data.pagination)


@router.post("/accounts/{account_id}/students", response_model=StudentRes, status_code=201)
def create_student(
    account_id: UUID,
    req: CreateStudentReq,
    use_case: CreateStudentUseCase = Depends(get_create_student_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(
        CreateStudentInput(
            account_id=account_id,
            division_id=req.division_id,
            first_name=req.first_name,
            last_name=req.last_name,
            dni=req.dni,
            email=req.email,
            avatar_url=req.avatar_url,
        ),
        principal,
    )
    if result.error is not None:
        raise_directory_error(result.error)
    return to_student_res(result.student)


@router.get("/students/{student_id}", response_model=StudentRes)
def get_student(
    student_id: UUID,
    use_case: GetStudentUseCase = Depends(get_get_student_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(student_id, principal)
    if result.error is not None:
        raise_directory_error(result.error)
    return to_student_res(result.student)


@router.patch("/students/{student_id}", response_model=StudentRes)
def update_student(
    student_id: UUID,
    req: UpdateStudentReq,
    use_case: UpdateStudentUseCase = Depends(get_update_student_use_case),
    principal: Principal = Depends(require_principal()),
):
    result = use_case.execute(
        student_id,
        UpdateStudentInput(
            first_name=req.first_name,
            last_name=req.last_name,
            dni=req.dni,
            email=req.email,
            avatar_url=req.avatar_url,
            division_id=req.division_id,
            is_active=req.is_active,
        ),
        principal,
    )
    if result.error is not None:
        raise_directory_error(result.error)
    return to_student_res(result.student)
