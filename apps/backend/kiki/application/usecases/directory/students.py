"""
===============================================================================
USE CASES: Students (alumnos)
===============================================================================

Reglas:
  - create: familias:crear en la cuenta; la división debe ser de la cuenta y
    estar activa; DNI único; email único si viene; se genera el código QR.
  - list / get: lectura de familias + alcance de tenant.
  - update: familias:actualizar; re-chequea DNI/email y permite mover de
    división dentro de la misma cuenta.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from uuid import UUID, uuid4

from ....crosscutting.exceptions import UniqueViolationError
from ....crosscutting.pagination import PageParams
from ....domain.access import Principal, can_act_on_account
from ....domain.entities import Student, generate_qr_code
from ....domain.permissions import Action, Module
from ....domain.repositories import DivisionRepository, StudentRepository
from .directory_results import (
    DirectoryError,
    StudentListResult,
    StudentResult,
    can_read_account,
    check_length,
    conflict,
    forbidden,
    not_found,
    validation,
)


@dataclass(frozen=True)
class CreateStudentInput:
    account_id: UUID
    division_id: UUID
    first_name: str
    last_name: str
    dni: str
    email: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class UpdateStudentInput:
    first_name: str | None = None
    last_name: str | None = None
    dni: str | None = None
    email: str | None = None
    avatar_url: str | None = None
    division_id: UUID | None = None
    is_active: bool | None = None


def _check_division(
    divisions: DivisionRepository, account_id: UUID, division_id: UUID
) -> DirectoryError | None:
    division = divisions.get_division(division_id)
    if division is None or not division.is_active:
        return not_found("División no encontrada.")
    if division.account_id != account_id:
        return validation("La división no pertenece a la cuenta.")
    return None


class _StudentUniqueness:
    def __init__(self, students: StudentRepository) -> None:
        self._students = students

    def check(
        self, *, dni: str | None, email: str | None, exclude: UUID | None = None
    ) -> DirectoryError | None:
        if dni:
            existing = self._students.get_student_by_dni(dni)
            if existing is not None and existing.id != exclude:
                return conflict("Ya existe un alumno con ese DNI.")
        if email:
            existing = self._students.get_student_by_email(email)
            if existing is not None and existing.id != exclude:
                return conflict("Ya existe un alumno con ese email.")
        return None


def _normalize_email(email: str | None) -> str | None:
    value = (email or "").strip().lower()
    return value or None


class CreateStudentUseCase:
    def __init__(
        self,
        student_repository: StudentRepository,
        division_repository: DivisionRepository,
    ) -> None:
        self._students = student_repository
        self._divisions = division_repository
        self._uniqueness = _StudentUniqueness(student_repository)

    def execute(self, input_data: CreateStudentInput, actor: Principal | None) -> StudentResult:
        # 1. Autorización
        if not can_act_on_account(actor, input_data.account_id, Module.FAMILIAS, Action.CREAR):
            return StudentResult(error=forbidden())

        # 2. Validación
        first_name = (input_data.first_name or "").strip()
        last_name = (input_data.last_name or "").strip()
        dni = (input_data.dni or "").strip()
        email = _normalize_email(input_data.email)

        for error in (
            check_length(first_name, "El nombre", 1, 100),
            check_length(last_name, "El apellido", 1, 100),
            check_length(dni, "El DNI", 1, 20),
        ):
            if error:
                return StudentResult(error=error)
        if email and "@" not in email:
            return StudentResult(error=validation("Email inválido."))

        error = _check_division(self._divisions, input_data.account_id, input_data.division_id)
        if error:
            return StudentResult(error=error)

        error = self._uniqueness.check(dni=dni, email=email)
        if error:
            return StudentResult(error=error)

        # 3. Alta con QR
        student_id = uuid4()
        try:
            student = self._students.create_student(
                Student(
                    id=student_id,
                    account_id=input_data.account_id,
                    division_id=input_data.division_id,
                    first_name=first_name,
                    last_name=last_name,
                    dni=dni,
                    email=email,
                    avatar_url=input_data.avatar_url,
                    qr_code=generate_qr_code(student_id, dni),
                    created_by=actor.user_id,
                )
            )
        except UniqueViolationError:
            return StudentResult(error=conflict("Ya existe un alumno con esos datos."))
        return StudentResult(student=student)


class ListStudentsUseCase:
    def __init__(self, student_repository: StudentRepository) -> None:
        self._students = student_repository

    def execute(
        self,
        account_id: UUID,
        actor: Principal | None,
        params: PageParams,
        *,
        division_id: UUID | None = None,
        search: str | None = None,
        include_inactive: bool = False,
    ) -> StudentListResult:
        if not can_read_account(actor, Module.FAMILIAS, account_id):
            return StudentListResult(error=forbidden())

        students, total = self._students.list_students(
            account_id,
            division_id=division_id,
            search=search,
            include_inactive=include_inactive,
            limit=params.limit,
            offset=params.offset,
        )
        return StudentListResult(students=students, total=total)


class GetStudentUseCase:
    def __init__(self, student_repository: StudentRepository) -> None:
        self._students = student_repository

    def execute(self, student_id: UUID, actor: Principal | None) -> StudentResult:
        student = self._students.get_student(student_id)
        if student is None:
            return StudentResult(error=not_found("Alumno no encontrado."))
        if not can_read_account(actor, Module.FAMILIAS, student.account_id):
            return StudentResult(error=forbidden())
        return StudentResult(student=student)


class UpdateStudentUseCase:
    def __init__(
        self,
        student_repository: StudentRepository,
        division_repository: DivisionRepository,
    ) -> None:
        self._students = student_repository
        self._divisions = division_repository
        self._uniqueness = _StudentUniqueness(student_repository)

    def execute(
        self, student_id: UUID, input_data: UpdateStudentInput, actor: Principal | None
    ) -> StudentResult:
        student = self._students.get_student(student_id)
        if student is None:
            return StudentResult(error=not_found("Alumno no encontrado."))
        if not can_act_on_account(actor, student.account_id, Module.FAMILIAS, Action.ACTUALIZAR):
            return StudentResult(error=forbidden())

        changes: dict = {}
        for field_name, label in (("first_name", "El nombre"), ("last_name", "El apellido")):
            value = getattr(input_data, field_name)
            if value is not None:
                value = value.strip()
                error = check_length(value, label, 1, 100)
                if error:
                    return StudentResult(error=error)
                changes[field_name] = value

        if input_data.dni is not None:
            dni = input_data.dni.strip()
            error = check_length(dni, "El DNI", 1, 20)
            if error:
                return StudentResult(error=error)
            changes["dni"] = dni
        if input_data.email is not None:
            email = _normalize_email(input_data.email)
            if email and "@" not in email:
                return StudentResult(error=validation("Email inválido."))
            changes["email"] = email
        if input_data.avatar_url is not None:
            changes["avatar_url"] = input_data.avatar_url.strip() or None
        if input_data.is_active is not None:
            changes["is_active"] = input_data.is_active
        if input_data.division_id is not None and input_data.division_id != student.division_id:
            error = _check_division(self._divisions, student.account_id, input_data.division_id)
            if error:
                return StudentResult(error=error)
            changes["division_id"] = input_data.division_id

        if not changes:
            return StudentResult(student=student)

        error = self._uniqueness.check(
            dni=changes.get("dni"), email=changes.get("email"), exclude=student.id
        )
        if error:
            return StudentResult(error=error)

        try:
            updated = self._students.update_student(
                replace(student, updated_at=datetime.now(timezone.utc), **changes)
            )
        except UniqueViolationError:
            return StudentResult(error=conflict("Ya existe un alumno con esos datos."))
        if updated is None:
            return StudentResult(error=not_found("Alumno no encontrado."))
        return StudentResult(student=updated)
