"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/students.py
============================================================
Class: InMemoryStudentRepository

Responsibilities:
  - Alumnos en memoria.
  - Replicar unicidad de DNI, email (si existe) y código QR.
  - Búsqueda case-insensitive por nombre, apellido o DNI.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Dict
from uuid import UUID

from ....crosscutting.exceptions import UniqueViolationError
from ....domain.entities import Student


class InMemoryStudentRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._students: Dict[UUID, Student] = {}

    def _check_unique(self, student: Student) -> None:
        for other in self._students.values():
            if other.id == student.id:
                continue
            if other.dni == student.dni:
                raise UniqueViolationError("Student DNI already exists", constraint="uq_students_dni")
            if student.email and other.email == student.email:
                raise UniqueViolationError(
                    "Student email already exists", constraint="uq_students_email"
                )
            if student.qr_code and other.qr_code == student.qr_code:
                raise UniqueViolationError(
                    "Student QR code already exists", constraint="uq_students_qr_code"
                )

    def create_student(self, student: Student) -> Student:
        with self._lock:
            self._check_unique(student)
            self._students[student.id] = replace(student)
            return replace(student)

    def get_student(self, student_id: UUID) -> Student | None:
        with self._lock:
            student = self._students.get(student_id)
            return replace(student) if student else None

    def _find(self, predicate) -> Student | None:
        with self._lock:
            for student in self._students.values():
                if predicate(student):
                    return replace(student)
        return None

    def get_student_by_dni(self, dni: str) -> Student | None:
        return self._find(lambda s: s.dni == dni)

    def get_student_by_email(self, email: str) -> Student | None:
        return self._find(lambda s: s.email is not None and s.email == email)

    def list_students(
        self,
        account_id: UUID,
        *,
        division_id: UUID | None = None,
        search: str | None = None,
        include_inactive: bool = False,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Student], int]:
        needle = (search or "").strip().lower()
        with self._lock:
            matches = [
                replace(s)
                for s in self._students.values()
                if s.account_id == account_id
                and (division_id is None or s.division_id == division_id)
                and (include_inactive or s.is_active)
                and (
                    not needle
                    or needle in s.first_name.lower()
                    or needle in s.last_name.lower()
                    or needle in s.dni.lower()
                )
            ]
        matches.sort(key=lambda s: (s.last_name.lower(), s.first_name.lower()))
        return matches[offset : offset + limit], len(matches)

    def update_student(self, student: Student) -> Student | None:
        with self._lock:
            if student.id not in self._students:
                return None
            self._check_unique(student)
            self._students[student.id] = replace(student)
            return replace(student)
