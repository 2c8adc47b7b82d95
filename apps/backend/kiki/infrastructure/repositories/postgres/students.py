"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/students.py
============================================================
Class: PostgresStudentRepository

Responsibilities:
  - CRUD de `students`.
  - Unicidad de dni / email / qr_code resuelta por constraints.
  - Búsqueda ILIKE por nombre, apellido o DNI.
============================================================
"""

from __future__ import annotations

from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import Student
from ._base import PostgresRepositoryBase

_COLUMNS = (
    "id, account_id, division_id, first_name, last_name, dni, email, avatar_url, "
    "qr_code, created_by, is_active, created_at, updated_at"
)


def _row_to_student(row: tuple) -> Student:
    return Student(
        id=row[0],
        account_id=row[1],
        division_id=row[2],
        first_name=row[3],
        last_name=row[4],
        dni=row[5],
        email=row[6],
        avatar_url=row[7],
        qr_code=row[8],
        created_by=row[9],
        is_active=row[10],
        created_at=row[11],
        updated_at=row[12],
    )


class PostgresStudentRepository(PostgresRepositoryBase):
    _SQL_INSERT = f"""
        INSERT INTO students (id, account_id, division_id, first_name, last_name, dni, email,
                              avatar_url, qr_code, created_by, is_active, created_at, updated_at)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {_COLUMNS}
    """

    _SQL_GET = f"SELECT {_COLUMNS} FROM students WHERE id = %s"
    _SQL_GET_BY_DNI = f"SELECT {_COLUMNS} FROM students WHERE dni = %s"
    _SQL_GET_BY_EMAIL = f"SELECT {_COLUMNS} FROM students WHERE email = %s"

    _SQL_LIST = f"""
        SELECT {_COLUMNS}, COUNT(*) OVER() AS total
        FROM students
        WHERE account_id = %s
          AND (%s::uuid IS NULL OR division_id = %s::uuid)
          AND (%s OR is_active)
          AND (%s::text IS NULL
               OR first_name ILIKE %s OR last_name ILIKE %s OR dni ILIKE %s)
        ORDER BY lower(last_name) ASC, lower(first_name) ASC, id ASC
        LIMIT %s OFFSET %s
    """

    _SQL_UPDATE = f"""
        UPDATE students
        SET division_id = %s, first_name = %s, last_name = %s, dni = %s, email = %s,
            avatar_url = %s, is_active = %s, updated_at = %s
        WHERE id = %s
        RETURNING {_COLUMNS}
    """

    def create_student(self, student: Student) -> Student:
        row = self._fetchone(
            query=self._SQL_INSERT,
            params=[
                student.id,
                student.account_id,
                student.division_id,
                student.first_name,
                student.last_name,
                student.dni,
                student.email,
                student.avatar_url,
                student.qr_code,
                student.created_by,
                student.is_active,
                student.created_at,
                student.updated_at,
            ],
            context_msg="PostgresStudentRepository: create_student failed",
            extra={"account_id": str(student.account_id)},
        )
        if not row:
            raise DatabaseError("PostgresStudentRepository: create_student returned no row")
        return _row_to_student(row)

    def _get_one(self, query: str, value: object, what: str) -> Student | None:
        row = self._fetchone(
            query=query,
            params=[value],
            context_msg=f"PostgresStudentRepository: get by {what} failed",
            extra={},
        )
        return _row_to_student(row) if row else None

    def get_student(self, student_id: UUID) -> Student | None:
        return self._get_one(self._SQL_GET, student_id, "id")

    def get_student_by_dni(self, dni: str) -> Student | None:
        return self._get_one(self._SQL_GET_BY_DNI, dni, "dni")

    def get_student_by_email(self, email: str) -> Student | None:
        return self._get_one(self._SQL_GET_BY_EMAIL, email, "email")

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
        needle = (search or "").strip()
        like = f"%{needle}%" if needle else None
        rows = self._fetchall(
            query=self._SQL_LIST,
            params=[
                account_id,
                division_id,
                division_id,
                include_inactive,
                like,
                like,
                like,
                like,
                limit,
                offset,
            ],
            context_msg="PostgresStudentRepository: list_students failed",
            extra={"account_id": str(account_id)},
        )
        total = int(rows[0][-1]) if rows else 0
        return [_row_to_student(r) for r in rows], total

    def update_student(self, student: Student) -> Student | None:
        row = self._fetchone(
            query=self._SQL_UPDATE,
            params=[
                student.division_id,
                student.first_name,
                student.last_name,
                student.dni,
                student.email,
                student.avatar_url,
                student.is_active,
                student.updated_at,
                student.id,
            ],
            context_msg="PostgresStudentRepository: update_student failed",
            extra={"student_id": str(student.id)},
        )
        return _row_to_student(row) if row else None
