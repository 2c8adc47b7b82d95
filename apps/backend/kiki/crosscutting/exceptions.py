"""
===============================================================================
MÓDULO: Excepciones internas del backend
===============================================================================

CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  KikiError + subclases

Responsabilidades:
  - Errores de infraestructura con error_code estable
  - error_id (uuid4) para correlacionar respuesta y log

Colaboradores:
  - api/exception_handlers.py (mapea a RFC7807)
  - infrastructure/repositories/postgres/* (lanzan DatabaseError)

Notas:
  - Los errores de negocio NO viajan como excepciones: los use cases
    devuelven resultados tipados con un código de error.
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class KikiError(Exception):
    """Base para errores internos del sistema."""

    error_code: str = "KIKI_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "error_id": self.error_id,
        }


class DatabaseError(KikiError):
    """Errores de DB (conexión, query, timeout, pool)."""

    error_code: str = "DATABASE_ERROR"


class UniqueViolationError(DatabaseError):
    """Se violó una constraint UNIQUE (carrera entre check y insert)."""

    error_code: str = "UNIQUE_VIOLATION"

    def __init__(self, message: str, *, constraint: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.constraint = constraint
