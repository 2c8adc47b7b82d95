"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/_base.py
============================================================
Class: PostgresRepositoryBase

Responsibilities:
  - Resolver el pool (inyectado o global).
  - Ejecutar SQL parametrizado con manejo de errores consistente:
    logger.exception + DatabaseError.
  - Traducir violaciones de unicidad a UniqueViolationError (con el
    nombre de la constraint) para que los use cases respondan CONFLICT.

Collaborators:
  - psycopg_pool.ConnectionPool
  - infrastructure.db.pool.get_pool
  - crosscutting.exceptions
============================================================
"""

from __future__ import annotations

from typing import Iterable, Optional

from psycopg import errors as pg_errors
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError, UniqueViolationError
from ....crosscutting.logger import logger


def wrap_db_error(exc: Exception, context_msg: str, extra: dict) -> DatabaseError:
    """Convierte una excepción de psycopg en el error de infraestructura adecuado."""
    if isinstance(exc, pg_errors.UniqueViolation):
        constraint = getattr(getattr(exc, "diag", None), "constraint_name", None)
        logger.warning(
            context_msg, extra={**extra, "constraint": constraint, "error": "unique_violation"}
        )
        return UniqueViolationError(f"{context_msg}: unique violation", constraint=constraint)

    logger.exception(context_msg, extra={**extra, "error": str(exc)})
    return DatabaseError(f"{context_msg}: {exc}")


class PostgresRepositoryBase:
    def __init__(self, pool: Optional[ConnectionPool] = None):
        # Pool inyectable para tests. En prod se obtiene del pool global.
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool
        from ...db.pool import get_pool

        return get_pool()

    def _fetchone(
        self, *, query: str, params: Iterable[object], context_msg: str, extra: dict
    ) -> tuple | None:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).fetchone()
        except Exception as exc:
            raise wrap_db_error(exc, context_msg, extra) from exc

    def _fetchall(
        self, *, query: str, params: Iterable[object], context_msg: str, extra: dict
    ) -> list[tuple]:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).fetchall()
        except Exception as exc:
            raise wrap_db_error(exc, context_msg, extra) from exc

    def _execute(
        self, *, query: str, params: Iterable[object], context_msg: str, extra: dict
    ) -> int:
        """Ejecuta un comando sin RETURNING; devuelve filas afectadas."""
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).rowcount
        except Exception as exc:
            raise wrap_db_error(exc, context_msg, extra) from exc
