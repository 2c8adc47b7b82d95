"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Componente:
  Pool de conexiones PostgreSQL (uno por proceso, backend postgres)

Responsabilidades:
  - Abrir el pool en el lifespan y cerrarlo al apagar.
  - Configurar cada conexión nueva (statement_timeout).
  - Responder el readiness check (ping_pool).

Colaboradores:
  - psycopg_pool.ConnectionPool
  - crosscutting.config.get_settings (timeout)
  - api.main (/readyz)

Reglas:
  - Doble init -> PoolAlreadyInitializedError.
  - get_pool sin init -> PoolNotInitializedError.
  - close_pool es idempotente; después se puede volver a inicializar.
===============================================================================
"""

from __future__ import annotations

import threading
from typing import Optional

from psycopg_pool import ConnectionPool

from ...crosscutting.config import get_settings
from ...crosscutting.logger import logger
from .errors import PoolAlreadyInitializedError, PoolNotInitializedError

APPLICATION_NAME = "kiki-backend"

_pool: Optional[ConnectionPool] = None
_pool_lock = threading.Lock()


def _configure_connection(conn) -> None:
    # R: 0 desactiva el límite (migraciones largas, scripts).
    timeout_ms = int(get_settings().db_statement_timeout_ms)
    if timeout_ms <= 0:
        return
    conn.execute(f"SET statement_timeout = {timeout_ms}")
    conn.commit()


def init_pool(database_url: str, min_size: int, max_size: int) -> ConnectionPool:
    global _pool

    with _pool_lock:
        if _pool is not None:
            raise PoolAlreadyInitializedError("El pool ya fue inicializado.")

        pool = ConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            kwargs={"application_name": APPLICATION_NAME},
            configure=_configure_connection,
            open=True,
        )
        _pool = pool

    logger.info("DB pool abierto", extra={"min_size": min_size, "max_size": max_size})
    return pool


def get_pool() -> ConnectionPool:
    pool = _pool
    if pool is None:
        raise PoolNotInitializedError("Pool no inicializado: falta init_pool().")
    return pool


def is_pool_initialized() -> bool:
    return _pool is not None


def ping_pool() -> bool:
    """True si hay pool y una conexión responde SELECT 1."""
    if _pool is None:
        return False
    try:
        with _pool.connection() as conn:
            conn.execute("SELECT 1")
    except Exception as exc:
        logger.warning("DB ping fallido", extra={"error": str(exc)})
        return False
    return True


def close_pool() -> None:
    global _pool

    with _pool_lock:
        pool, _pool = _pool, None

    if pool is None:
        return
    pool.close()
    logger.info("DB pool cerrado")
