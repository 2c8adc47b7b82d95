"""
===============================================================================
CRC CARD — infrastructure/db/errors.py
===============================================================================

Componente:
  Errores tipados del pool de conexiones

Responsabilidades:
  - Distinguir "no inicializado" de "ya inicializado" en el ciclo de vida
    del pool.
===============================================================================
"""


class DatabasePoolError(Exception):
    """Base de errores del pool."""


class PoolAlreadyInitializedError(DatabasePoolError):
    """init_pool() llamado dos veces en el mismo proceso."""


class PoolNotInitializedError(DatabasePoolError):
    """Uso del pool sin init_pool()."""
