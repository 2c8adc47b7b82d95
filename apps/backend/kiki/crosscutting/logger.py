"""
===============================================================================
MÓDULO: Logger estructurado (JSON)
===============================================================================

CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  JSONFormatter + setup_logger()

Responsabilidades:
  - Emitir cada LogRecord como una línea JSON
  - Agregar contexto del request (request_id, method, path)
  - Redactar credenciales (passwords, tokens, cookies de sesión)

Colaboradores:
  - kiki/context.py (ContextVars)
  - crosscutting/config.py (log_level, log_json)
===============================================================================
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

# Atributos estándar del LogRecord; lo demás viene de extra={...}.
_RESERVED_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}

_REDACTED = "***REDACTADO***"


class _Redactor:
    """
    Clase:
      _Redactor

    Responsabilidades:
      - Ocultar valores cuyo nombre de campo sugiere una credencial
      - Acotar strings y anidamiento para que un log nunca explote
    """

    SENSITIVE_KEYS = frozenset(
        {
            "password",
            "new_password",
            "current_password",
            "password_hash",
            "secret",
            "jwt_secret",
            "token",
            "access_token",
            "refresh_token",
            "authorization",
            "cookie",
            "set-cookie",
        }
    )

    def __init__(self, max_str: int = 4_000, max_depth: int = 4):
        self._max_str = max_str
        self._max_depth = max_depth

    def sanitize(self, value: Any, *, key: str | None = None, depth: int = 0) -> Any:
        if key is not None and key.lower() in self.SENSITIVE_KEYS:
            return _REDACTED
        if depth > self._max_depth:
            return "***TRUNCADO***"
        if isinstance(value, str):
            if len(value) > self._max_str:
                return value[: self._max_str] + "…(truncado)"
            return value
        if isinstance(value, dict):
            return {
                str(k): self.sanitize(v, key=str(k), depth=depth + 1)
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.sanitize(v, key=key, depth=depth + 1) for v in value]
        if value is None or isinstance(value, (bool, int, float)):
            return value
        return str(value)


class JSONFormatter(logging.Formatter):
    """Convierte LogRecord -> JSON (una línea por evento)."""

    def __init__(self, service: str = "kiki-api"):
        super().__init__()
        self._service = service
        self._redactor = _Redactor()

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self._service,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        from ..context import get_context_dict

        payload.update(get_context_dict())

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            payload[key] = self._redactor.sanitize(value, key=key)

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(name: str = "kiki-api") -> logging.Logger:
    """
    Configura el logger de la aplicación (idempotente ante reimports).

    El nivel y el formato salen de Settings; si la config todavía no es
    válida (por ejemplo, durante la importación en tests) se usan defaults.
    """
    log = logging.getLogger(name)

    level = "INFO"
    use_json = True
    try:
        from .config import get_settings

        settings = get_settings()
        level = (settings.log_level or "INFO").upper()
        use_json = settings.log_json
    except ValueError:
        # R: ValidationError de pydantic hereda de ValueError.
        pass

    log.setLevel(getattr(logging, level, logging.INFO))
    log.propagate = False

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter(name)
            if use_json
            else logging.Formatter("%(asctime)s %(levelname)s %(message)s")
        )
        log.addHandler(handler)

    return log


logger = setup_logger()
