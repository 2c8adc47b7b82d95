"""
===============================================================================
TARJETA CRC — kiki/context.py (Contexto por request)
===============================================================================

Responsabilidades:
  - Guardar datos del request en curso (request_id, método, path, usuario).
  - Exponer el contexto como dict para enriquecer logs.
  - Limpiar el contexto al terminar el request.

Colaboradores:
  - crosscutting.middleware.RequestContextMiddleware: setea/limpia el contexto.
  - crosscutting.logger.JSONFormatter: lee get_context_dict().
  - identity.access_control: registra el usuario autenticado.

Restricciones:
  - Solo strings; vacío significa "no disponible".
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
http_method_var: ContextVar[str] = ContextVar("http_method", default="")
http_path_var: ContextVar[str] = ContextVar("http_path", default="")
user_id_var: ContextVar[str] = ContextVar("user_id", default="")
account_id_var: ContextVar[str] = ContextVar("account_id", default="")

_CONTEXT_VARS: dict[str, ContextVar[str]] = {
    "request_id": request_id_var,
    "method": http_method_var,
    "path": http_path_var,
    "user_id": user_id_var,
    "account_id": account_id_var,
}


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    request_id_var.set(request_id or "")
    http_method_var.set(method or "")
    http_path_var.set(path or "")


def set_principal_context(*, user_id: str = "", account_id: str = "") -> None:
    """Registra quién está actuando (y en qué cuenta) para los logs."""
    user_id_var.set(user_id or "")
    account_id_var.set(account_id or "")


def get_context_dict() -> dict[str, str]:
    """Contexto actual, omitiendo claves vacías."""
    return {key: var.get() for key, var in _CONTEXT_VARS.items() if var.get()}


def clear_context() -> None:
    for var in _CONTEXT_VARS.values():
        var.set("")
