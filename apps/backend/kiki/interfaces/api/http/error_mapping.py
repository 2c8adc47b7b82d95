"""
===============================================================================
TARJETA CRC — error_mapping.py (UseCase Error -> HTTP RFC7807)
===============================================================================

Responsabilidades:
  - Traducir códigos de error de casos de uso a AppHTTPException RFC7807.
  - Centralizar el mapeo para que los routers no lo dupliquen.
  - Mantener application/domain libres de HTTP.

Tabla:
  VALIDATION_ERROR -> 422
  NOT_FOUND        -> 404
  INVALID_CREDENTIALS, USER_*, REFRESH_TOKEN_* -> 401 (con su código)
  FORBIDDEN, ASSOCIATION_PENDING -> 403
  CONFLICT         -> 409
  INVALID_STATE    -> 409

Colaboradores:
  - application.usecases.{associations,auth,directory} (códigos tipados)
  - crosscutting.error_responses (AppHTTPException + factories)
===============================================================================
"""

from __future__ import annotations

from typing import NoReturn

from ....application.usecases.associations import AssociationError, AssociationErrorCode
from ....application.usecases.auth import AuthError, AuthErrorCode
from ....application.usecases.directory import DirectoryError, DirectoryErrorCode
from ....crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    conflict,
    forbidden,
    internal_error,
    invalid_state,
    unauthorized,
    validation_error,
)

_AUTH_401 = {
    AuthErrorCode.INVALID_CREDENTIALS,
    AuthErrorCode.USER_NOT_FOUND,
    AuthErrorCode.USER_NOT_APPROVED,
    AuthErrorCode.USER_REJECTED,
    AuthErrorCode.REFRESH_TOKEN_INVALID,
    AuthErrorCode.REFRESH_TOKEN_EXPIRED,
    AuthErrorCode.REFRESH_TOKEN_REVOKED,
}


def _not_found(message: str) -> AppHTTPException:
    return AppHTTPException(404, ErrorCode.NOT_FOUND, message)


def _raise_generic(code_value: str, message: str) -> NoReturn:
    """Códigos compartidos por los tres grupos de use cases."""
    if code_value == "VALIDATION_ERROR":
        raise validation_error(message)
    if code_value == "NOT_FOUND":
        raise _not_found(message)
    if code_value == "FORBIDDEN":
        raise forbidden(message)
    if code_value == "CONFLICT":
        raise conflict(message)
    if code_value == "INVALID_STATE":
        raise invalid_state(message)

    # Un código nuevo sin mapeo es un bug del servidor.
    raise internal_error(message)


def raise_auth_error(error: AuthError) -> NoReturn:
    if error.code in _AUTH_401:
        raise unauthorized(error.message, code=ErrorCode(error.code.value))
    if error.code == AuthErrorCode.ASSOCIATION_PENDING:
        raise forbidden(error.message, code=ErrorCode.ASSOCIATION_PENDING)
    _raise_generic(error.code.value, error.message)


def raise_association_error(error: AssociationError) -> NoReturn:
    if not isinstance(error.code, AssociationErrorCode):
        raise internal_error(error.message)
    _raise_generic(error.code.value, error.message)


def raise_directory_error(error: DirectoryError) -> NoReturn:
    if not isinstance(error.code, DirectoryErrorCode):
        raise internal_error(error.message)
    _raise_generic(error.code.value, error.message)
