"""
===============================================================================
ASSOCIATION USE CASE RESULTS (Shared Result / Error Models)
===============================================================================

Name:
    Association Use Case Results

Responsibilities:
    - Definir un set acotado de AssociationErrorCode.
    - Representar AssociationError (code + message).
    - Representar resultados de asociación, listados, puntero activo y
      solicitudes de compartir.

Collaborators:
    - domain.entities.Association / ActiveAssociation
    - interfaces.api.http.error_mapping (code -> HTTP status)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ....domain.entities import ActiveAssociation, Association, RequestedShare


class AssociationErrorCode(str, Enum):
    """
    Códigos:
      - VALIDATION_ERROR: scope o datos inválidos.
      - FORBIDDEN: actor sin permiso o sin alcance sobre la cuenta.
      - NOT_FOUND: asociación / usuario / cuenta / división / alumno inexistente.
      - CONFLICT: ya existe una asociación viva con el mismo scope.
      - INVALID_STATE: transición no permitida (ej. aprobar algo no pendiente).
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INVALID_STATE = "INVALID_STATE"


@dataclass(frozen=True)
class AssociationError:
    code: AssociationErrorCode
    message: str


@dataclass
class AssociationResult:
    association: Association | None = None
    error: AssociationError | None = None


@dataclass
class AssociationListResult:
    associations: list[Association] = field(default_factory=list)
    error: AssociationError | None = None


@dataclass
class ActiveAssociationResult:
    """active=None sin error significa "el usuario no está actuando con ninguna"."""

    active: ActiveAssociation | None = None
    error: AssociationError | None = None


@dataclass
class ShareResult:
    """Exactamente uno de association (email registrado) o request (no registrado)."""

    association: Association | None = None
    request: RequestedShare | None = None
    error: AssociationError | None = None


def forbidden(message: str = "Acceso denegado.") -> AssociationError:
    return AssociationError(code=AssociationErrorCode.FORBIDDEN, message=message)


def not_found(message: str) -> AssociationError:
    return AssociationError(code=AssociationErrorCode.NOT_FOUND, message=message)
