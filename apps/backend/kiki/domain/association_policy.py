"""
===============================================================================
TARJETA CRC — domain/association_policy.py
===============================================================================

Módulo:
    Política del ciclo de vida de asociaciones (Shared)

Responsabilidades:
    - Decidir el estado inicial de una asociación según su origen.
    - Definir la máquina de estados pending -> active -> inactive.
    - Validar el scope (división / alumno) que exige cada rol.

Colaboradores:
    - domain.entities.AssociationStatus
    - domain.roles.RoleName
    - application.usecases.associations: create / approve / deactivate.

Reglas:
    - Invitaciones y auto-registros arrancan pending.
    - El aprovisionamiento del sistema (alta de institución, alta por un
      administrador, CLI) arranca active.
    - Lo que un familyadmin comparte desde su alcance arranca active.
    - approve: solo desde pending.
    - reject / deactivate: desde cualquier estado hacia inactive.
    - Solo las asociaciones active otorgan permisos.
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Final, Mapping
from uuid import UUID

from .entities import AssociationStatus
from .roles import FAMILY_ROLES, RoleName


class AssociationOrigin(str, Enum):
    INVITATION = "invitation"
    REGISTRATION = "registration"
    PROVISIONING = "provisioning"
    SHARE = "share"


class AssociationEvent(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    DEACTIVATE = "deactivate"


_INITIAL_STATUS: Final[Mapping[AssociationOrigin, AssociationStatus]] = {
    AssociationOrigin.INVITATION: AssociationStatus.PENDING,
    AssociationOrigin.REGISTRATION: AssociationStatus.PENDING,
    AssociationOrigin.PROVISIONING: AssociationStatus.ACTIVE,
    AssociationOrigin.SHARE: AssociationStatus.ACTIVE,
}

_TRANSITIONS: Final[
    Mapping[AssociationEvent, tuple[frozenset[AssociationStatus], AssociationStatus]]
] = {
    AssociationEvent.APPROVE: (
        frozenset({AssociationStatus.PENDING}),
        AssociationStatus.ACTIVE,
    ),
    AssociationEvent.REJECT: (frozenset(AssociationStatus), AssociationStatus.INACTIVE),
    AssociationEvent.DEACTIVATE: (
        frozenset(AssociationStatus),
        AssociationStatus.INACTIVE,
    ),
}


def initial_status(origin: AssociationOrigin) -> AssociationStatus:
    return _INITIAL_STATUS[origin]


def next_status(
    current: AssociationStatus, event: AssociationEvent
) -> AssociationStatus | None:
    """Estado destino, o None si el evento no aplica al estado actual."""
    allowed_from, target = _TRANSITIONS[event]
    if current not in allowed_from:
        return None
    return target


def validate_scope(
    role_name: RoleName,
    *,
    division_id: UUID | None,
    student_id: UUID | None,
) -> str | None:
    """
    Verifica que el scope sea el que exige el rol.

    Retorna un mensaje de error o None si es válido.
    """
    if role_name in (RoleName.SUPERADMIN, RoleName.ADMINACCOUNT):
        if division_id is not None or student_id is not None:
            return f"El rol {role_name.value} aplica a toda la cuenta (sin división ni alumno)."
        return None

    if role_name == RoleName.COORDINADOR:
        if division_id is None:
            return "El rol coordinador requiere una división."
        if student_id is not None:
            return "El rol coordinador no se asocia a un alumno."
        return None

    if role_name in FAMILY_ROLES:
        if division_id is None or student_id is None:
            return f"El rol {role_name.value} requiere división y alumno."
        return None

    return f"Rol no soportado: {role_name.value}"
