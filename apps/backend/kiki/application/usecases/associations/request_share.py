"""
===============================================================================
USE CASE: Request Share (familyadmin comparte su alcance)
===============================================================================

Un familyadmin invita a otra persona (por email) a su mismo alcance
cuenta / división / alumno.

Reglas:
  - Solo familyadmin con asociación activa acotada a un alumno y
    familias:actualizar.
  - El rol a otorgar es familiar (familyviewer por defecto) y no puede
    superar la jerarquía del actor.
  - Email registrado: se crea la asociación directamente (origen share,
    active). Conflicto si ya tiene una viva con el mismo alcance.
  - Email no registrado: se guarda una solicitud pending. Conflicto si ya
    hay una pending para el mismo email y alumno.
  - Al registrarse ese email, consume_requested_shares convierte cada
    solicitud pending en una asociación active.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from ....crosscutting.exceptions import UniqueViolationError
from ....crosscutting.logger import logger
from ....domain.access import Principal
from ....domain.association_policy import AssociationOrigin, initial_status
from ....domain.entities import Association, RequestedShare, User
from ....domain.permissions import Action, Module
from ....domain.repositories import (
    AssociationRepository,
    RequestedShareRepository,
    UserRepository,
)
from ....domain.roles import FAMILY_ROLES, RoleName, can_assign_role
from .association_results import (
    AssociationError,
    AssociationErrorCode,
    ShareResult,
    forbidden,
)
from .create_association import create_live_association


@dataclass(frozen=True)
class RequestShareInput:
    email: str
    role_name: RoleName = RoleName.FAMILYVIEWER


def _error(code: AssociationErrorCode, message: str) -> ShareResult:
    return ShareResult(error=AssociationError(code, message))


class RequestShareUseCase:
    def __init__(
        self,
        user_repository: UserRepository,
        association_repository: AssociationRepository,
        requested_share_repository: RequestedShareRepository,
    ) -> None:
        self._users = user_repository
        self._associations = association_repository
        self._requests = requested_share_repository

    def execute(self, input_data: RequestShareInput, actor: Principal | None) -> ShareResult:
        # 1. Autorización: familyadmin actuando sobre un alumno
        if (
            actor is None
            or actor.role_name != RoleName.FAMILYADMIN
            or actor.division_id is None
            or actor.student_id is None
            or not actor.can(Module.FAMILIAS, Action.ACTUALIZAR)
        ):
            return ShareResult(
                error=forbidden("Solo un administrador familiar puede compartir su alcance.")
            )

        # 2. Validación
        email = (input_data.email or "").strip().lower()
        if "@" not in email:
            return _error(AssociationErrorCode.VALIDATION_ERROR, "Email inválido.")
        if email == actor.user.email:
            return _error(
                AssociationErrorCode.VALIDATION_ERROR,
                "No podés compartir tu alcance con vos mismo.",
            )
        if input_data.role_name not in FAMILY_ROLES:
            return _error(
                AssociationErrorCode.VALIDATION_ERROR,
                "Solo se pueden compartir roles familiares.",
            )
        if not can_assign_role(actor.role_name, input_data.role_name):
            return ShareResult(
                error=forbidden("No puede otorgar un rol de mayor jerarquía.")
            )

        # 3a. Email registrado: asociación directa
        user = self._users.get_user_by_email(email)
        if user is not None:
            created = create_live_association(
                self._associations,
                Association(
                    user_id=user.id,
                    account_id=actor.account_id,
                    role_name=input_data.role_name,
                    division_id=actor.division_id,
                    student_id=actor.student_id,
                    status=initial_status(AssociationOrigin.SHARE),
                    created_by=actor.user_id,
                ),
            )
            return ShareResult(association=created.association, error=created.error)

        # 3b. Email sin cuenta: solicitud pending
        conflict = _error(
            AssociationErrorCode.CONFLICT,
            "Ya existe una solicitud pendiente para este email.",
        )
        if (
            self._requests.find_pending(
                email=email, account_id=actor.account_id, student_id=actor.student_id
            )
            is not None
        ):
            return conflict
        try:
            request = self._requests.create_request(
                RequestedShare(
                    requested_by=actor.user_id,
                    requested_email=email,
                    account_id=actor.account_id,
                    role_name=input_data.role_name,
                    division_id=actor.division_id,
                    student_id=actor.student_id,
                )
            )
        except UniqueViolationError:
            return conflict
        return ShareResult(request=request)


def consume_requested_shares(
    requests: RequestedShareRepository,
    associations: AssociationRepository,
    user: User,
) -> list[Association]:
    """
    Convierte las solicitudes pending del email en asociaciones active.

    Una solicitud cuyo alcance ya está vivo se cierra igual (el usuario
    ya tiene ese acceso).
    """
    created: list[Association] = []
    for request in requests.list_pending_for_email(user.email):
        now = datetime.now(timezone.utc)
        if not requests.mark_completed(request.id, completed_by=user.id, completed_at=now):
            continue
        result = create_live_association(
            associations,
            Association(
                user_id=user.id,
                account_id=request.account_id,
                role_name=request.role_name,
                division_id=request.division_id,
                student_id=request.student_id,
                status=initial_status(AssociationOrigin.SHARE),
                created_by=request.requested_by,
            ),
        )
        if result.error is not None:
            logger.info(
                "Requested share skipped",
                extra={"request_id": str(request.id), "reason": result.error.message},
            )
            continue
        created.append(result.association)
    return created
