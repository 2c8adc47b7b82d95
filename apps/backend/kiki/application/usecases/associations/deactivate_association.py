"""
===============================================================================
USE CASE: Reject / Deactivate Association
===============================================================================

Cualquier estado -> inactive (idempotente si ya estaba inactive).

Reglas:
  - Requiere usuarios:administrar en la cuenta de la asociación.
  - Cascada: se borra todo puntero ActiveAssociation que la referencie.
    Las lecturas siguen revalidando de forma perezosa.
===============================================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from uuid import UUID

from ....crosscutting.logger import logger
from ....domain.access import Principal, can_act_on_account
from ....domain.association_policy import AssociationEvent, next_status
from ....domain.permissions import Action, Module
from ....domain.repositories import (
    ActiveAssociationRepository,
    AssociationRepository,
)
from .association_results import (
    AssociationError,
    AssociationErrorCode,
    AssociationResult,
    forbidden,
    not_found,
)


class _CloseAssociationUseCase:
    """Base de reject/deactivate: solo cambia el evento."""

    event: AssociationEvent

    def __init__(
        self,
        association_repository: AssociationRepository,
        active_association_repository: ActiveAssociationRepository,
    ) -> None:
        self._associations = association_repository
        self._active = active_association_repository

    def execute(
        self, association_id: UUID, actor: Principal | None
    ) -> AssociationResult:
        # 1. Cargar
        association = self._associations.get_association(association_id)
        if association is None:
            return AssociationResult(error=not_found("Asociación no encontrada."))

        # 2. Autorizar
        if not can_act_on_account(
            actor, association.account_id, Module.USUARIOS, Action.ADMINISTRAR
        ):
            return AssociationResult(error=forbidden())

        # 3. Transición
        target = next_status(association.status, self.event)
        if target is None:
            return AssociationResult(
                error=AssociationError(
                    AssociationErrorCode.INVALID_STATE,
                    "Transición de estado no permitida.",
                )
            )

        if association.status != target:
            association = self._associations.update_association(
                replace(
                    association,
                    status=target,
                    updated_at=datetime.now(timezone.utc),
                )
            ) or association

        # 4. Cascada sobre punteros activos
        removed = self._active.delete_by_association(association.id)
        logger.info(
            "Association closed",
            extra={
                "association_id": str(association.id),
                "event": self.event.value,
                "active_pointers_removed": removed,
            },
        )
        return AssociationResult(association=association)


class RejectAssociationUseCase(_CloseAssociationUseCase):
    event = AssociationEvent.REJECT


class DeactivateAssociationUseCase(_CloseAssociationUseCase):
    event = AssociationEvent.DEACTIVATE
