"""
===============================================================================
USE CASE: Approve Association
===============================================================================

pending -> active. Cualquier otro estado de origen es INVALID_STATE.
Requiere usuarios:administrar en la cuenta de la asociación.
===============================================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from uuid import UUID

from ....domain.access import Principal, can_act_on_account
from ....domain.association_policy import AssociationEvent, next_status
from ....domain.permissions import Action, Module
from ....domain.repositories import AssociationRepository
from .association_results import (
    AssociationError,
    AssociationErrorCode,
    AssociationResult,
    forbidden,
    not_found,
)


class ApproveAssociationUseCase:
    def __init__(self, association_repository: AssociationRepository) -> None:
        self._associations = association_repository

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
        target = next_status(association.status, AssociationEvent.APPROVE)
        if target is None:
            return AssociationResult(
                error=AssociationError(
                    AssociationErrorCode.INVALID_STATE,
                    f"Solo se pueden aprobar asociaciones pendientes "
                    f"(estado actual: {association.status.value}).",
                )
            )

        updated = self._associations.update_association(
            replace(association, status=target, updated_at=datetime.now(timezone.utc))
        )
        if updated is None:
            return AssociationResult(error=not_found("Asociación no encontrada."))
        return AssociationResult(association=updated)
