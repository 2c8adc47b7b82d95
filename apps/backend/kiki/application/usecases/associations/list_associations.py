"""
===============================================================================
USE CASE: List Account Associations
===============================================================================

Lista las asociaciones de una cuenta, opcionalmente filtradas por estado
(la cola de aprobaciones pendientes usa status=pending).
Requiere usuarios:leer en la cuenta.
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ....domain.access import Principal, can_act_on_account
from ....domain.entities import AssociationStatus
from ....domain.permissions import Action, Module
from ....domain.repositories import AssociationRepository
from .association_results import AssociationListResult, forbidden


class ListAccountAssociationsUseCase:
    def __init__(self, association_repository: AssociationRepository) -> None:
        self._associations = association_repository

    def execute(
        self,
        account_id: UUID,
        actor: Principal | None,
        *,
        status: AssociationStatus | None = None,
    ) -> AssociationListResult:
        if not can_act_on_account(actor, account_id, Module.USUARIOS, Action.LEER):
            return AssociationListResult(error=forbidden())

        return AssociationListResult(
            associations=self._associations.list_for_account(account_id, status=status)
        )
