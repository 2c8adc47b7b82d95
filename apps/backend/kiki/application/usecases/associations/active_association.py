"""
===============================================================================
USE CASES: Active Association (set / get / available / clear / cleanup)
===============================================================================

Name:
    Active-Association Resolution

Responsibilities:
    - Fijar con qué asociación actúa un usuario (upsert atómico por user_id).
    - Resolver el puntero revalidándolo: si la asociación ya no existe o no
      está active, se borra el puntero y se responde "sin asociación".
    - Listar las asociaciones active disponibles para elegir.
    - Borrar el puntero (logout global / "dejar de actuar como").
    - Barrer todos los punteros inválidos.

Collaborators:
    - AssociationRepository
    - ActiveAssociationRepository

Invariantes:
    - A lo sumo un puntero por usuario.
    - Un puntero devuelto siempre referencia una asociación active del mismo
      usuario.
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ....crosscutting.logger import logger
from ....domain.entities import (
    ActiveAssociation,
    Association,
    AssociationStatus,
)
from ....domain.repositories import (
    ActiveAssociationRepository,
    AssociationRepository,
)
from .association_results import (
    ActiveAssociationResult,
    AssociationError,
    AssociationErrorCode,
    AssociationListResult,
    forbidden,
    not_found,
)


def _is_usable(active: ActiveAssociation, association: Association | None) -> bool:
    return (
        association is not None
        and association.is_active
        and association.user_id == active.user_id
    )


class SetActiveAssociationUseCase:
    def __init__(
        self,
        association_repository: AssociationRepository,
        active_association_repository: ActiveAssociationRepository,
    ) -> None:
        self._associations = association_repository
        self._active = active_association_repository

    def execute(self, user_id: UUID, association_id: UUID) -> ActiveAssociationResult:
        """
        Pasos:
          1. La asociación existe.
          2. Pertenece al usuario.
          3. Está active.
          4. Upsert del puntero (last write wins).
        """
        association = self._associations.get_association(association_id)
        if association is None:
            return ActiveAssociationResult(error=not_found("Asociación no encontrada."))

        if association.user_id != user_id:
            return ActiveAssociationResult(
                error=forbidden("La asociación pertenece a otro usuario.")
            )

        if not association.is_active:
            return ActiveAssociationResult(
                error=AssociationError(
                    AssociationErrorCode.INVALID_STATE,
                    "Solo se puede activar una asociación en estado active.",
                )
            )

        active = self._active.upsert_active(ActiveAssociation.from_association(association))
        return ActiveAssociationResult(active=active)


class GetActiveAssociationUseCase:
    def __init__(
        self,
        association_repository: AssociationRepository,
        active_association_repository: ActiveAssociationRepository,
    ) -> None:
        self._associations = association_repository
        self._active = active_association_repository

    def resolve(self, user_id: UUID) -> tuple[ActiveAssociation, Association] | None:
        """Puntero + asociación referenciada, o None (borrando punteros inválidos)."""
        active = self._active.get_active(user_id)
        if active is None:
            return None

        association = self._associations.get_association(active.association_id)
        if not _is_usable(active, association):
            self._active.delete_active(user_id)
            logger.info(
                "Stale active association removed",
                extra={
                    "user_id": str(user_id),
                    "association_id": str(active.association_id),
                },
            )
            return None

        return active, association

    def execute(self, user_id: UUID) -> ActiveAssociationResult:
        resolved = self.resolve(user_id)
        return ActiveAssociationResult(active=resolved[0] if resolved else None)


class ListAvailableAssociationsUseCase:
    def __init__(self, association_repository: AssociationRepository) -> None:
        self._associations = association_repository

    def execute(self, user_id: UUID) -> AssociationListResult:
        return AssociationListResult(
            associations=self._associations.list_for_user(
                user_id, status=AssociationStatus.ACTIVE
            )
        )


class ClearActiveAssociationUseCase:
    def __init__(self, active_association_repository: ActiveAssociationRepository) -> None:
        self._active = active_association_repository

    def execute(self, user_id: UUID) -> bool:
        return self._active.delete_active(user_id)


class CleanupInvalidActiveAssociationsUseCase:
    """Barrido completo; retorna cuántos punteros se borraron."""

    def __init__(
        self,
        association_repository: AssociationRepository,
        active_association_repository: ActiveAssociationRepository,
    ) -> None:
        self._associations = association_repository
        self._active = active_association_repository

    def execute(self) -> int:
        removed = 0
        for active in self._active.list_all_active():
            association = self._associations.get_association(active.association_id)
            if _is_usable(active, association):
                continue
            if self._active.delete_active(active.user_id):
                removed += 1

        if removed:
            logger.info("Invalid active associations cleaned", extra={"removed": removed})
        return removed
