"""
===============================================================================
USE CASE: Create Association (Shared)
===============================================================================

Otorga a un usuario un rol dentro de una cuenta, opcionalmente acotado a una
división y/o un alumno.

Reglas:
  - El estado inicial lo decide la política según el origen:
    invitation / registration -> pending, provisioning -> active.
  - El actor necesita usuarios:crear en la cuenta destino y jerarquía
    suficiente para otorgar el rol (can_assign_role).
  - Scope por rol (validate_scope) y coherencia cuenta/división/alumno.
  - No puede existir otra asociación viva con el mismo scope.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from ....crosscutting.exceptions import UniqueViolationError
from ....domain.access import Principal, can_act_on_account
from ....domain.association_policy import (
    AssociationOrigin,
    initial_status,
    validate_scope,
)
from ....domain.entities import Association
from ....domain.permissions import Action, Module, PermissionGrant
from ....domain.repositories import (
    AccountRepository,
    AssociationRepository,
    DivisionRepository,
    StudentRepository,
    UserRepository,
)
from ....domain.roles import RoleName, can_assign_role
from .association_results import (
    AssociationError,
    AssociationErrorCode,
    AssociationResult,
    forbidden,
    not_found,
)


@dataclass(frozen=True)
class CreateAssociationInput:
    user_id: UUID
    account_id: UUID
    role_name: RoleName
    division_id: UUID | None = None
    student_id: UUID | None = None
    permissions: list[PermissionGrant] = field(default_factory=list)


def validate_association_target(
    *,
    accounts: AccountRepository,
    divisions: DivisionRepository,
    students: StudentRepository,
    account_id: UUID,
    role_name: RoleName,
    division_id: UUID | None,
    student_id: UUID | None,
) -> AssociationError | None:
    """
    Valida scope + existencia/coherencia de cuenta, división y alumno.

    Compartido por invitación, auto-registro y aprovisionamiento.
    """
    scope_error = validate_scope(
        role_name, division_id=division_id, student_id=student_id
    )
    if scope_error:
        return AssociationError(AssociationErrorCode.VALIDATION_ERROR, scope_error)

    account = accounts.get_account(account_id)
    if account is None or not account.is_active:
        return not_found("Cuenta no encontrada.")

    if division_id is not None:
        division = divisions.get_division(division_id)
        if division is None or not division.is_active:
            return not_found("División no encontrada.")
        if division.account_id != account_id:
            return AssociationError(
                AssociationErrorCode.VALIDATION_ERROR,
                "La división no pertenece a la cuenta.",
            )

    if student_id is not None:
        student = students.get_student(student_id)
        if student is None or not student.is_active:
            return not_found("Alumno no encontrado.")
        if student.account_id != account_id or student.division_id != division_id:
            return AssociationError(
                AssociationErrorCode.VALIDATION_ERROR,
                "El alumno no pertenece a la cuenta y división indicadas.",
            )

    return None


def create_live_association(
    associations: AssociationRepository,
    association: Association,
) -> AssociationResult:
    """Chequeo de duplicado + insert; el índice único es la última defensa."""
    duplicate = associations.find_live_association(
        user_id=association.user_id,
        account_id=association.account_id,
        role_name=association.role_name,
        division_id=association.division_id,
        student_id=association.student_id,
    )
    if duplicate is not None:
        return AssociationResult(
            error=AssociationError(
                AssociationErrorCode.CONFLICT,
                "Ya existe una asociación con el mismo alcance.",
            )
        )
    try:
        created = associations.create_association(association)
    except UniqueViolationError:
        return AssociationResult(
            error=AssociationError(
                AssociationErrorCode.CONFLICT,
                "Ya existe una asociación con el mismo alcance.",
            )
        )
    return AssociationResult(association=created)


class CreateAssociationUseCase:
    """Invita (o aprovisiona) a un usuario existente en una cuenta."""

    def __init__(
        self,
        association_repository: AssociationRepository,
        user_repository: UserRepository,
        account_repository: AccountRepository,
        division_repository: DivisionRepository,
        student_repository: StudentRepository,
    ) -> None:
        self._associations = association_repository
        self._users = user_repository
        self._accounts = account_repository
        self._divisions = division_repository
        self._students = student_repository

    def execute(
        self,
        input_data: CreateAssociationInput,
        actor: Principal | None,
        *,
        origin: AssociationOrigin = AssociationOrigin.INVITATION,
    ) -> AssociationResult:
        """
        Pasos:
          1. Autorizar actor (grilla + tenant + jerarquía).
          2. Validar usuario destino y scope.
          3. Crear con el estado inicial del origen.
        """
        # 1. Autorización
        if not can_act_on_account(
            actor, input_data.account_id, Module.USUARIOS, Action.CREAR
        ):
            return AssociationResult(error=forbidden())
        if not can_assign_role(actor.role_name, input_data.role_name):
            return AssociationResult(
                error=forbidden("No puede otorgar un rol de mayor jerarquía.")
            )

        # 2. Validación
        if self._users.get_user_by_id(input_data.user_id) is None:
            return AssociationResult(error=not_found("Usuario no encontrado."))

        target_error = validate_association_target(
            accounts=self._accounts,
            divisions=self._divisions,
            students=self._students,
            account_id=input_data.account_id,
            role_name=input_data.role_name,
            division_id=input_data.division_id,
            student_id=input_data.student_id,
        )
        if target_error:
            return AssociationResult(error=target_error)

        # 3. Alta
        association = Association(
            user_id=input_data.user_id,
            account_id=input_data.account_id,
            role_name=input_data.role_name,
            division_id=input_data.division_id,
            student_id=input_data.student_id,
            status=initial_status(origin),
            permissions=list(input_data.permissions),
            created_by=actor.user_id,
        )
        return create_live_association(self._associations, association)
