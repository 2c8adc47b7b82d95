"""
===============================================================================
USE CASE: Register User (self-registration)
===============================================================================

Reglas:
  - El usuario nace pending (no puede loguear hasta ser aprobado).
  - Solo roles familiares (familyadmin / familyviewer).
  - Si se indica cuenta, se crea además una asociación pending
    (origen registration) con el scope validado.
  - Email único (CONFLICT).
  - Las solicitudes de compartir pending para el email se convierten en
    asociaciones active (el usuario sigue pending hasta su aprobación).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID, uuid4

from ....crosscutting.exceptions import UniqueViolationError
from ....domain.association_policy import AssociationOrigin, initial_status
from ....domain.entities import Association, User, UserStatus
from ....domain.repositories import (
    AccountRepository,
    AssociationRepository,
    DivisionRepository,
    RequestedShareRepository,
    StudentRepository,
    UserRepository,
)
from ....domain.roles import FAMILY_ROLES, RoleName
from ..associations.create_association import (
    create_live_association,
    validate_association_target,
)
from ..associations.request_share import consume_requested_shares
from .auth_results import AuthError, AuthErrorCode, RegisterResult


@dataclass(frozen=True)
class RegisterUserInput:
    name: str
    email: str
    password: str
    role_name: RoleName = RoleName.FAMILYADMIN
    account_id: UUID | None = None
    division_id: UUID | None = None
    student_id: UUID | None = None
    dni: str | None = None
    phone: str | None = None


def _validation(message: str) -> RegisterResult:
    return RegisterResult(error=AuthError(AuthErrorCode.VALIDATION_ERROR, message))


class RegisterUserUseCase:
    def __init__(
        self,
        user_repository: UserRepository,
        association_repository: AssociationRepository,
        account_repository: AccountRepository,
        division_repository: DivisionRepository,
        student_repository: StudentRepository,
        requested_share_repository: RequestedShareRepository,
        *,
        password_hasher: Callable[[str], str],
        password_min_length: int = 6,
    ) -> None:
        self._users = user_repository
        self._associations = association_repository
        self._accounts = account_repository
        self._divisions = division_repository
        self._students = student_repository
        self._requested_shares = requested_share_repository
        self._hash = password_hasher
        self._min_length = password_min_length

    def execute(self, input_data: RegisterUserInput) -> RegisterResult:
        # 1. Validar inputs
        name = (input_data.name or "").strip()
        email = (input_data.email or "").strip().lower()
        if not 2 <= len(name) <= 50:
            return _validation("El nombre debe tener entre 2 y 50 caracteres.")
        if "@" not in email:
            return _validation("Email inválido.")
        if len(input_data.password or "") < self._min_length:
            return _validation(
                f"La contraseña debe tener al menos {self._min_length} caracteres."
            )
        if input_data.role_name not in FAMILY_ROLES:
            return _validation("Solo se pueden solicitar roles familiares.")

        # 2. Validar scope pedido
        if input_data.account_id is not None:
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
                return RegisterResult(
                    error=AuthError(AuthErrorCode(target_error.code.value), target_error.message)
                )

        # 3. Unicidad de email
        conflict = AuthError(AuthErrorCode.CONFLICT, "El email ya está registrado.")
        if self._users.get_user_by_email(email) is not None:
            return RegisterResult(error=conflict)

        # 4. Alta del usuario (pending)
        now = datetime.now(timezone.utc)
        try:
            user = self._users.create_user(
                User(
                    id=uuid4(),
                    name=name,
                    email=email,
                    password_hash=self._hash(input_data.password),
                    role_name=input_data.role_name,
                    status=UserStatus.PENDING,
                    account_id=input_data.account_id,
                    dni=input_data.dni,
                    phone=input_data.phone,
                    created_at=now,
                    updated_at=now,
                )
            )
        except UniqueViolationError:
            return RegisterResult(error=conflict)

        # 5. Solicitudes de compartir dirigidas a este email
        shared = consume_requested_shares(self._requested_shares, self._associations, user)

        if input_data.account_id is None:
            return RegisterResult(user=user, shared_associations=shared)

        # 6. Asociación pending
        created = create_live_association(
            self._associations,
            Association(
                user_id=user.id,
                account_id=input_data.account_id,
                role_name=input_data.role_name,
                division_id=input_data.division_id,
                student_id=input_data.student_id,
                status=initial_status(AssociationOrigin.REGISTRATION),
                created_by=user.id,
            ),
        )
        if created.error:
            return RegisterResult(
                user=user,
                shared_associations=shared,
                error=AuthError(AuthErrorCode(created.error.code.value), created.error.message),
            )
        return RegisterResult(
            user=user, association=created.association, shared_associations=shared
        )
