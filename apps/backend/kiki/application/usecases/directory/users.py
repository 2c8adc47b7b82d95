"""
===============================================================================
USE CASES: Users (directorio)
===============================================================================

Reglas:
  - provision: un administrador crea un usuario aprobado con su asociación
    active (origen provisioning). Requiere usuarios:crear en la cuenta y
    jerarquía suficiente para el rol.
  - list: paginado con filtros de rol/estado; fuera de superadmin queda
    acotado a la cuenta del actor.
  - get: el propio usuario siempre; el resto necesita lectura + tenant.
  - update profile: el propio usuario o usuarios:actualizar + tenant; el
    email sigue siendo único; birth_date no puede ser futura.
  - change status: usuarios:administrar + tenant.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from typing import Callable
from uuid import UUID, uuid4

from ....crosscutting.exceptions import UniqueViolationError
from ....crosscutting.logger import logger
from ....crosscutting.pagination import PageParams
from ....domain.access import Principal, can_access_account, can_act_on_account
from ....domain.association_policy import AssociationOrigin, initial_status
from ....domain.entities import Association, User, UserStatus
from ....domain.permissions import Action, Module
from ....domain.repositories import (
    AccountRepository,
    AssociationRepository,
    DivisionRepository,
    StudentRepository,
    UserRepository,
)
from ....domain.roles import RoleName, can_assign_role
from ..associations.create_association import (
    create_live_association,
    validate_association_target,
)
from .directory_results import (
    DirectoryError,
    DirectoryErrorCode,
    UserListResult,
    UserResult,
    can_read,
    check_length,
    conflict,
    forbidden,
    not_found,
    validation,
)

_EMAIL_TAKEN = "El email ya está registrado."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProvisionUserInput:
    name: str
    email: str
    password: str
    role_name: RoleName
    account_id: UUID
    division_id: UUID | None = None
    student_id: UUID | None = None
    dni: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class UpdateProfileInput:
    name: str | None = None
    email: str | None = None
    dni: str | None = None
    phone: str | None = None
    address: str | None = None
    birth_date: date | None = None
    avatar_url: str | None = None


class ProvisionUserUseCase:
    def __init__(
        self,
        user_repository: UserRepository,
        association_repository: AssociationRepository,
        account_repository: AccountRepository,
        division_repository: DivisionRepository,
        student_repository: StudentRepository,
        *,
        password_hasher: Callable[[str], str],
        password_min_length: int = 6,
    ) -> None:
        self._users = user_repository
        self._associations = association_repository
        self._accounts = account_repository
        self._divisions = division_repository
        self._students = student_repository
        self._hash = password_hasher
        self._min_length = password_min_length

    def execute(self, input_data: ProvisionUserInput, actor: Principal | None) -> UserResult:
        # 1. Autorización
        if not can_act_on_account(actor, input_data.account_id, Module.USUARIOS, Action.CREAR):
            return UserResult(error=forbidden())
        if not can_assign_role(actor.role_name, input_data.role_name):
            return UserResult(error=forbidden("No puede otorgar un rol de mayor jerarquía."))

        # 2. Validación
        name = (input_data.name or "").strip()
        email = (input_data.email or "").strip().lower()
        error = check_length(name, "El nombre", 2, 50)
        if error:
            return UserResult(error=error)
        if "@" not in email:
            return UserResult(error=validation("Email inválido."))
        if len(input_data.password or "") < self._min_length:
            return UserResult(
                error=validation(
                    f"La contraseña debe tener al menos {self._min_length} caracteres."
                )
            )

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
            return UserResult(
                error=DirectoryError(
                    DirectoryErrorCode(target_error.code.value), target_error.message
                )
            )

        if self._users.get_user_by_email(email) is not None:
            return UserResult(error=conflict(_EMAIL_TAKEN))

        # 3. Alta usuario aprobado + asociación active
        now = _utcnow()
        try:
            user = self._users.create_user(
                User(
                    id=uuid4(),
                    name=name,
                    email=email,
                    password_hash=self._hash(input_data.password),
                    role_name=input_data.role_name,
                    status=UserStatus.APPROVED,
                    account_id=input_data.account_id,
                    dni=input_data.dni,
                    phone=input_data.phone,
                    created_at=now,
                    updated_at=now,
                )
            )
        except UniqueViolationError:
            return UserResult(error=conflict(_EMAIL_TAKEN))

        created = create_live_association(
            self._associations,
            Association(
                user_id=user.id,
                account_id=input_data.account_id,
                role_name=input_data.role_name,
                division_id=input_data.division_id,
                student_id=input_data.student_id,
                status=initial_status(AssociationOrigin.PROVISIONING),
                created_by=actor.user_id,
            ),
        )
        if created.error:
            return UserResult(
                user=user,
                error=DirectoryError(
                    DirectoryErrorCode(created.error.code.value), created.error.message
                ),
            )

        logger.info(
            "User provisioned",
            extra={"user_id": str(user.id), "account_id": str(input_data.account_id)},
        )
        return UserResult(user=user)


class ListUsersUseCase:
    def __init__(self, user_repository: UserRepository) -> None:
        self._users = user_repository

    def execute(
        self,
        actor: Principal | None,
        params: PageParams,
        *,
        account_id: UUID | None = None,
        role_name: RoleName | None = None,
        status: UserStatus | None = None,
    ) -> UserListResult:
        if not can_read(actor, Module.USUARIOS):
            return UserListResult(error=forbidden())

        if not actor.is_global:
            if account_id is not None and account_id != actor.account_id:
                return UserListResult(error=forbidden())
            account_id = actor.account_id
            if account_id is None:
                return UserListResult()

        users, total = self._users.list_users(
            account_id=account_id,
            role_name=role_name,
            status=status,
            limit=params.limit,
            offset=params.offset,
        )
        return UserListResult(users=users, total=total)


class GetUserUseCase:
    def __init__(self, user_repository: UserRepository) -> None:
        self._users = user_repository

    def execute(self, user_id: UUID, actor: Principal | None) -> UserResult:
        if actor is None:
            return UserResult(error=forbidden())

        user = self._users.get_user_by_id(user_id)
        if user is None:
            return UserResult(error=not_found("Usuario no encontrado."))
        if user.id == actor.user_id:
            return UserResult(user=user)
        if not (can_read(actor, Module.USUARIOS) and can_access_account(actor, user.account_id)):
            return UserResult(error=forbidden())
        return UserResult(user=user)


class UpdateProfileUseCase:
    def __init__(self, user_repository: UserRepository) -> None:
        self._users = user_repository

    def execute(
        self, user_id: UUID, input_data: UpdateProfileInput, actor: Principal | None
    ) -> UserResult:
        if actor is None:
            return UserResult(error=forbidden())

        user = self._users.get_user_by_id(user_id)
        if user is None:
            return UserResult(error=not_found("Usuario no encontrado."))
        if user.id != actor.user_id and not can_act_on_account(
            actor, user.account_id, Module.USUARIOS, Action.ACTUALIZAR
        ):
            return UserResult(error=forbidden())

        changes: dict = {}
        if input_data.name is not None:
            name = input_data.name.strip()
            error = check_length(name, "El nombre", 2, 50)
            if error:
                return UserResult(error=error)
            changes["name"] = name
        if input_data.email is not None:
            email = input_data.email.strip().lower()
            if "@" not in email:
                return UserResult(error=validation("Email inválido."))
            if email != user.email:
                existing = self._users.get_user_by_email(email)
                if existing is not None and existing.id != user.id:
                    return UserResult(error=conflict(_EMAIL_TAKEN))
            changes["email"] = email
        if input_data.birth_date is not None:
            if input_data.birth_date > date.today():
                return UserResult(
                    error=validation("La fecha de nacimiento no puede ser futura.")
                )
            changes["birth_date"] = input_data.birth_date
        for field_name in ("dni", "phone", "address", "avatar_url"):
            value = getattr(input_data, field_name)
            if value is not None:
                changes[field_name] = value.strip() or None

        if not changes:
            return UserResult(user=user)

        try:
            updated = self._users.update_user(replace(user, updated_at=_utcnow(), **changes))
        except UniqueViolationError:
            return UserResult(error=conflict(_EMAIL_TAKEN))
        if updated is None:
            return UserResult(error=not_found("Usuario no encontrado."))
        return UserResult(user=updated)


class ChangeUserStatusUseCase:
    def __init__(self, user_repository: UserRepository) -> None:
        self._users = user_repository

    def execute(
        self, user_id: UUID, status: UserStatus, actor: Principal | None
    ) -> UserResult:
        user = self._users.get_user_by_id(user_id)
        if user is None:
            return UserResult(error=not_found("Usuario no encontrado."))
        if not can_act_on_account(actor, user.account_id, Module.USUARIOS, Action.ADMINISTRAR):
            return UserResult(error=forbidden())
        if user.status == status:
            return UserResult(user=user)

        updated = self._users.update_user(replace(user, status=status, updated_at=_utcnow()))
        logger.info(
            "User status changed",
            extra={"user_id": str(user_id), "status": status.value},
        )
        return UserResult(user=updated or user)
