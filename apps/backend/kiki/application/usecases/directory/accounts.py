"""
===============================================================================
USE CASES: Accounts (instituciones)
===============================================================================

Alta de institución (onboarding):
  - Requiere cuentas:crear (solo superadmin en la grilla por defecto).
  - Crea cuenta + usuario adminaccount aprobado + asociación active
    (origen provisioning) en una sola transacción.
  - Email del administrador ya registrado -> CONFLICT.

Lectura / edición:
  - Listado paginado (filtros name / legal_name, include_inactive); fuera de
    superadmin solo se ve la propia cuenta.
  - get / update requieren lectura / cuentas:actualizar + alcance de tenant.
  - Baja lógica con cuentas:eliminar.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID, uuid4

from ....crosscutting.exceptions import UniqueViolationError
from ....crosscutting.logger import logger
from ....crosscutting.pagination import PageParams
from ....domain.access import Principal, can_act_on_account
from ....domain.association_policy import AssociationOrigin, initial_status
from ....domain.entities import Account, Association, User, UserStatus
from ....domain.permissions import Action, Module
from ....domain.repositories import (
    AccountRepository,
    TenantOnboardingRepository,
    UserRepository,
)
from ....domain.roles import RoleName
from .directory_results import (
    AccountListResult,
    AccountResult,
    can_read,
    can_read_account,
    check_length,
    conflict,
    forbidden,
    not_found,
    validation,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CreateAccountInput:
    name: str
    legal_name: str
    admin_email: str
    admin_name: str
    admin_password: str
    address: str | None = None
    logo_url: str | None = None


@dataclass(frozen=True)
class UpdateAccountInput:
    name: str | None = None
    legal_name: str | None = None
    address: str | None = None
    logo_url: str | None = None
    admin_email: str | None = None


class CreateAccountUseCase:
    def __init__(
        self,
        user_repository: UserRepository,
        onboarding_repository: TenantOnboardingRepository,
        *,
        password_hasher: Callable[[str], str],
        password_min_length: int = 6,
    ) -> None:
        self._users = user_repository
        self._onboarding = onboarding_repository
        self._hash = password_hasher
        self._min_length = password_min_length

    def execute(self, input_data: CreateAccountInput, actor: Principal | None) -> AccountResult:
        # 1. Autorización
        if actor is None or not actor.can(Module.CUENTAS, Action.CREAR):
            return AccountResult(error=forbidden())

        # 2. Validación
        name = (input_data.name or "").strip()
        legal_name = (input_data.legal_name or "").strip()
        admin_name = (input_data.admin_name or "").strip()
        admin_email = (input_data.admin_email or "").strip().lower()
        address = (input_data.address or "").strip() or None

        for error in (
            check_length(name, "El nombre", 2, 100),
            check_length(legal_name, "La razón social", 2, 150),
            check_length(admin_name, "El nombre del administrador", 2, 50),
        ):
            if error:
                return AccountResult(error=error)
        if address and len(address) > 200:
            return AccountResult(error=validation("La dirección no puede superar 200 caracteres."))
        if "@" not in admin_email:
            return AccountResult(error=validation("Email del administrador inválido."))
        if len(input_data.admin_password or "") < self._min_length:
            return AccountResult(
                error=validation(
                    f"La contraseña debe tener al menos {self._min_length} caracteres."
                )
            )

        # 3. Unicidad de email
        if self._users.get_user_by_email(admin_email) is not None:
            return AccountResult(error=conflict("El email del administrador ya está registrado."))

        # 4. Onboarding atómico
        now = _utcnow()
        admin_id = uuid4()
        account = Account(
            name=name,
            legal_name=legal_name,
            admin_email=admin_email,
            address=address,
            logo_url=input_data.logo_url,
            admin_user_id=admin_id,
        )
        admin_user = User(
            id=admin_id,
            name=admin_name,
            email=admin_email,
            password_hash=self._hash(input_data.admin_password),
            role_name=RoleName.ADMINACCOUNT,
            status=UserStatus.APPROVED,
            account_id=account.id,
            created_at=now,
            updated_at=now,
        )
        association = Association(
            user_id=admin_id,
            account_id=account.id,
            role_name=RoleName.ADMINACCOUNT,
            status=initial_status(AssociationOrigin.PROVISIONING),
            created_by=actor.user_id,
        )
        try:
            created = self._onboarding.onboard_account(account, admin_user, association)
        except UniqueViolationError:
            return AccountResult(error=conflict("El email del administrador ya está registrado."))

        logger.info(
            "Account onboarded",
            extra={"account_id": str(created.id), "admin_user_id": str(admin_id)},
        )
        return AccountResult(account=created)


class ListAccountsUseCase:
    def __init__(self, account_repository: AccountRepository) -> None:
        self._accounts = account_repository

    def execute(
        self,
        actor: Principal | None,
        params: PageParams,
        *,
        name: str | None = None,
        legal_name: str | None = None,
        include_inactive: bool = False,
    ) -> AccountListResult:
        if not can_read(actor, Module.CUENTAS):
            return AccountListResult(error=forbidden())

        account_ids: list[UUID] | None = None
        if not actor.is_global:
            if actor.account_id is None:
                return AccountListResult()
            account_ids = [actor.account_id]

        accounts, total = self._accounts.list_accounts(
            name=name,
            legal_name=legal_name,
            include_inactive=include_inactive,
            account_ids=account_ids,
            limit=params.limit,
            offset=params.offset,
        )
        return AccountListResult(accounts=accounts, total=total)


class GetAccountUseCase:
    def __init__(self, account_repository: AccountRepository) -> None:
        self._accounts = account_repository

    def execute(self, account_id: UUID, actor: Principal | None) -> AccountResult:
        if not can_read_account(actor, Module.CUENTAS, account_id):
            return AccountResult(error=forbidden())
        account = self._accounts.get_account(account_id)
        if account is None:
            return AccountResult(error=not_found("Cuenta no encontrada."))
        return AccountResult(account=account)


class UpdateAccountUseCase:
    def __init__(self, account_repository: AccountRepository) -> None:
        self._accounts = account_repository

    def execute(
        self, account_id: UUID, input_data: UpdateAccountInput, actor: Principal | None
    ) -> AccountResult:
        if not can_act_on_account(actor, account_id, Module.CUENTAS, Action.ACTUALIZAR):
            return AccountResult(error=forbidden())

        account = self._accounts.get_account(account_id)
        if account is None:
            return AccountResult(error=not_found("Cuenta no encontrada."))

        changes: dict = {}
        if input_data.name is not None:
            name = input_data.name.strip()
            error = check_length(name, "El nombre", 2, 100)
            if error:
                return AccountResult(error=error)
            changes["name"] = name
        if input_data.legal_name is not None:
            legal_name = input_data.legal_name.strip()
            error = check_length(legal_name, "La razón social", 2, 150)
            if error:
                return AccountResult(error=error)
            changes["legal_name"] = legal_name
        if input_data.address is not None:
            if len(input_data.address.strip()) > 200:
                return AccountResult(
                    error=validation("La dirección no puede superar 200 caracteres.")
                )
            changes["address"] = input_data.address.strip() or None
        if input_data.logo_url is not None:
            changes["logo_url"] = input_data.logo_url.strip() or None
        if input_data.admin_email is not None:
            admin_email = input_data.admin_email.strip().lower()
            if "@" not in admin_email:
                return AccountResult(error=validation("Email del administrador inválido."))
            changes["admin_email"] = admin_email

        if not changes:
            return AccountResult(account=account)

        updated = self._accounts.update_account(replace(account, updated_at=_utcnow(), **changes))
        if updated is None:
            return AccountResult(error=not_found("Cuenta no encontrada."))
        return AccountResult(account=updated)


class DeactivateAccountUseCase:
    """Baja lógica (idempotente)."""

    def __init__(self, account_repository: AccountRepository) -> None:
        self._accounts = account_repository

    def execute(self, account_id: UUID, actor: Principal | None) -> AccountResult:
        if not can_act_on_account(actor, account_id, Module.CUENTAS, Action.ELIMINAR):
            return AccountResult(error=forbidden())

        account = self._accounts.get_account(account_id)
        if account is None:
            return AccountResult(error=not_found("Cuenta no encontrada."))
        if not account.is_active:
            return AccountResult(account=account)

        updated = self._accounts.update_account(
            replace(account, is_active=False, updated_at=_utcnow())
        )
        logger.info("Account deactivated", extra={"account_id": str(account_id)})
        return AccountResult(account=updated or account)
