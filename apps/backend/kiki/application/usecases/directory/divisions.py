"""
===============================================================================
USE CASES: Divisions (grupos / aulas)
===============================================================================

Reglas:
  - create: grupos:crear en la cuenta; cuenta activa; nombre 2..100 único
    dentro de la cuenta (case-insensitive); los miembros deben existir.
  - list / get: lectura de grupos + alcance de tenant.
  - update: grupos:actualizar; renombrar re-chequea unicidad.
  - members: agregar / quitar miembros (grupos:actualizar).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from uuid import UUID

from ....crosscutting.exceptions import UniqueViolationError
from ....crosscutting.pagination import PageParams
from ....domain.access import Principal, can_act_on_account
from ....domain.entities import Division
from ....domain.permissions import Action, Module
from ....domain.repositories import (
    AccountRepository,
    DivisionRepository,
    UserRepository,
)
from .directory_results import (
    DivisionListResult,
    DivisionResult,
    DirectoryError,
    can_read_account,
    check_length,
    conflict,
    forbidden,
    not_found,
    validation,
)

_NAME_TAKEN = "Ya existe una división con ese nombre en la cuenta."


@dataclass(frozen=True)
class CreateDivisionInput:
    account_id: UUID
    name: str
    description: str | None = None
    member_ids: list[UUID] = field(default_factory=list)


@dataclass(frozen=True)
class UpdateDivisionInput:
    name: str | None = None
    description: str | None = None
    is_active: bool | None = None


def _dedupe(ids: list[UUID]) -> list[UUID]:
    return list(dict.fromkeys(ids))


def _check_members(users: UserRepository, member_ids: list[UUID]) -> DirectoryError | None:
    missing = [str(uid) for uid in member_ids if users.get_user_by_id(uid) is None]
    if missing:
        return validation(f"Miembros inexistentes: {', '.join(missing)}")
    return None


class CreateDivisionUseCase:
    def __init__(
        self,
        division_repository: DivisionRepository,
        account_repository: AccountRepository,
        user_repository: UserRepository,
    ) -> None:
        self._divisions = division_repository
        self._accounts = account_repository
        self._users = user_repository

    def execute(self, input_data: CreateDivisionInput, actor: Principal | None) -> DivisionResult:
        # 1. Autorización
        if not can_act_on_account(actor, input_data.account_id, Module.GRUPOS, Action.CREAR):
            return DivisionResult(error=forbidden())

        # 2. Validación
        account = self._accounts.get_account(input_data.account_id)
        if account is None or not account.is_active:
            return DivisionResult(error=not_found("Cuenta no encontrada."))

        name = (input_data.name or "").strip()
        error = check_length(name, "El nombre", 2, 100)
        if error:
            return DivisionResult(error=error)

        if self._divisions.get_division_by_name(input_data.account_id, name) is not None:
            return DivisionResult(error=conflict(_NAME_TAKEN))

        member_ids = _dedupe(list(input_data.member_ids))
        error = _check_members(self._users, member_ids)
        if error:
            return DivisionResult(error=error)

        # 3. Alta
        try:
            division = self._divisions.create_division(
                Division(
                    account_id=input_data.account_id,
                    name=name,
                    description=(input_data.description or "").strip() or None,
                    member_ids=member_ids,
                    created_by=actor.user_id,
                )
            )
        except UniqueViolationError:
            return DivisionResult(error=conflict(_NAME_TAKEN))
        return DivisionResult(division=division)


class ListDivisionsUseCase:
    def __init__(self, division_repository: DivisionRepository) -> None:
        self._divisions = division_repository

    def execute(
        self,
        account_id: UUID,
        actor: Principal | None,
        params: PageParams,
        *,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> DivisionListResult:
        if not can_read_account(actor, Module.GRUPOS, account_id):
            return DivisionListResult(error=forbidden())

        divisions, total = self._divisions.list_divisions(
            account_id,
            is_active=is_active,
            search=search,
            limit=params.limit,
            offset=params.offset,
        )
        return DivisionListResult(divisions=divisions, total=total)


class GetDivisionUseCase:
    def __init__(self, division_repository: DivisionRepository) -> None:
        self._divisions = division_repository

    def execute(self, division_id: UUID, actor: Principal | None) -> DivisionResult:
        division = self._divisions.get_division(division_id)
        if division is None:
            return DivisionResult(error=not_found("División no encontrada."))
        if not can_read_account(actor, Module.GRUPOS, division.account_id):
            return DivisionResult(error=forbidden())
        return DivisionResult(division=division)


class UpdateDivisionUseCase:
    def __init__(self, division_repository: DivisionRepository) -> None:
        self._divisions = division_repository

    def execute(
        self, division_id: UUID, input_data: UpdateDivisionInput, actor: Principal | None
    ) -> DivisionResult:
        division = self._divisions.get_division(division_id)
        if division is None:
            return DivisionResult(error=not_found("División no encontrada."))
        if not can_act_on_account(actor, division.account_id, Module.GRUPOS, Action.ACTUALIZAR):
            return DivisionResult(error=forbidden())

        changes: dict = {}
        if input_data.name is not None:
            name = input_data.name.strip()
            error = check_length(name, "El nombre", 2, 100)
            if error:
                return DivisionResult(error=error)
            if name.lower() != division.name.lower():
                existing = self._divisions.get_division_by_name(division.account_id, name)
                if existing is not None and existing.id != division.id:
                    return DivisionResult(error=conflict(_NAME_TAKEN))
            changes["name"] = name
        if input_data.description is not None:
            changes["description"] = input_data.description.strip() or None
        if input_data.is_active is not None:
            changes["is_active"] = input_data.is_active

        if not changes:
            return DivisionResult(division=division)

        try:
            updated = self._divisions.update_division(
                replace(division, updated_at=datetime.now(timezone.utc), **changes)
            )
        except UniqueViolationError:
            return DivisionResult(error=conflict(_NAME_TAKEN))
        if updated is None:
            return DivisionResult(error=not_found("División no encontrada."))
        return DivisionResult(division=updated)


class ManageDivisionMembersUseCase:
    def __init__(
        self,
        division_repository: DivisionRepository,
        user_repository: UserRepository,
    ) -> None:
        self._divisions = division_repository
        self._users = user_repository

    def execute(
        self,
        division_id: UUID,
        actor: Principal | None,
        *,
        add: list[UUID] | None = None,
        remove: list[UUID] | None = None,
    ) -> DivisionResult:
        division = self._divisions.get_division(division_id)
        if division is None:
            return DivisionResult(error=not_found("División no encontrada."))
        if not can_act_on_account(actor, division.account_id, Module.GRUPOS, Action.ACTUALIZAR):
            return DivisionResult(error=forbidden())

        to_add = _dedupe(list(add or []))
        error = _check_members(self._users, to_add)
        if error:
            return DivisionResult(error=error)

        removed = set(remove or [])
        members = [uid for uid in division.member_ids if uid not in removed]
        members.extend(uid for uid in to_add if uid not in members)

        updated = self._divisions.update_division(
            replace(division, member_ids=members, updated_at=datetime.now(timezone.utc))
        )
        if updated is None:
            return DivisionResult(error=not_found("División no encontrada."))
        return DivisionResult(division=updated)
