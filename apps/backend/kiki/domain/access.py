"""
===============================================================================
TARJETA CRC — domain/access.py
===============================================================================

Módulo:
    Principal efectivo + scoping por tenant

Responsabilidades:
    - Representar "quién actúa" en un request: usuario, rol efectivo,
      asociación activa y grilla efectiva.
    - Resolver la cuenta en la que actúa el principal.
    - Decidir acceso a una cuenta (multi-tenant).

Colaboradores:
    - domain.entities: User, Role, ActiveAssociation
    - domain.permissions.has_permission
    - application.usecases.auth.ResolvePrincipalUseCase (lo construye)
    - identity.access_control (dependencias FastAPI)

Reglas:
    - Un superadmin estático ve todas las cuentas.
    - El resto solo la cuenta de su asociación activa o, si no tiene,
      su cuenta por defecto.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from .entities import ActiveAssociation, Role, User
from .permissions import Action, Module, PermissionGrant, has_permission
from .roles import RoleName


@dataclass(frozen=True, slots=True)
class Principal:
    user: User
    role: Role
    active_association: ActiveAssociation | None = None
    permissions: tuple[PermissionGrant, ...] = field(default_factory=tuple)

    @property
    def user_id(self) -> UUID:
        return self.user.id

    @property
    def role_name(self) -> RoleName:
        return self.role.name

    @property
    def account_id(self) -> UUID | None:
        if self.active_association is not None:
            return self.active_association.account_id
        return self.user.account_id

    @property
    def division_id(self) -> UUID | None:
        if self.active_association is None:
            return None
        return self.active_association.division_id

    @property
    def student_id(self) -> UUID | None:
        if self.active_association is None:
            return None
        return self.active_association.student_id

    @property
    def is_global(self) -> bool:
        """Superadmin "de sistema": su rol estático es superadmin."""
        return self.user.role_name == RoleName.SUPERADMIN

    def can(self, module: Module | str, action: Action | str) -> bool:
        return has_permission(self.permissions, module, action)


def can_access_account(principal: Principal | None, account_id: UUID | None) -> bool:
    if principal is None or account_id is None:
        return False
    if principal.is_global:
        return True
    return principal.account_id == account_id


def can_act_on_account(
    principal: Principal | None,
    account_id: UUID | None,
    module: Module,
    action: Action,
) -> bool:
    """Permiso de grilla + scope de tenant."""
    if principal is None:
        return False
    return principal.can(module, action) and can_access_account(principal, account_id)
