"""
===============================================================================
USE CASE: Resolve Principal
===============================================================================

Construye el Principal de un request a partir del user_id del JWT.

Reglas:
  - Usuario inexistente -> USER_NOT_FOUND; pending/rejected ->
    USER_NOT_APPROVED / USER_REJECTED.
  - Rol efectivo: el de la asociación activa (revalidada) o, si no hay, el
    rol estático del usuario.
  - Grilla efectiva: grilla del rol con el override de la asociación.
  - Si el rol no está en el repositorio (catálogo sin seedear) se usa su
    definición por defecto.
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ....crosscutting.logger import logger
from ....domain.access import Principal
from ....domain.entities import Role
from ....domain.permissions import effective_permissions
from ....domain.repositories import RoleRepository, UserRepository
from ....domain.roles import RoleName, default_definition
from ..associations.active_association import GetActiveAssociationUseCase
from .auth_results import AuthError, AuthErrorCode, PrincipalResult, user_status_error


class ResolvePrincipalUseCase:
    def __init__(
        self,
        user_repository: UserRepository,
        role_repository: RoleRepository,
        get_active_association: GetActiveAssociationUseCase,
    ) -> None:
        self._users = user_repository
        self._roles = role_repository
        self._get_active = get_active_association

    def _load_role(self, name: RoleName) -> Role:
        role = self._roles.get_role(name)
        if role is not None:
            return role

        logger.warning("Role missing from catalog; using default", extra={"role": name.value})
        definition = default_definition(name)
        return Role(
            name=definition.name,
            description=definition.description,
            level=definition.level,
            permissions=list(definition.permissions),
        )

    def execute(self, user_id: UUID) -> PrincipalResult:
        # 1. Usuario
        user = self._users.get_user_by_id(user_id)
        if user is None:
            return PrincipalResult(
                error=AuthError(AuthErrorCode.USER_NOT_FOUND, "Usuario no encontrado.")
            )
        status_error = user_status_error(user)
        if status_error:
            return PrincipalResult(error=status_error)

        # 2. Asociación activa (revalidada)
        resolved = self._get_active.resolve(user.id)
        active, association = resolved if resolved else (None, None)

        # 3. Rol + grilla efectiva
        role = self._load_role(active.role_name if active else user.role_name)
        if not role.is_active:
            grants: list = []
        else:
            grants = effective_permissions(
                role.permissions, association.permissions if association else None
            )

        return PrincipalResult(
            principal=Principal(
                user=user,
                role=role,
                active_association=active,
                permissions=tuple(grants),
            )
        )
