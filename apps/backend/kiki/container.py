"""
===============================================================================
TARJETA CRC — kiki/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer repositorios y casos de uso siguiendo DIP.
  - Exponer factories para FastAPI (Depends) y para el lifespan.
  - Mantener singletons de repositorios con lru_cache.
  - Elegir el backend de persistencia (postgres | memory) según Settings.

Colaboradores:
  - kiki.crosscutting.config.get_settings
  - kiki.domain.repositories (puertos)
  - kiki.infrastructure.repositories (in_memory / postgres)
  - kiki.identity.auth_users (hash de passwords, emisión de tokens)
  - kiki.application.usecases.* (casos de uso)

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI (solo expone factories).
  - reset_container() limpia los singletons (tests).
===============================================================================
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from .application.usecases.associations import (
    ApproveAssociationUseCase,
    CleanupInvalidActiveAssociationsUseCase,
    ClearActiveAssociationUseCase,
    CreateAssociationUseCase,
    DeactivateAssociationUseCase,
    GetActiveAssociationUseCase,
    ListAccountAssociationsUseCase,
    ListAvailableAssociationsUseCase,
    RejectAssociationUseCase,
    RequestShareUseCase,
    SetActiveAssociationUseCase,
)
from .application.usecases.auth import (
    ChangePasswordUseCase,
    LoginUseCase,
    LogoutUseCase,
    PurgeRefreshTokensUseCase,
    RefreshSessionUseCase,
    RegisterUserUseCase,
    ResolvePrincipalUseCase,
    SessionIssuer,
)
from .application.usecases.directory import (
    ChangeUserStatusUseCase,
    CreateAccountUseCase,
    CreateDivisionUseCase,
    CreateStudentUseCase,
    DeactivateAccountUseCase,
    GetAccountUseCase,
    GetDivisionUseCase,
    GetRoleUseCase,
    GetStudentUseCase,
    GetUserUseCase,
    ListAccountsUseCase,
    ListDivisionsUseCase,
    ListRolesUseCase,
    ListStudentsUseCase,
    ListUsersUseCase,
    ManageDivisionMembersUseCase,
    ProvisionUserUseCase,
    UpdateAccountUseCase,
    UpdateDivisionUseCase,
    UpdateProfileUseCase,
    UpdateRolePermissionsUseCase,
    UpdateStudentUseCase,
)
from .crosscutting.config import get_settings
from .domain.repositories import (
    AccountRepository,
    ActiveAssociationRepository,
    AssociationRepository,
    DivisionRepository,
    RefreshTokenRepository,
    RequestedShareRepository,
    RoleRepository,
    StudentRepository,
    TenantOnboardingRepository,
    UserRepository,
)
from .identity.auth_users import (
    create_access_token,
    generate_refresh_token_value,
    hash_password,
    hash_refresh_token,
    verify_password,
)
from .infrastructure.repositories.in_memory import (
    InMemoryAccountRepository,
    InMemoryActiveAssociationRepository,
    InMemoryAssociationRepository,
    InMemoryDivisionRepository,
    InMemoryRefreshTokenRepository,
    InMemoryRequestedShareRepository,
    InMemoryRoleRepository,
    InMemoryStudentRepository,
    InMemoryTenantOnboardingRepository,
    InMemoryUserRepository,
)
from .infrastructure.repositories.postgres import (
    PostgresAccountRepository,
    PostgresActiveAssociationRepository,
    PostgresAssociationRepository,
    PostgresDivisionRepository,
    PostgresRefreshTokenRepository,
    PostgresRequestedShareRepository,
    PostgresRoleRepository,
    PostgresStudentRepository,
    PostgresTenantOnboardingRepository,
    PostgresUserRepository,
)

# =============================================================================
# Helpers internos
# =============================================================================


def _use_memory() -> bool:
    """In-memory en test o si PERSISTENCE_BACKEND=memory."""
    return get_settings().uses_memory_backend()


# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_role_repository() -> RoleRepository:
    if _use_memory():
        return InMemoryRoleRepository()
    return PostgresRoleRepository()


@lru_cache(maxsize=1)
def get_account_repository() -> AccountRepository:
    if _use_memory():
        return InMemoryAccountRepository()
    return PostgresAccountRepository()


@lru_cache(maxsize=1)
def get_division_repository() -> DivisionRepository:
    if _use_memory():
        return InMemoryDivisionRepository()
    return PostgresDivisionRepository()


@lru_cache(maxsize=1)
def get_student_repository() -> StudentRepository:
    if _use_memory():
        return InMemoryStudentRepository()
    return PostgresStudentRepository()


@lru_cache(maxsize=1)
def get_user_repository() -> UserRepository:
    if _use_memory():
        return InMemoryUserRepository()
    return PostgresUserRepository()


@lru_cache(maxsize=1)
def get_association_repository() -> AssociationRepository:
    if _use_memory():
        return InMemoryAssociationRepository()
    return PostgresAssociationRepository()


@lru_cache(maxsize=1)
def get_active_association_repository() -> ActiveAssociationRepository:
    if _use_memory():
        return InMemoryActiveAssociationRepository()
    return PostgresActiveAssociationRepository()


@lru_cache(maxsize=1)
def get_refresh_token_repository() -> RefreshTokenRepository:
    if _use_memory():
        return InMemoryRefreshTokenRepository()
    return PostgresRefreshTokenRepository()


@lru_cache(maxsize=1)
def get_requested_share_repository() -> RequestedShareRepository:
    if _use_memory():
        return InMemoryRequestedShareRepository()
    return PostgresRequestedShareRepository()


@lru_cache(maxsize=1)
def get_onboarding_repository() -> TenantOnboardingRepository:
    """Alta atómica de cuenta (transacción en Postgres, compensación en memoria)."""
    if _use_memory():
        return InMemoryTenantOnboardingRepository(
            get_account_repository(),
            get_user_repository(),
            get_association_repository(),
        )
    return PostgresTenantOnboardingRepository()


_REPOSITORY_FACTORIES = (
    get_role_repository,
    get_account_repository,
    get_division_repository,
    get_student_repository,
    get_user_repository,
    get_association_repository,
    get_active_association_repository,
    get_refresh_token_repository,
    get_requested_share_repository,
    get_onboarding_repository,
)


def reset_container() -> None:
    """Descarta los singletons (tests / cambio de Settings)."""
    for factory in _REPOSITORY_FACTORIES:
        factory.cache_clear()


# =============================================================================
# Auth
# =============================================================================


def get_session_issuer() -> SessionIssuer:
    settings = get_settings()
    return SessionIssuer(
        get_refresh_token_repository(),
        access_token_issuer=create_access_token,
        token_generator=generate_refresh_token_value,
        token_hasher=hash_refresh_token,
        refresh_ttl=timedelta(days=settings.refresh_token_ttl_days),
    )


def get_login_use_case() -> LoginUseCase:
    return LoginUseCase(
        get_user_repository(),
        get_association_repository(),
        get_active_association_repository(),
        get_session_issuer(),
        password_verifier=verify_password,
    )


def get_refresh_session_use_case() -> RefreshSessionUseCase:
    return RefreshSessionUseCase(
        get_refresh_token_repository(),
        get_user_repository(),
        get_session_issuer(),
        rotation=get_settings().refresh_token_rotation,
    )


def get_logout_use_case() -> LogoutUseCase:
    return LogoutUseCase(
        get_refresh_token_repository(),
        get_active_association_repository(),
        token_hasher=hash_refresh_token,
    )


def get_purge_refresh_tokens_use_case() -> PurgeRefreshTokensUseCase:
    return PurgeRefreshTokensUseCase(get_refresh_token_repository())


def get_register_user_use_case() -> RegisterUserUseCase:
    return RegisterUserUseCase(
        get_user_repository(),
        get_association_repository(),
        get_account_repository(),
        get_division_repository(),
        get_student_repository(),
        get_requested_share_repository(),
        password_hasher=hash_password,
        password_min_length=get_settings().password_min_length,
    )


def get_change_password_use_case() -> ChangePasswordUseCase:
    return ChangePasswordUseCase(
        get_user_repository(),
        get_refresh_token_repository(),
        password_hasher=hash_password,
        password_verifier=verify_password,
        password_min_length=get_settings().password_min_length,
    )


def get_resolve_principal_use_case() -> ResolvePrincipalUseCase:
    return ResolvePrincipalUseCase(
        get_user_repository(),
        get_role_repository(),
        get_get_active_association_use_case(),
    )


# =============================================================================
# Asociaciones
# =============================================================================


def get_create_association_use_case() -> CreateAssociationUseCase:
    return CreateAssociationUseCase(
        get_association_repository(),
        get_user_repository(),
        get_account_repository(),
        get_division_repository(),
        get_student_repository(),
    )


def get_approve_association_use_case() -> ApproveAssociationUseCase:
    return ApproveAssociationUseCase(get_association_repository())


def get_reject_association_use_case() -> RejectAssociationUseCase:
    return RejectAssociationUseCase(
        get_association_repository(), get_active_association_repository()
    )


def get_deactivate_association_use_case() -> DeactivateAssociationUseCase:
    return DeactivateAssociationUseCase(
        get_association_repository(), get_active_association_repository()
    )


def get_list_account_associations_use_case() -> ListAccountAssociationsUseCase:
    return ListAccountAssociationsUseCase(get_association_repository())


def get_request_share_use_case() -> RequestShareUseCase:
    return RequestShareUseCase(
        get_user_repository(),
        get_association_repository(),
        get_requested_share_repository(),
    )


def get_list_available_associations_use_case() -> ListAvailableAssociationsUseCase:
    return ListAvailableAssociationsUseCase(get_association_repository())


def get_set_active_association_use_case() -> SetActiveAssociationUseCase:
    return SetActiveAssociationUseCase(
        get_association_repository(), get_active_association_repository()
    )


def get_get_active_association_use_case() -> GetActiveAssociationUseCase:
    return GetActiveAssociationUseCase(
        get_association_repository(), get_active_association_repository()
    )


def get_clear_active_association_use_case() -> ClearActiveAssociationUseCase:
    return ClearActiveAssociationUseCase(get_active_association_repository())


def get_cleanup_active_associations_use_case() -> CleanupInvalidActiveAssociationsUseCase:
    return CleanupInvalidActiveAssociationsUseCase(
        get_association_repository(), get_active_association_repository()
    )


# =============================================================================
# Directorio
# =============================================================================


def get_create_account_use_case() -> CreateAccountUseCase:
    return CreateAccountUseCase(
        get_user_repository(),
        get_onboarding_repository(),
        password_hasher=hash_password,
        password_min_length=get_settings().password_min_length,
    )


def get_list_accounts_use_case() -> ListAccountsUseCase:
    return ListAccountsUseCase(get_account_repository())


def get_get_account_use_case() -> GetAccountUseCase:
    return GetAccountUseCase(get_account_repository())


def get_update_account_use_case() -> UpdateAccountUseCase:
    return UpdateAccountUseCase(get_account_repository())


def get_deactivate_account_use_case() -> DeactivateAccountUseCase:
    return DeactivateAccountUseCase(get_account_repository())


def get_create_division_use_case() -> CreateDivisionUseCase:
    return CreateDivisionUseCase(
        get_division_repository(), get_account_repository(), get_user_repository()
    )


def get_list_divisions_use_case() -> ListDivisionsUseCase:
    return ListDivisionsUseCase(get_division_repository())


def get_get_division_use_case() -> GetDivisionUseCase:
    return GetDivisionUseCase(get_division_repository())


def get_update_division_use_case() -> UpdateDivisionUseCase:
    return UpdateDivisionUseCase(get_division_repository())


def get_manage_division_members_use_case() -> ManageDivisionMembersUseCase:
    return ManageDivisionMembersUseCase(get_division_repository(), get_user_repository())


def get_create_student_use_case() -> CreateStudentUseCase:
    return CreateStudentUseCase(get_student_repository(), get_division_repository())


def get_list_students_use_case() -> ListStudentsUseCase:
    return ListStudentsUseCase(get_student_repository())


def get_get_student_use_case() -> GetStudentUseCase:
    return GetStudentUseCase(get_student_repository())


def get_update_student_use_case() -> UpdateStudentUseCase:
    return UpdateStudentUseCase(get_student_repository(), get_division_repository())


def get_provision_user_use_case() -> ProvisionUserUseCase:
    return ProvisionUserUseCase(
        get_user_repository(),
        get_association_repository(),
        get_account_repository(),
        get_division_repository(),
        get_student_repository(),
        password_hasher=hash_password,
        password_min_length=get_settings().password_min_length,
    )


def get_list_users_use_case() -> ListUsersUseCase:
    return ListUsersUseCase(get_user_repository())


def get_get_user_use_case() -> GetUserUseCase:
    return GetUserUseCase(get_user_repository())


def get_update_profile_use_case() -> UpdateProfileUseCase:
    return UpdateProfileUseCase(get_user_repository())


def get_change_user_status_use_case() -> ChangeUserStatusUseCase:
    return ChangeUserStatusUseCase(get_user_repository())


def get_list_roles_use_case() -> ListRolesUseCase:
    return ListRolesUseCase(get_role_repository())


def get_get_role_use_case() -> GetRoleUseCase:
    return GetRoleUseCase(get_role_repository())


def get_update_role_permissions_use_case() -> UpdateRolePermissionsUseCase:
    return UpdateRolePermissionsUseCase(get_role_repository())
