"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure the test environment (APP_ENV=test, no .env file)
  - Reset process-wide singletons between tests (settings, container, rate limiter)
  - Provide in-memory repositories and a seeded tenant (account/division/student)
  - Provide factories for users, associations and principals

Collaborators:
  - pytest: Test framework
  - kiki.infrastructure.repositories.in_memory: fake persistence
  - kiki.domain: entities, roles and the Principal

Notes:
  - Fixtures are auto-discovered by pytest
  - APP_ENV=test forces the in-memory backend inside the container
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("APP_ENV", "test")

from kiki.crosscutting import config as kiki_config  # noqa: E402

kiki_config.Settings.model_config["env_file"] = None

from kiki.container import reset_container  # noqa: E402
from kiki.crosscutting.rate_limit import reset_rate_limiter  # noqa: E402
from kiki.domain.access import Principal  # noqa: E402
from kiki.domain.entities import (  # noqa: E402
    Account,
    ActiveAssociation,
    Association,
    AssociationStatus,
    Division,
    Role,
    Student,
    User,
    UserStatus,
)
from kiki.domain.permissions import PermissionGrant, effective_permissions  # noqa: E402
from kiki.domain.roles import RoleName, default_definition  # noqa: E402
from kiki.infrastructure.repositories.in_memory import (  # noqa: E402
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


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Tests that need PostgreSQL (RUN_INTEGRATION=1)"
    )


# ============================================================================
# Global state isolation
# ============================================================================


@pytest.fixture(autouse=True)
def _isolated_singletons():
    """R: Fresh settings, repositories and rate limiter for every test."""
    kiki_config.get_settings.cache_clear()
    reset_container()
    reset_rate_limiter()
    yield
    kiki_config.get_settings.cache_clear()
    reset_container()
    reset_rate_limiter()


# ============================================================================
# Repositories
# ============================================================================


@pytest.fixture
def repos() -> SimpleNamespace:
    """R: One in-memory repository per port, wired like the container does."""
    accounts = InMemoryAccountRepository()
    users = InMemoryUserRepository()
    associations = InMemoryAssociationRepository()
    return SimpleNamespace(
        roles=InMemoryRoleRepository(),
        accounts=accounts,
        divisions=InMemoryDivisionRepository(),
        students=InMemoryStudentRepository(),
        users=users,
        associations=associations,
        active=InMemoryActiveAssociationRepository(),
        refresh_tokens=InMemoryRefreshTokenRepository(),
        requested_shares=InMemoryRequestedShareRepository(),
        onboarding=InMemoryTenantOnboardingRepository(accounts, users, associations),
    )


@pytest.fixture
def tenant(repos) -> SimpleNamespace:
    """R: An active account with one division and one student."""
    account = repos.accounts.create_account(
        Account(name="Escuela Norte", legal_name="Escuela Norte SA", admin_email="admin@norte.edu")
    )
    division = repos.divisions.create_division(
        Division(account_id=account.id, name="1A")
    )
    student = repos.students.create_student(
        Student(
            account_id=account.id,
            division_id=division.id,
            first_name="Ana",
            last_name="Pérez",
            dni="30111222",
        )
    )
    return SimpleNamespace(account=account, division=division, student=student)


# ============================================================================
# Factories
# ============================================================================


class UserFactory:
    """R: Build users with sensible defaults (approved, familyadmin)."""

    @staticmethod
    def create(
        *,
        email: str | None = None,
        role_name: RoleName = RoleName.FAMILYADMIN,
        status: UserStatus = UserStatus.APPROVED,
        account_id: UUID | None = None,
        password_hash: str = "hashed:secret",
        name: str = "Test User",
    ) -> User:
        now = datetime.now(timezone.utc)
        return User(
            id=uuid4(),
            name=name,
            email=email or f"user-{uuid4().hex[:8]}@example.com",
            password_hash=password_hash,
            role_name=role_name,
            status=status,
            account_id=account_id,
            created_at=now,
            updated_at=now,
        )


class PrincipalFactory:
    """
    R: Build a Principal the way ResolvePrincipalUseCase would.

    The role grid comes from the default catalog; `overrides` plays the part
    of the association's own grid.
    """

    @staticmethod
    def create(
        role_name: RoleName,
        *,
        account_id: UUID | None = None,
        division_id: UUID | None = None,
        student_id: UUID | None = None,
        overrides: list[PermissionGrant] | None = None,
        user: User | None = None,
    ) -> Principal:
        definition = default_definition(role_name)
        role = Role(
            name=definition.name,
            description=definition.description,
            level=definition.level,
            permissions=list(definition.permissions),
        )
        user = user or UserFactory.create(role_name=role_name, account_id=account_id)
        active = None
        if account_id is not None:
            active = ActiveAssociation(
                user_id=user.id,
                association_id=uuid4(),
                account_id=account_id,
                role_name=role_name,
                division_id=division_id,
                student_id=student_id,
            )
        return Principal(
            user=user,
            role=role,
            active_association=active,
            permissions=tuple(effective_permissions(role.permissions, overrides)),
        )


def make_association(
    user_id: UUID,
    account_id: UUID,
    *,
    role_name: RoleName = RoleName.ADMINACCOUNT,
    status: AssociationStatus = AssociationStatus.ACTIVE,
    division_id: UUID | None = None,
    student_id: UUID | None = None,
) -> Association:
    return Association(
        user_id=user_id,
        account_id=account_id,
        role_name=role_name,
        division_id=division_id,
        student_id=student_id,
        status=status,
    )


@pytest.fixture
def user_factory() -> type[UserFactory]:
    """R: Provide UserFactory for tests."""
    return UserFactory


@pytest.fixture
def principal_factory() -> type[PrincipalFactory]:
    """R: Provide PrincipalFactory for tests."""
    return PrincipalFactory


@pytest.fixture
def association_factory():
    """R: Provide make_association for tests."""
    return make_association


@pytest.fixture
def superadmin(principal_factory) -> Principal:
    return principal_factory.create(RoleName.SUPERADMIN)


@pytest.fixture
def account_admin(principal_factory, tenant) -> Principal:
    return principal_factory.create(RoleName.ADMINACCOUNT, account_id=tenant.account.id)


def dummy_hasher(password: str) -> str:
    return f"hashed:{password}"


def dummy_verifier(password: str, password_hash: str) -> bool:
    return password_hash == f"hashed:{password}"


@pytest.fixture
def fake_hasher():
    """R: Deterministic stand-in for Argon2 hashing."""
    return dummy_hasher


@pytest.fixture
def fake_verifier():
    return dummy_verifier
