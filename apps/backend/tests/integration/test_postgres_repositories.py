"""
Name: PostgreSQL Repository Integration Tests

Responsibilities:
  - Test the Postgres repositories against a migrated database
  - Verify unique constraints surface as UniqueViolationError
  - Verify atomic tenant onboarding and the live-association partial index
  - Verify refresh-token revocation and purge
  - Verify the pending share-request partial index and completion

Collaborators:
  - kiki.infrastructure.repositories.postgres: repositories under test
  - PostgreSQL: database under test (alembic head)

Notes:
  - Requires running PostgreSQL instance (use Docker Compose)
  - Mark with @pytest.mark.integration

Setup:
  Run before tests: docker compose up -d db
"""

import os

import pytest

# Skip BEFORE importing kiki.* to avoid triggering env validation during collection
if os.getenv("RUN_INTEGRATION") != "1":
    pytest.skip(
        "Set RUN_INTEGRATION=1 to run integration tests", allow_module_level=True
    )

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from kiki.crosscutting.exceptions import UniqueViolationError
from kiki.domain.entities import (
    Account,
    ActiveAssociation,
    Association,
    AssociationStatus,
    Division,
    RefreshToken,
    RequestedShare,
    Student,
    User,
    UserStatus,
)
from kiki.domain.permissions import Action, Module, grant
from kiki.domain.roles import RoleName
from kiki.infrastructure.repositories.postgres import (
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

pytestmark = [pytest.mark.integration, pytest.mark.usefixtures("clean_db")]


def _user(email: str, *, account_id=None, role_name=RoleName.FAMILYADMIN) -> User:
    now = datetime.now(timezone.utc)
    return User(
        id=uuid4(),
        name="Usuario Integración",
        email=email,
        password_hash="hash",
        role_name=role_name,
        status=UserStatus.APPROVED,
        account_id=account_id,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def account():
    return PostgresAccountRepository().create_account(
        Account(name="Escuela Norte", legal_name="Escuela Norte SA", admin_email="admin@norte.edu")
    )


@pytest.fixture
def division(account):
    return PostgresDivisionRepository().create_division(
        Division(account_id=account.id, name="1A")
    )


@pytest.fixture
def student(account, division):
    return PostgresStudentRepository().create_student(
        Student(
            account_id=account.id,
            division_id=division.id,
            first_name="Ana",
            last_name="Pérez",
            dni="30111222",
        )
    )


def test_user_email_is_unique():
    repo = PostgresUserRepository()
    repo.create_user(_user("dup@example.com"))

    with pytest.raises(UniqueViolationError) as exc_info:
        repo.create_user(_user("dup@example.com"))

    assert exc_info.value.constraint == "uq_users_email"


def test_user_round_trip_and_update(account):
    repo = PostgresUserRepository()
    created = repo.create_user(_user("persist@example.com", account_id=account.id))

    updated = repo.update_user(replace(created, phone="+54 11 4000-0000"))

    assert repo.get_user_by_email("persist@example.com").id == created.id
    assert updated.phone == "+54 11 4000-0000"


def test_onboarding_is_atomic():
    onboarding = PostgresTenantOnboardingRepository()
    admin = _user("root@escuela.edu", role_name=RoleName.ADMINACCOUNT)
    account = Account(
        name="Escuela Sur",
        legal_name="Escuela Sur SRL",
        admin_email=admin.email,
        admin_user_id=admin.id,
    )
    admin = replace(admin, account_id=account.id)
    association = Association(
        user_id=admin.id,
        account_id=account.id,
        role_name=RoleName.ADMINACCOUNT,
        status=AssociationStatus.ACTIVE,
    )

    created = onboarding.onboard_account(account, admin, association)

    assert created.admin_user_id == admin.id
    assert PostgresUserRepository().get_user_by_id(admin.id) is not None
    assert PostgresAssociationRepository().get_association(association.id) is not None


def test_failed_onboarding_leaves_nothing_behind():
    users = PostgresUserRepository()
    users.create_user(_user("taken@escuela.edu"))
    admin = _user("taken@escuela.edu", role_name=RoleName.ADMINACCOUNT)
    account = Account(
        name="Escuela Oeste",
        legal_name="Escuela Oeste SA",
        admin_email=admin.email,
        admin_user_id=admin.id,
    )
    association = Association(
        user_id=admin.id, account_id=account.id, role_name=RoleName.ADMINACCOUNT
    )

    with pytest.raises(UniqueViolationError):
        PostgresTenantOnboardingRepository().onboard_account(account, admin, association)

    assert PostgresAccountRepository().get_account(account.id) is None


def test_division_name_unique_per_account(account, division):
    with pytest.raises(UniqueViolationError):
        PostgresDivisionRepository().create_division(
            Division(account_id=account.id, name="1A")
        )


def test_list_students_with_search(account, student):
    repo = PostgresStudentRepository()

    hits, total = repo.list_students(account.id, search="pér")
    misses, _ = repo.list_students(account.id, search="zzz")

    assert total == 1
    assert hits[0].id == student.id
    assert misses == []


def test_live_association_scope_is_unique(account, division, student):
    users = PostgresUserRepository()
    associations = PostgresAssociationRepository()
    user = users.create_user(_user("familia@example.com", account_id=account.id))
    scope = dict(
        user_id=user.id,
        account_id=account.id,
        role_name=RoleName.FAMILYADMIN,
        division_id=division.id,
        student_id=student.id,
    )
    first = associations.create_association(
        Association(**scope, status=AssociationStatus.PENDING)
    )

    with pytest.raises(UniqueViolationError):
        associations.create_association(Association(**scope, status=AssociationStatus.ACTIVE))

    associations.update_association(replace(first, status=AssociationStatus.INACTIVE))
    again = associations.create_association(
        Association(**scope, status=AssociationStatus.ACTIVE)
    )
    assert again.id != first.id
    assert associations.find_live_association(**scope).id == again.id


def test_association_permissions_are_persisted(account):
    user = PostgresUserRepository().create_user(
        _user("coord@example.com", account_id=account.id, role_name=RoleName.ADMINACCOUNT)
    )
    association = PostgresAssociationRepository().create_association(
        Association(
            user_id=user.id,
            account_id=account.id,
            role_name=RoleName.ADMINACCOUNT,
            status=AssociationStatus.ACTIVE,
            permissions=[grant(Module.REPORTES, Action.LEER)],
        )
    )

    loaded = PostgresAssociationRepository().get_association(association.id)

    assert loaded.permissions == [grant(Module.REPORTES, Action.LEER)]


def test_active_pointer_upsert_and_cascade(account):
    user = PostgresUserRepository().create_user(
        _user("pointer@example.com", account_id=account.id, role_name=RoleName.ADMINACCOUNT)
    )
    association = PostgresAssociationRepository().create_association(
        Association(
            user_id=user.id,
            account_id=account.id,
            role_name=RoleName.ADMINACCOUNT,
            status=AssociationStatus.ACTIVE,
        )
    )
    active_repo = PostgresActiveAssociationRepository()

    active_repo.upsert_active(ActiveAssociation.from_association(association))
    active_repo.upsert_active(ActiveAssociation.from_association(association))

    assert active_repo.get_active(user.id).association_id == association.id
    assert len(active_repo.list_all_active()) == 1
    assert active_repo.delete_by_association(association.id) == 1
    assert active_repo.get_active(user.id) is None


def test_refresh_tokens_revoke_and_purge():
    user = PostgresUserRepository().create_user(_user("tokens@example.com"))
    repo = PostgresRefreshTokenRepository()
    now = datetime.now(timezone.utc)
    live = repo.create_token(
        RefreshToken(user_id=user.id, token_hash="a" * 64, expires_at=now + timedelta(days=7))
    )
    repo.create_token(
        RefreshToken(user_id=user.id, token_hash="b" * 64, expires_at=now - timedelta(days=1))
    )

    assert repo.delete_expired(now) == 1
    assert repo.get_by_hash("b" * 64) is None
    assert repo.revoke_all_for_user(user.id) == 1
    assert repo.get_by_hash(live.token_hash).is_revoked is True
    # Revocado pero vigente: la purga lo conserva.
    assert repo.delete_expired(now) == 0


def test_refresh_token_revoke_is_compare_and_set():
    user = PostgresUserRepository().create_user(_user("rotation@example.com"))
    repo = PostgresRefreshTokenRepository()
    now = datetime.now(timezone.utc)
    token = repo.create_token(
        RefreshToken(user_id=user.id, token_hash="c" * 64, expires_at=now + timedelta(days=7))
    )
    successor = uuid4()

    assert repo.revoke_token(token.id, used_at=now, replaced_by_id=successor) is True
    assert repo.revoke_token(token.id, replaced_by_id=uuid4()) is False

    stored = repo.get_by_hash(token.token_hash)
    assert stored.is_revoked is True
    assert stored.replaced_by_id == successor
    assert stored.last_used_at is not None


def test_role_catalog_is_seeded():
    names = {role.name for role in PostgresRoleRepository().list_roles()}

    assert RoleName.SUPERADMIN in names
    assert RoleName.FAMILYVIEWER in names


def test_requested_share_pending_index_and_completion(account, division, student):
    requester = PostgresUserRepository().create_user(
        _user("mama@example.com", account_id=account.id)
    )
    repo = PostgresRequestedShareRepository()

    def _request() -> RequestedShare:
        return RequestedShare(
            requested_by=requester.id,
            requested_email="abuela@example.com",
            account_id=account.id,
            role_name=RoleName.FAMILYVIEWER,
            division_id=division.id,
            student_id=student.id,
        )

    created = repo.create_request(_request())
    with pytest.raises(UniqueViolationError) as exc_info:
        repo.create_request(_request())

    assert exc_info.value.constraint == "uq_requested_shares_pending"
    assert repo.find_pending(
        email="abuela@example.com", account_id=account.id, student_id=student.id
    ).id == created.id
    assert [r.id for r in repo.list_pending_for_email("abuela@example.com")] == [created.id]

    abuela = PostgresUserRepository().create_user(_user("abuela@example.com"))
    now = datetime.now(timezone.utc)
    assert repo.mark_completed(created.id, completed_by=abuela.id, completed_at=now) is True
    assert repo.mark_completed(created.id, completed_by=abuela.id, completed_at=now) is False
    assert repo.list_pending_for_email("abuela@example.com") == []

    # Cerrada la anterior, el índice parcial admite una nueva pending.
    repo.create_request(_request())
