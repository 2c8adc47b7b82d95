"""
Name: Auth Use Case Tests

Responsibilities:
  - Login: credentials, user status gating, association gating, auto-selection
  - Refresh: rotation, reuse detection, expiry, non-rotating mode
  - Logout (single / all sessions) and purge of dead tokens
  - Self-registration and password change
  - Principal resolution (role fallback, effective grid, stale pointers)
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from itertools import count
from uuid import uuid4

import pytest
from kiki.application.usecases.associations import GetActiveAssociationUseCase
from kiki.application.usecases.auth import (
    AuthErrorCode,
    ChangePasswordUseCase,
    LoginUseCase,
    LogoutUseCase,
    PurgeRefreshTokensUseCase,
    RefreshSessionUseCase,
    RegisterUserInput,
    RegisterUserUseCase,
    ResolvePrincipalUseCase,
    SessionIssuer,
)
from kiki.application.seed_roles import ensure_role_catalog
from kiki.domain.entities import ActiveAssociation, AssociationStatus, UserStatus
from kiki.domain.permissions import Action, Module, grant
from kiki.domain.roles import RoleName
from kiki.identity.auth_users import hash_refresh_token

pytestmark = pytest.mark.unit


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def issuer(repos, clock) -> SessionIssuer:
    counter = count(1)
    return SessionIssuer(
        repos.refresh_tokens,
        access_token_issuer=lambda user: (f"access-{user.id}", 900),
        token_generator=lambda: f"refresh-{next(counter)}",
        token_hasher=hash_refresh_token,
        refresh_ttl=timedelta(days=7),
        clock=clock,
    )


@pytest.fixture
def login(repos, issuer, fake_verifier) -> LoginUseCase:
    return LoginUseCase(
        repos.users,
        repos.associations,
        repos.active,
        issuer,
        password_verifier=fake_verifier,
    )


@pytest.fixture
def family_user(repos, tenant, user_factory, association_factory):
    user = repos.users.create_user(
        user_factory.create(email="familia@example.com", account_id=tenant.account.id)
    )
    association = repos.associations.create_association(
        association_factory(
            user.id,
            tenant.account.id,
            role_name=RoleName.FAMILYADMIN,
            division_id=tenant.division.id,
            student_id=tenant.student.id,
        )
    )
    return user, association


# ============================================================================
# Login
# ============================================================================


def test_login_ok_issues_tokens_and_selects_single_association(repos, login, family_user):
    user, association = family_user

    result = login.execute("  FAMILIA@example.com ", "secret")

    assert result.error is None
    assert result.tokens.access_token == f"access-{user.id}"
    assert result.tokens.token_type == "bearer"
    assert result.user.last_login_at is not None
    stored = repos.refresh_tokens.get_by_hash(hash_refresh_token(result.tokens.refresh_token))
    assert stored is not None and stored.user_id == user.id
    assert repos.active.get_active(user.id).association_id == association.id


def test_login_does_not_override_existing_pointer(
    repos, login, tenant, family_user, association_factory
):
    user, association = family_user
    second = repos.associations.create_association(
        association_factory(
            user.id,
            tenant.account.id,
            role_name=RoleName.FAMILYVIEWER,
            division_id=tenant.division.id,
            student_id=tenant.student.id,
        )
    )
    repos.active.upsert_active(ActiveAssociation.from_association(second))

    login.execute("familia@example.com", "secret")

    assert repos.active.get_active(user.id).association_id == second.id


def test_login_with_many_associations_leaves_choice_to_user(
    repos, login, tenant, family_user, association_factory
):
    user, _ = family_user
    repos.associations.create_association(
        association_factory(
            user.id,
            tenant.account.id,
            role_name=RoleName.FAMILYVIEWER,
            division_id=tenant.division.id,
            student_id=tenant.student.id,
        )
    )

    result = login.execute("familia@example.com", "secret")

    assert result.error is None
    assert repos.active.get_active(user.id) is None


@pytest.mark.parametrize(
    "email, password",
    [("familia@example.com", "wrong"), ("nadie@example.com", "secret"), ("", "secret")],
)
def test_login_invalid_credentials_share_one_code(login, family_user, email, password):
    result = login.execute(email, password)

    assert result.error.code == AuthErrorCode.INVALID_CREDENTIALS
    assert result.tokens is None


@pytest.mark.parametrize(
    "status, code",
    [
        (UserStatus.PENDING, AuthErrorCode.USER_NOT_APPROVED),
        (UserStatus.REJECTED, AuthErrorCode.USER_REJECTED),
    ],
)
def test_login_gated_by_user_status(repos, login, user_factory, status, code):
    repos.users.create_user(user_factory.create(email="p@example.com", status=status))

    result = login.execute("p@example.com", "secret")

    assert result.error.code == code


def test_login_without_active_association_is_pending(
    repos, login, tenant, user_factory, association_factory
):
    user = repos.users.create_user(user_factory.create(email="nueva@example.com"))
    repos.associations.create_association(
        association_factory(
            user.id,
            tenant.account.id,
            role_name=RoleName.FAMILYADMIN,
            division_id=tenant.division.id,
            student_id=tenant.student.id,
            status=AssociationStatus.PENDING,
        )
    )

    result = login.execute("nueva@example.com", "secret")

    assert result.error.code == AuthErrorCode.ASSOCIATION_PENDING


def test_superadmin_logs_in_without_associations(repos, login, user_factory):
    repos.users.create_user(
        user_factory.create(email="root@example.com", role_name=RoleName.SUPERADMIN)
    )

    result = login.execute("root@example.com", "secret")

    assert result.error is None


# ============================================================================
# Refresh
# ============================================================================


def _refresh(repos, issuer, rotation=True) -> RefreshSessionUseCase:
    return RefreshSessionUseCase(repos.refresh_tokens, repos.users, issuer, rotation=rotation)


def test_refresh_rotates_token(repos, issuer, login, family_user):
    tokens = login.execute("familia@example.com", "secret").tokens

    result = _refresh(repos, issuer).execute(tokens.refresh_token)

    assert result.error is None
    assert result.tokens.refresh_token != tokens.refresh_token
    old = repos.refresh_tokens.get_by_hash(hash_refresh_token(tokens.refresh_token))
    assert old.is_revoked is True
    assert old.replaced_by_id == result.refresh_record.id
    assert old.last_used_at is not None


def test_refresh_reuse_revokes_every_session(repos, issuer, login, family_user):
    user, _ = family_user
    tokens = login.execute("familia@example.com", "secret").tokens
    use_case = _refresh(repos, issuer)
    rotated = use_case.execute(tokens.refresh_token).tokens

    reused = use_case.execute(tokens.refresh_token)

    assert reused.error.code == AuthErrorCode.REFRESH_TOKEN_REVOKED
    latest = repos.refresh_tokens.get_by_hash(hash_refresh_token(rotated.refresh_token))
    assert latest.is_revoked is True
    assert latest.user_id == user.id


def test_refresh_without_rotation_keeps_token(repos, issuer, login, family_user):
    tokens = login.execute("familia@example.com", "secret").tokens

    result = _refresh(repos, issuer, rotation=False).execute(tokens.refresh_token)

    assert result.error is None
    assert result.tokens.refresh_token == tokens.refresh_token
    record = repos.refresh_tokens.get_by_hash(hash_refresh_token(tokens.refresh_token))
    assert record.is_revoked is False
    assert record.last_used_at is not None


def test_refresh_unknown_token(repos, issuer):
    result = _refresh(repos, issuer).execute("nope")

    assert result.error.code == AuthErrorCode.REFRESH_TOKEN_INVALID


def test_refresh_empty_token(repos, issuer):
    result = _refresh(repos, issuer).execute("")

    assert result.error.code == AuthErrorCode.REFRESH_TOKEN_INVALID


def test_refresh_expired_token_is_revoked(repos, issuer, clock, login, family_user):
    tokens = login.execute("familia@example.com", "secret").tokens
    clock.advance(days=8)

    result = _refresh(repos, issuer).execute(tokens.refresh_token)

    assert result.error.code == AuthErrorCode.REFRESH_TOKEN_EXPIRED
    record = repos.refresh_tokens.get_by_hash(hash_refresh_token(tokens.refresh_token))
    assert record.is_revoked is True


def test_refresh_for_rejected_user(repos, issuer, login, family_user):
    user, _ = family_user
    tokens = login.execute("familia@example.com", "secret").tokens
    repos.users.update_user(replace(repos.users.get_user_by_id(user.id), status=UserStatus.REJECTED))

    result = _refresh(repos, issuer).execute(tokens.refresh_token)

    assert result.error.code == AuthErrorCode.USER_REJECTED


def test_expired_token_retry_stays_expired_and_spares_other_devices(
    repos, issuer, clock, login, family_user
):
    laptop = login.execute("familia@example.com", "secret").tokens
    clock.advance(days=6)
    phone = login.execute("familia@example.com", "secret").tokens
    clock.advance(days=2)
    use_case = _refresh(repos, issuer)

    first = use_case.execute(laptop.refresh_token)
    retry = use_case.execute(laptop.refresh_token)

    assert first.error.code == AuthErrorCode.REFRESH_TOKEN_EXPIRED
    assert retry.error.code == AuthErrorCode.REFRESH_TOKEN_EXPIRED
    phone_record = repos.refresh_tokens.get_by_hash(hash_refresh_token(phone.refresh_token))
    assert phone_record.is_revoked is False
    assert use_case.execute(phone.refresh_token).error is None


def test_logged_out_token_is_revoked_without_revoking_others(
    repos, issuer, login, family_user
):
    user, _ = family_user
    first = login.execute("familia@example.com", "secret").tokens
    second = login.execute("familia@example.com", "secret").tokens
    _logout(repos).execute(user.id, first.refresh_token)

    result = _refresh(repos, issuer).execute(first.refresh_token)

    assert result.error.code == AuthErrorCode.REFRESH_TOKEN_REVOKED
    other = repos.refresh_tokens.get_by_hash(hash_refresh_token(second.refresh_token))
    assert other.is_revoked is False


class _ReadBarrierTokens:
    """Delegates to the real repository; both readers meet after get_by_hash."""

    def __init__(self, inner, barrier: threading.Barrier) -> None:
        self._inner = inner
        self._barrier = barrier

    def get_by_hash(self, token_hash):
        record = self._inner.get_by_hash(token_hash)
        self._barrier.wait(timeout=5)
        return record

    def __getattr__(self, name):
        return getattr(self._inner, name)


def test_concurrent_refresh_of_one_token_yields_single_successor(
    repos, issuer, login, family_user
):
    tokens = login.execute("familia@example.com", "secret").tokens
    racing_repo = _ReadBarrierTokens(repos.refresh_tokens, threading.Barrier(2))
    use_case = RefreshSessionUseCase(racing_repo, repos.users, issuer)

    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [pool.submit(use_case.execute, tokens.refresh_token) for _ in range(2)]
        results = [future.result(timeout=10) for future in futures]

    winners = [r for r in results if r.error is None]
    losers = [r for r in results if r.error is not None]
    assert len(winners) == 1
    assert losers[0].error.code == AuthErrorCode.REFRESH_TOKEN_REVOKED
    old = repos.refresh_tokens.get_by_hash(hash_refresh_token(tokens.refresh_token))
    assert old.replaced_by_id == winners[0].refresh_record.id


# ============================================================================
# Logout / purge
# ============================================================================


def _logout(repos) -> LogoutUseCase:
    return LogoutUseCase(repos.refresh_tokens, repos.active, token_hasher=hash_refresh_token)


def test_logout_revokes_presented_token(repos, login, family_user):
    user, _ = family_user
    tokens = login.execute("familia@example.com", "secret").tokens

    result = _logout(repos).execute(user.id, tokens.refresh_token)

    assert result.revoked == 1
    assert repos.refresh_tokens.get_by_hash(hash_refresh_token(tokens.refresh_token)).is_revoked


def test_logout_is_idempotent(repos, login, family_user):
    user, _ = family_user
    tokens = login.execute("familia@example.com", "secret").tokens
    _logout(repos).execute(user.id, tokens.refresh_token)

    assert _logout(repos).execute(user.id, tokens.refresh_token).revoked == 0
    assert _logout(repos).execute(user.id, None).revoked == 0
    assert _logout(repos).execute(user.id, "unknown").revoked == 0


def test_logout_ignores_token_of_other_user(repos, login, family_user):
    tokens = login.execute("familia@example.com", "secret").tokens

    result = _logout(repos).execute(uuid4(), tokens.refresh_token)

    assert result.revoked == 0


def test_logout_all_sessions_revokes_and_clears_pointer(repos, login, family_user):
    user, _ = family_user
    login.execute("familia@example.com", "secret")
    login.execute("familia@example.com", "secret")

    result = _logout(repos).execute(user.id, all_sessions=True)

    assert result.revoked == 2
    assert repos.active.get_active(user.id) is None


def test_purge_deletes_only_expired_tokens(repos, issuer, login, family_user, clock):
    user, _ = family_user
    first = login.execute("familia@example.com", "secret").tokens
    login.execute("familia@example.com", "secret")
    _logout(repos).execute(user.id, first.refresh_token)

    assert PurgeRefreshTokensUseCase(repos.refresh_tokens, clock=clock).execute() == 0
    # El revocado sigue registrado: su replay se reconoce como revocado.
    replay = _refresh(repos, issuer).execute(first.refresh_token)
    assert replay.error.code == AuthErrorCode.REFRESH_TOKEN_REVOKED

    clock.advance(days=30)
    assert PurgeRefreshTokensUseCase(repos.refresh_tokens, clock=clock).execute() == 2


def test_rotated_token_replay_detected_after_purge(repos, issuer, login, family_user, clock):
    tokens = login.execute("familia@example.com", "secret").tokens
    rotated = _refresh(repos, issuer).execute(tokens.refresh_token).tokens
    PurgeRefreshTokensUseCase(repos.refresh_tokens, clock=clock).execute()

    replay = _refresh(repos, issuer).execute(tokens.refresh_token)

    assert replay.error.code == AuthErrorCode.REFRESH_TOKEN_REVOKED
    latest = repos.refresh_tokens.get_by_hash(hash_refresh_token(rotated.refresh_token))
    assert latest.is_revoked is True


# ============================================================================
# Register
# ============================================================================


@pytest.fixture
def register(repos, fake_hasher) -> RegisterUserUseCase:
    return RegisterUserUseCase(
        repos.users,
        repos.associations,
        repos.accounts,
        repos.divisions,
        repos.students,
        repos.requested_shares,
        password_hasher=fake_hasher,
    )


def test_register_creates_pending_user_and_association(repos, register, tenant):
    result = register.execute(
        RegisterUserInput(
            name="Mamá de Ana",
            email="Mama@Example.com",
            password="secret1",
            account_id=tenant.account.id,
            division_id=tenant.division.id,
            student_id=tenant.student.id,
        )
    )

    assert result.error is None
    assert result.user.status == UserStatus.PENDING
    assert result.user.email == "mama@example.com"
    assert result.user.password_hash == "hashed:secret1"
    assert result.association.status == AssociationStatus.PENDING
    assert result.association.created_by == result.user.id


def test_register_without_account_creates_only_user(register):
    result = register.execute(
        RegisterUserInput(name="Papá", email="papa@example.com", password="secret1")
    )

    assert result.error is None
    assert result.association is None


def test_register_rejects_non_family_roles(register):
    result = register.execute(
        RegisterUserInput(
            name="Intruso",
            email="x@example.com",
            password="secret1",
            role_name=RoleName.ADMINACCOUNT,
        )
    )

    assert result.error.code == AuthErrorCode.VALIDATION_ERROR


def test_register_duplicate_email_is_conflict(register):
    data = RegisterUserInput(name="Papá", email="papa@example.com", password="secret1")
    register.execute(data)

    result = register.execute(data)

    assert result.error.code == AuthErrorCode.CONFLICT


def test_register_short_password(register):
    result = register.execute(
        RegisterUserInput(name="Papá", email="papa@example.com", password="123")
    )

    assert result.error.code == AuthErrorCode.VALIDATION_ERROR


def test_register_unknown_account_is_not_found(register):
    result = register.execute(
        RegisterUserInput(
            name="Papá",
            email="papa@example.com",
            password="secret1",
            account_id=uuid4(),
            division_id=uuid4(),
            student_id=uuid4(),
        )
    )

    assert result.error.code == AuthErrorCode.NOT_FOUND


# ============================================================================
# Change password
# ============================================================================


@pytest.fixture
def change_password(repos, fake_hasher, fake_verifier) -> ChangePasswordUseCase:
    return ChangePasswordUseCase(
        repos.users,
        repos.refresh_tokens,
        password_hasher=fake_hasher,
        password_verifier=fake_verifier,
    )


def test_change_password_updates_hash_and_revokes_sessions(login, family_user, change_password):
    user, _ = family_user
    login.execute("familia@example.com", "secret")

    result = change_password.execute(user.id, "secret", "nuevo-secreto")

    assert result.error is None
    assert result.revoked_sessions == 1
    assert result.user.password_hash == "hashed:nuevo-secreto"
    assert result.user.is_first_login is False
    assert result.user.password_changed_at is not None


@pytest.mark.parametrize(
    "current, new, code",
    [
        ("wrong", "nuevo-secreto", AuthErrorCode.INVALID_CREDENTIALS),
        ("secret", "123", AuthErrorCode.VALIDATION_ERROR),
        ("secret", "secret", AuthErrorCode.VALIDATION_ERROR),
    ],
)
def test_change_password_errors(family_user, change_password, current, new, code):
    user, _ = family_user

    result = change_password.execute(user.id, current, new)

    assert result.error.code == code


def test_change_password_unknown_user(change_password):
    result = change_password.execute(uuid4(), "secret", "nuevo-secreto")

    assert result.error.code == AuthErrorCode.USER_NOT_FOUND


# ============================================================================
# Principal resolution
# ============================================================================


@pytest.fixture
def resolve(repos) -> ResolvePrincipalUseCase:
    return ResolvePrincipalUseCase(
        repos.users,
        repos.roles,
        GetActiveAssociationUseCase(repos.associations, repos.active),
    )


def test_resolve_uses_active_association_role(repos, resolve, tenant, family_user):
    user, association = family_user
    ensure_role_catalog(repos.roles)
    repos.active.upsert_active(ActiveAssociation.from_association(association))

    result = resolve.execute(user.id)

    principal = result.principal
    assert principal.role_name == RoleName.FAMILYADMIN
    assert principal.account_id == tenant.account.id
    assert principal.student_id == tenant.student.id
    assert principal.can(Module.FAMILIAS, Action.ACTUALIZAR)


def test_resolve_applies_association_overrides(repos, resolve, family_user):
    user, association = family_user
    repos.associations.update_association(
        replace(association, permissions=[grant(Module.FAMILIAS, Action.VER)])
    )
    repos.active.upsert_active(ActiveAssociation.from_association(association))

    principal = resolve.execute(user.id).principal

    assert principal.can(Module.FAMILIAS, Action.VER)
    assert not principal.can(Module.FAMILIAS, Action.ACTUALIZAR)


def test_resolve_falls_back_to_catalog_when_role_missing(resolve, repos, user_factory):
    user = repos.users.create_user(user_factory.create(role_name=RoleName.SUPERADMIN))

    principal = resolve.execute(user.id).principal

    assert principal.role_name == RoleName.SUPERADMIN
    assert principal.can(Module.CUENTAS, Action.CREAR)


def test_resolve_inactive_role_grants_nothing(repos, resolve, user_factory):
    ensure_role_catalog(repos.roles)
    role = repos.roles.get_role(RoleName.COORDINADOR)
    repos.roles.save_role(replace(role, is_active=False))
    user = repos.users.create_user(user_factory.create(role_name=RoleName.COORDINADOR))

    principal = resolve.execute(user.id).principal

    assert principal.permissions == ()


def test_resolve_ignores_stale_pointer(repos, resolve, family_user):
    user, association = family_user
    repos.active.upsert_active(ActiveAssociation.from_association(association))
    repos.associations.update_association(
        replace(association, status=AssociationStatus.INACTIVE)
    )

    principal = resolve.execute(user.id).principal

    assert principal.active_association is None
    assert repos.active.get_active(user.id) is None


@pytest.mark.parametrize(
    "status, code",
    [
        (UserStatus.PENDING, AuthErrorCode.USER_NOT_APPROVED),
        (UserStatus.REJECTED, AuthErrorCode.USER_REJECTED),
    ],
)
def test_resolve_rejects_unapproved_users(repos, resolve, user_factory, status, code):
    user = repos.users.create_user(user_factory.create(status=status))

    assert resolve.execute(user.id).error.code == code


def test_resolve_unknown_user(resolve):
    assert resolve.execute(uuid4()).error.code == AuthErrorCode.USER_NOT_FOUND
