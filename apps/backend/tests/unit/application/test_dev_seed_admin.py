"""
Tests for dev_seed_admin module.

Validates:
  - Disabled when config says so
  - Fail-fast when not in a local/development environment
  - Creates an approved superadmin when missing
  - Idempotent when the user exists
  - Force reset behavior
  - E2E override (env flags)
"""

from unittest.mock import MagicMock

import pytest
from kiki.application.dev_seed_admin import ensure_dev_superadmin
from kiki.crosscutting.config import Settings
from kiki.domain.entities import UserStatus
from kiki.domain.roles import RoleName

pytestmark = pytest.mark.unit


def _settings(**overrides) -> Settings:
    values = dict(
        persistence_backend="memory",
        app_env="local",
        dev_seed_superadmin=True,
        dev_seed_superadmin_email="Root@Local",
        dev_seed_superadmin_password="pass123",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def repo() -> MagicMock:
    mock = MagicMock()
    mock.get_user_by_email.return_value = None
    return mock


def test_disabled_is_noop(repo, fake_hasher):
    ensure_dev_superadmin(
        _settings(dev_seed_superadmin=False),
        user_repo=repo,
        password_hasher=fake_hasher,
        env={},
    )

    repo.get_user_by_email.assert_not_called()
    repo.create_user.assert_not_called()


@pytest.mark.parametrize("app_env", ["staging", "test"])
def test_fail_fast_outside_local(repo, fake_hasher, app_env):
    with pytest.raises(RuntimeError, match="must be local or development"):
        ensure_dev_superadmin(
            _settings(app_env=app_env),
            user_repo=repo,
            password_hasher=fake_hasher,
            env={},
        )

    repo.create_user.assert_not_called()


def test_creates_approved_superadmin(repo, fake_hasher):
    ensure_dev_superadmin(
        _settings(), user_repo=repo, password_hasher=fake_hasher, env={}
    )

    repo.get_user_by_email.assert_called_once_with("root@local")
    created = repo.create_user.call_args.args[0]
    assert created.email == "root@local"
    assert created.role_name == RoleName.SUPERADMIN
    assert created.status == UserStatus.APPROVED
    assert created.password_hash == "hashed:pass123"


def test_existing_user_is_left_alone(repo, fake_hasher, user_factory):
    repo.get_user_by_email.return_value = user_factory.create(email="root@local")

    ensure_dev_superadmin(
        _settings(), user_repo=repo, password_hasher=fake_hasher, env={}
    )

    repo.create_user.assert_not_called()
    repo.update_user.assert_not_called()


def test_force_reset_restores_password_and_role(repo, fake_hasher, user_factory):
    existing = user_factory.create(
        email="root@local",
        role_name=RoleName.FAMILYVIEWER,
        status=UserStatus.REJECTED,
    )
    repo.get_user_by_email.return_value = existing

    ensure_dev_superadmin(
        _settings(dev_seed_superadmin_force_reset=True),
        user_repo=repo,
        password_hasher=fake_hasher,
        env={},
    )

    updated = repo.update_user.call_args.args[0]
    assert updated.id == existing.id
    assert updated.role_name == RoleName.SUPERADMIN
    assert updated.status == UserStatus.APPROVED
    assert updated.password_hash == "hashed:pass123"
    assert updated.password_changed_at is not None


def test_e2e_flag_bypasses_env_guard(repo, fake_hasher):
    ensure_dev_superadmin(
        _settings(app_env="staging", dev_seed_superadmin=False),
        user_repo=repo,
        password_hasher=fake_hasher,
        env={
            "E2E_SEED_SUPERADMIN": "true",
            "E2E_SUPERADMIN_EMAIL": "e2e@example.com",
            "E2E_SUPERADMIN_PASSWORD": "e2e-pass",
        },
    )

    created = repo.create_user.call_args.args[0]
    assert created.email == "e2e@example.com"
    assert created.password_hash == "hashed:e2e-pass"


def test_empty_password_is_rejected(repo, fake_hasher):
    with pytest.raises(ValueError, match="email/password"):
        ensure_dev_superadmin(
            _settings(dev_seed_superadmin_password=""),
            user_repo=repo,
            password_hasher=fake_hasher,
            env={},
        )


def test_works_against_in_memory_repository(repos, fake_hasher):
    settings = _settings()

    ensure_dev_superadmin(
        settings, user_repo=repos.users, password_hasher=fake_hasher, env={}
    )
    ensure_dev_superadmin(
        settings, user_repo=repos.users, password_hasher=fake_hasher, env={}
    )

    users, total = repos.users.list_users()
    assert total == 1
    assert users[0].role_name == RoleName.SUPERADMIN
