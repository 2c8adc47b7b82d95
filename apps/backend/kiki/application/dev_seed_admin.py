# =============================================================================
# FILE: application/dev_seed_admin.py
# =============================================================================
"""
===============================================================================
TASK: Dev Seed Superadmin (local-only + E2E override)
===============================================================================

Qué es:
    Asegura que exista un superadmin aprobado para desarrollo cuando está
    configurado (DEV_SEED_SUPERADMIN=true). En E2E se puede forzar con
    E2E_SEED_SUPERADMIN=true aunque app_env no sea local.

Seguridad:
    - Guard estricto: fuera de E2E solo corre en app_env local/development.
    - Production ya lo rechaza en Settings.

CRC:
    Component: ensure_dev_superadmin
    Responsibilities:
      - Validar guard de ambiente
      - Resolver datos (settings vs env E2E)
      - Crear el usuario o, con force_reset, restablecer password/estado
    Collaborators:
      - UserPort (subset de UserRepository)
      - password_hasher
      - Settings + env mapping
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Final, Mapping, Protocol
from uuid import uuid4

from ..crosscutting.config import Settings
from ..crosscutting.logger import logger
from ..domain.entities import User, UserStatus
from ..domain.roles import RoleName


class UserPort(Protocol):
    def get_user_by_email(self, email: str) -> User | None: ...

    def create_user(self, user: User) -> User: ...

    def update_user(self, user: User) -> User | None: ...


_ENV_FLAG_E2E_SEED: Final[str] = "E2E_SEED_SUPERADMIN"
_ENV_E2E_EMAIL: Final[str] = "E2E_SUPERADMIN_EMAIL"
_ENV_E2E_PASSWORD: Final[str] = "E2E_SUPERADMIN_PASSWORD"

_DEFAULT_E2E_EMAIL: Final[str] = "superadmin@local"
_DEFAULT_E2E_PASSWORD: Final[str] = "superadmin"

_ALLOWED_ENVS: Final[frozenset[str]] = frozenset({"local", "development"})


@dataclass(frozen=True, slots=True)
class _SeedOptions:
    enabled: bool
    is_e2e: bool
    email: str
    password: str
    name: str
    force_reset: bool


def _parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def _resolve_seed_options(settings: Settings, env: Mapping[str, str]) -> _SeedOptions:
    is_e2e = _parse_bool(env.get(_ENV_FLAG_E2E_SEED))
    enabled = bool(settings.dev_seed_superadmin) or is_e2e

    if not enabled:
        return _SeedOptions(False, is_e2e, "", "", "", False)

    if is_e2e:
        return _SeedOptions(
            enabled=True,
            is_e2e=True,
            email=env.get(_ENV_E2E_EMAIL, _DEFAULT_E2E_EMAIL),
            password=env.get(_ENV_E2E_PASSWORD, _DEFAULT_E2E_PASSWORD),
            name=settings.dev_seed_superadmin_name,
            force_reset=False,
        )

    return _SeedOptions(
        enabled=True,
        is_e2e=False,
        email=settings.dev_seed_superadmin_email,
        password=settings.dev_seed_superadmin_password or "",
        name=settings.dev_seed_superadmin_name,
        force_reset=bool(settings.dev_seed_superadmin_force_reset),
    )


def _assert_allowed_environment(settings: Settings, *, is_e2e: bool) -> None:
    if is_e2e:
        return

    env = (settings.app_env or "").strip().lower()
    if env not in _ALLOWED_ENVS:
        raise RuntimeError(
            f"FATAL: DEV_SEED_SUPERADMIN is enabled but ENV is '{env}' "
            "(must be local or development)."
        )


def ensure_dev_superadmin(
    settings: Settings,
    *,
    user_repo: UserPort,
    password_hasher: Callable[[str], str],
    env: Mapping[str, str],
) -> None:
    """
    Ensure a development superadmin exists if configured.

    Behavior:
      - disabled: no-op
      - missing: create approved superadmin
      - exists + force_reset: new password, approved status, superadmin role
      - exists: skip
    """
    options = _resolve_seed_options(settings, env)
    if not options.enabled:
        return

    _assert_allowed_environment(settings, is_e2e=options.is_e2e)

    email = (options.email or "").strip().lower()
    if not email or not options.password:
        raise ValueError("Dev seed superadmin is enabled but email/password are empty")

    logger.info(
        "Dev seed superadmin: ensuring user",
        extra={"email": email, "force_reset": options.force_reset, "is_e2e": options.is_e2e},
    )

    existing = user_repo.get_user_by_email(email)
    now = datetime.now(timezone.utc)

    if existing is None:
        user_repo.create_user(
            User(
                id=uuid4(),
                name=options.name,
                email=email,
                password_hash=password_hasher(options.password),
                role_name=RoleName.SUPERADMIN,
                status=UserStatus.APPROVED,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("Dev seed superadmin: user created", extra={"email": email})
        return

    if options.force_reset:
        user_repo.update_user(
            replace(
                existing,
                password_hash=password_hasher(options.password),
                role_name=RoleName.SUPERADMIN,
                status=UserStatus.APPROVED,
                password_changed_at=now,
                updated_at=now,
            )
        )
        logger.info("Dev seed superadmin: user reset applied", extra={"email": email})
        return

    logger.info("Dev seed superadmin: user exists; skipping", extra={"email": email})
