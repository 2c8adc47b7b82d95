"""
===============================================================================
TARJETA CRC — identity/auth_users.py
===============================================================================

Módulo:
    Credenciales y tokens (Argon2 + JWT + refresh opaco)

Responsabilidades:
    - Hashear/verificar passwords (Argon2).
    - Emitir y validar JWT de acceso (firma, exp, claims mínimos).
    - Generar refresh tokens opacos y su hash de almacenamiento.
    - Extraer tokens desde Authorization: Bearer o cookies.
    - Armar DeviceInfo desde el request (User-Agent, IP, X-Device-ID).

Colaboradores:
    - crosscutting.config.get_settings: secreto, TTLs, nombres de cookies.
    - crosscutting.error_responses: unauthorized con código específico.
    - domain.entities: User, DeviceInfo.

Decisiones:
    - Los fallos de token son distinguibles (TOKEN_EXPIRED vs TOKEN_INVALID)
      para que el cliente sepa si renovar o re-loguearse.
    - Claims: sub, email, role, iat, exp, typ.
    - Nunca se loguean tokens ni passwords.
===============================================================================
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from fastapi import Request

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import ErrorCode, unauthorized
from ..domain.entities import DeviceInfo, User
from ..domain.roles import RoleName

# ---------------------------------------------------------------------------
# Constantes
# ---------------------------------------------------------------------------

JWT_ALGORITHM: str = "HS256"

CLAIM_SUB: str = "sub"
CLAIM_EMAIL: str = "email"
CLAIM_ROLE: str = "role"
CLAIM_IAT: str = "iat"
CLAIM_EXP: str = "exp"
CLAIM_TYP: str = "typ"

TOKEN_TYPE_ACCESS: str = "access"

# R: 64 bytes aleatorios -> 128 caracteres hex.
REFRESH_TOKEN_BYTES: int = 64

_password_hasher = PasswordHasher()


# ---------------------------------------------------------------------------
# Contratos internos
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """Settings de auth (snapshot)."""

    jwt_secret: str
    jwt_access_ttl_minutes: int
    jwt_cookie_name: str
    jwt_cookie_secure: bool
    refresh_cookie_name: str
    refresh_token_ttl_days: int


@dataclass(frozen=True, slots=True)
class AccessTokenClaims:
    """Claims validados de un access token."""

    user_id: UUID
    email: str
    role: RoleName
    expires_at: datetime


def get_auth_settings() -> AuthSettings:
    s = get_settings()
    return AuthSettings(
        jwt_secret=s.jwt_secret,
        jwt_access_ttl_minutes=s.jwt_access_ttl_minutes,
        jwt_cookie_name=s.jwt_cookie_name,
        jwt_cookie_secure=s.jwt_cookie_secure,
        refresh_cookie_name=s.refresh_cookie_name,
        refresh_token_ttl_days=s.refresh_token_ttl_days,
    )


# ---------------------------------------------------------------------------
# Passwords (Argon2)
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Comparación segura; cualquier hash corrupto cuenta como mismatch."""
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


# ---------------------------------------------------------------------------
# Access tokens (JWT)
# ---------------------------------------------------------------------------


def create_access_token(
    user: User, settings: AuthSettings | None = None
) -> tuple[str, int]:
    """Crea un JWT de acceso firmado. Retorna (token, expires_in_seconds)."""
    auth_settings = settings or get_auth_settings()

    now = datetime.now(timezone.utc)
    expires_in = int(auth_settings.jwt_access_ttl_minutes * 60)

    payload: dict[str, object] = {
        CLAIM_SUB: str(user.id),
        CLAIM_EMAIL: user.email,
        CLAIM_ROLE: user.role_name.value,
        CLAIM_IAT: int(now.timestamp()),
        CLAIM_EXP: int((now + timedelta(seconds=expires_in)).timestamp()),
        CLAIM_TYP: TOKEN_TYPE_ACCESS,
    }

    token = jwt.encode(payload, auth_settings.jwt_secret, algorithm=JWT_ALGORITHM)
    return token, expires_in


def _invalid_token() -> Exception:
    return unauthorized("Token inválido.", code=ErrorCode.TOKEN_INVALID)


def decode_access_token(
    token: str, settings: AuthSettings | None = None
) -> AccessTokenClaims:
    """
    Decodifica y valida un JWT de acceso.

    Errores (401):
        - TOKEN_EXPIRED si expiró.
        - TOKEN_INVALID si la firma, el tipo o los claims no son válidos.
    """
    auth_settings = settings or get_auth_settings()

    try:
        payload = jwt.decode(
            token,
            auth_settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": [CLAIM_SUB, CLAIM_EMAIL, CLAIM_ROLE, CLAIM_EXP]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise unauthorized("Token expirado.", code=ErrorCode.TOKEN_EXPIRED) from exc
    except jwt.InvalidTokenError as exc:
        raise _invalid_token() from exc

    if payload.get(CLAIM_TYP, TOKEN_TYPE_ACCESS) != TOKEN_TYPE_ACCESS:
        raise unauthorized("Tipo de token inválido.", code=ErrorCode.TOKEN_INVALID)

    try:
        user_id = UUID(str(payload[CLAIM_SUB]))
        role = RoleName(str(payload[CLAIM_ROLE]))
    except ValueError as exc:
        raise _invalid_token() from exc

    email = str(payload.get(CLAIM_EMAIL) or "")
    if not email:
        raise _invalid_token()

    return AccessTokenClaims(
        user_id=user_id,
        email=email,
        role=role,
        expires_at=datetime.fromtimestamp(int(payload[CLAIM_EXP]), timezone.utc),
    )


# ---------------------------------------------------------------------------
# Refresh tokens (opacos)
# ---------------------------------------------------------------------------


def generate_refresh_token_value() -> str:
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def hash_refresh_token(value: str) -> str:
    """Hash de almacenamiento (sha256 hex) del valor opaco."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Extracción desde el request
# ---------------------------------------------------------------------------


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extrae token desde `Authorization: Bearer <token>`."""
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def extract_access_token(request: Request, authorization: str | None) -> str | None:
    """Token desde Authorization o, si no viene, desde la cookie de acceso."""
    token = _extract_bearer_token(authorization)
    if token:
        return token
    return request.cookies.get(get_auth_settings().jwt_cookie_name) or None


def extract_refresh_token(request: Request, explicit: str | None = None) -> str | None:
    """Refresh token desde el body o la cookie de refresh."""
    value = (explicit or "").strip()
    if value:
        return value
    return request.cookies.get(get_auth_settings().refresh_cookie_name) or None


def device_info_from_request(request: Request) -> DeviceInfo:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        ip_address = forwarded_for.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return DeviceInfo(
        user_agent=request.headers.get("User-Agent"),
        ip_address=ip_address,
        device_id=request.headers.get("X-Device-ID"),
    )
