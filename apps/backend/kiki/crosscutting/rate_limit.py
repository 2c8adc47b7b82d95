"""
===============================================================================
MÓDULO: Rate limiting por IP (ventana fija) - in-memory
===============================================================================

Objetivo
--------
Contar requests por IP dentro de una ventana de tiempo y responder 429 con
Retry-After al superar el máximo.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componentes:
  - FixedWindowLimiter
  - RateLimitMiddleware

Responsabilidades:
  - Decidir allow/deny por IP
  - Emitir 429 RFC7807 con Retry-After y headers x-ratelimit-*
  - Mantener estado thread-safe y acotado en memoria

Colaboradores:
  - crosscutting.config
  - crosscutting.error_responses
  - crosscutting.logger
===============================================================================
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .error_responses import app_exception_handler, rate_limited
from .logger import logger


@dataclass
class _Window:
    started_at: float
    count: int


class FixedWindowLimiter:
    """
    Contador por clave con ventana fija.

    - Cada clave arranca una ventana en su primer request.
    - Al vencer la ventana el contador vuelve a cero.
    - Las ventanas vencidas se purgan periódicamente para no crecer sin límite.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        max_keys: int = 10_000,
    ):
        if max_requests <= 0:
            raise ValueError("max_requests debe ser > 0")
        if window_seconds <= 0:
            raise ValueError("window_seconds debe ser > 0")
        self.max_requests = int(max_requests)
        self.window_seconds = float(window_seconds)
        self._clock = clock
        self._max_keys = max_keys
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> tuple[bool, int, float]:
        """
        Registra un request.

        Retorna (allowed, remaining, retry_after_seconds).
        """
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)
            if window is None or now - window.started_at >= self.window_seconds:
                if window is None and len(self._windows) >= self._max_keys:
                    self._purge_expired(now)
                window = _Window(started_at=now, count=0)
                self._windows[key] = window

            if window.count >= self.max_requests:
                retry_after = self.window_seconds - (now - window.started_at)
                return False, 0, max(retry_after, 0.0)

            window.count += 1
            return True, self.max_requests - window.count, 0.0

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()

    def _purge_expired(self, now: float) -> None:
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
        # R: si siguen llenas (ataque distribuido), descartamos las más viejas.
        overflow = len(self._windows) - self._max_keys + 1
        if overflow > 0:
            oldest = sorted(self._windows, key=lambda k: self._windows[k].started_at)
            for key in oldest[:overflow]:
                del self._windows[key]


_limiter: Optional[FixedWindowLimiter] = None
_limiter_lock = threading.Lock()


def get_rate_limiter() -> FixedWindowLimiter:
    global _limiter
    with _limiter_lock:
        if _limiter is None:
            from .config import get_settings

            settings = get_settings()
            _limiter = FixedWindowLimiter(
                max_requests=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )
        return _limiter


def reset_rate_limiter() -> None:
    global _limiter
    with _limiter_lock:
        _limiter = None


def is_rate_limiting_enabled() -> bool:
    from .config import get_settings

    settings = get_settings()
    return settings.rate_limit_requests > 0 and settings.rate_limit_window_seconds > 0


def get_client_ip(request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class RateLimitMiddleware:
    """
    ASGI middleware de rate limit por IP.

    - Excluye health checks y documentación.
    - No cuenta preflights (OPTIONS).
    """

    EXCLUDED_PATHS = {"/healthz", "/readyz", "/openapi.json", "/docs", "/redoc"}

    def __init__(self, app, limiter: FixedWindowLimiter | None = None):
        self.app = app
        self._limiter = limiter

    def _get_limiter(self) -> FixedWindowLimiter | None:
        if self._limiter is not None:
            return self._limiter
        if not is_rate_limiting_enabled():
            return None
        return get_rate_limiter()

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        if path in self.EXCLUDED_PATHS or scope.get("method", "").upper() == "OPTIONS":
            await self.app(scope, receive, send)
            return

        limiter = self._get_limiter()
        if limiter is None:
            await self.app(scope, receive, send)
            return

        from starlette.requests import Request

        request = Request(scope, receive)
        client_ip = get_client_ip(request)
        allowed, remaining, retry_after = limiter.hit(f"ip:{client_ip}")

        if not allowed:
            retry_after_int = max(1, math.ceil(retry_after))
            logger.warning(
                "rate limit excedido",
                extra={"client_ip": client_ip, "retry_after": retry_after_int},
            )
            exc = rate_limited(retry_after_int)
            exc.headers.update(
                {
                    "x-ratelimit-remaining": "0",
                    "x-ratelimit-limit": str(limiter.max_requests),
                }
            )
            response = await app_exception_handler(request, exc)
            await response(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                hdrs = list(message.get("headers", []))
                hdrs.append((b"x-ratelimit-remaining", str(remaining).encode()))
                hdrs.append((b"x-ratelimit-limit", str(limiter.max_requests).encode()))
                message["headers"] = hdrs
            await send(message)

        await self.app(scope, receive, send_with_headers)
