"""
===============================================================================
MÓDULO: Middlewares HTTP (contexto + límite de payload)
===============================================================================

1) RequestContextMiddleware:
   - Acepta o genera X-Request-Id y lo devuelve en la respuesta
   - Setea contextvars (method/path) para los logs
   - Loguea la finalización de cada request con su latencia

2) BodyLimitMiddleware:
   - Rechaza bodies mayores a max_body_bytes (Content-Length o streaming)

Colaboradores:
  - kiki/context.py
  - crosscutting/error_responses.py
  - crosscutting/logger.py
===============================================================================
"""

from __future__ import annotations

import json
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..context import clear_context, set_request_context
from .error_responses import (
    PROBLEM_JSON_MEDIA_TYPE,
    ErrorCode,
    build_problem,
)
from .logger import logger

_MAX_REQUEST_ID_LEN = 128


def _resolve_request_id(incoming: str | None) -> str:
    value = (incoming or "").strip()
    if value and len(value) <= _MAX_REQUEST_ID_LEN:
        return value
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Correlación por request_id + log de acceso."""

    _QUIET_PATHS = {"/healthz", "/readyz"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = _resolve_request_id(request.headers.get("x-request-id"))
        set_request_context(
            request_id=request_id, method=request.method, path=request.url.path
        )
        request.state.request_id = request_id

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request falló",
                extra={
                    "status_code": 500,
                    "latency_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
            clear_context()
            raise

        response.headers["X-Request-Id"] = request_id
        if request.url.path not in self._QUIET_PATHS:
            logger.info(
                "request completado",
                extra={
                    "status_code": response.status_code,
                    "latency_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
        clear_context()
        return response


class _BodyTooLarge(Exception):
    pass


class BodyLimitMiddleware:
    """
    Middleware ASGI que corta requests con body excesivo.

    Revisa Content-Length primero y, si no viene (chunked), cuenta bytes
    mientras la app consume el body.
    """

    def __init__(self, app, max_body_bytes: int | None = None):
        if max_body_bytes is None:
            from .config import get_settings

            max_body_bytes = get_settings().max_body_bytes
        self.app = app
        self._max_bytes = max_body_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        headers = {k.decode().lower(): v.decode() for k, v in scope.get("headers", [])}

        declared = headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self._max_bytes:
            logger.warning(
                "payload demasiado grande (content-length)",
                extra={"content_length": declared, "max_bytes": self._max_bytes},
            )
            await self._send_413(send, path=path)
            return

        received = 0
        response_started = False

        async def receive_limited():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b"") or b"")
                if received > self._max_bytes:
                    raise _BodyTooLarge()
            return message

        async def send_tracking(message):
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive_limited, send_tracking)
        except _BodyTooLarge:
            if response_started:
                raise
            logger.warning(
                "payload demasiado grande (streaming)",
                extra={"received_bytes": received, "max_bytes": self._max_bytes},
            )
            await self._send_413(send, path=path)

    async def _send_413(self, send, *, path: str) -> None:
        problem = build_problem(
            status=413,
            code=ErrorCode.PAYLOAD_TOO_LARGE,
            detail=(
                "Request body demasiado grande. "
                f"Máximo permitido: {self._max_bytes} bytes"
            ),
            instance=path,
        )
        body = json.dumps(
            problem.model_dump(exclude_none=True), ensure_ascii=False
        ).encode("utf-8")
        await send(
            {
                "type": "http.response.start",
                "status": 413,
                "headers": [(b"content-type", PROBLEM_JSON_MEDIA_TYPE.encode())],
            }
        )
        await send({"type": "http.response.body", "body": body})
