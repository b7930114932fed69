"""
Vidtube Boundary Layer — the single place where faults become responses.

``install_boundary`` wires three exception handlers and one ASGI middleware
into the app:

  - ``ApiError``                → its own envelope
  - framework HTTP errors       → envelope with the same status (404, 405 …)
  - request validation errors   → 400 envelope listing the bad fields
  - ``BoundaryMiddleware``      → per-request deadline (504), body size cap
                                  (413) and a 500 envelope for anything else

Whatever a controller or a downstream collaborator does, the client gets a
structured envelope back and the process keeps serving.
"""
from __future__ import annotations

import asyncio
import time
import traceback
import uuid
from typing import Any, Dict, List

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers, MutableHeaders
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from vidtube.core.config import Settings
from vidtube.core.errors import (
    ApiError,
    GatewayTimeoutFault,
    PayloadTooLargeFault,
    UpstreamFault,
    ValidationFault,
)
from vidtube.core.metrics import FAULTS_RENDERED, REQUEST_LATENCY

logger = structlog.get_logger(__name__)


class BodyLimitExceeded(HTTPException):
    """Raised from ``receive`` once a streamed JSON body passes the cap."""

    def __init__(self, limit: int):
        super().__init__(status_code=413, detail=f"JSON body exceeds {limit} bytes")


def render_fault(fault: ApiError, settings: Settings, headers: Dict[str, str] | None = None) -> JSONResponse:
    FAULTS_RENDERED.labels(status_code=str(fault.status_code)).inc()
    return JSONResponse(
        status_code=fault.status_code,
        content=fault.to_envelope(include_trace=settings.debug),
        headers=headers,
    )


def _validation_details(exc: RequestValidationError) -> List[Dict[str, Any]]:
    return [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


# ── Exception handlers ───────────────────────────────────────────────────

def install_boundary(app: FastAPI, settings: Settings) -> None:
    """Register the handlers and the middleware on ``app``."""

    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("api_error", status_code=exc.status_code, message=exc.message, path=request.url.path)
        else:
            logger.info("api_error", status_code=exc.status_code, message=exc.message, path=request.url.path)
        return render_fault(exc, settings)

    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        fault = ApiError(status_code=exc.status_code, message=str(exc.detail))
        return render_fault(fault, settings, headers=getattr(exc, "headers", None))

    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fault = ValidationFault(message="Invalid request parameters", errors=_validation_details(exc))
        return render_fault(fault, settings)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_middleware(BoundaryMiddleware, settings=settings)


# ── Middleware ───────────────────────────────────────────────────────────

class BoundaryMiddleware:
    """
    Wraps every HTTP request coroutine.

    On deadline expiry the inner coroutine is cancelled, which aborts the
    in-flight database or media call and lets the session dependency roll
    back. If the response has already started, nothing more can be sent;
    the fault is only logged.
    """

    def __init__(self, app: ASGIApp, settings: Settings):
        self.app = app
        self.settings = settings

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        request_id = headers.get("x-request-id") or uuid.uuid4().hex
        structlog.contextvars.bind_contextvars(
            request_id=request_id, method=scope["method"], path=scope["path"],
        )

        started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
                MutableHeaders(scope=message).append("x-request-id", request_id)
            await send(message)

        t0 = time.perf_counter()
        try:
            oversized = self._oversized_json(headers)
            if oversized is not None:
                await self._send_fault(oversized, scope, receive, send_wrapper)
                return
            if _is_json(headers):
                receive = self._capped_receive(receive)

            timeout = self.settings.request_timeout_seconds or None
            await asyncio.wait_for(self.app(scope, receive, send_wrapper), timeout=timeout)
        except BodyLimitExceeded as exc:
            if not started:
                await self._send_fault(PayloadTooLargeFault(message=exc.detail), scope, receive, send_wrapper)
        except asyncio.TimeoutError:
            logger.warning("request_timeout", timeout_seconds=self.settings.request_timeout_seconds)
            if not started:
                fault = GatewayTimeoutFault(
                    message=f"Request exceeded {self.settings.request_timeout_seconds:g}s deadline"
                )
                await self._send_fault(fault, scope, receive, send_wrapper)
        except Exception as exc:
            logger.exception("unhandled_request_error", error_type=type(exc).__name__)
            if not started:
                fault = UpstreamFault(trace=traceback.format_exc())
                await self._send_fault(fault, scope, receive, send_wrapper)
        finally:
            REQUEST_LATENCY.labels(method=scope["method"]).observe(time.perf_counter() - t0)
            structlog.contextvars.clear_contextvars()

    def _oversized_json(self, headers: Headers) -> PayloadTooLargeFault | None:
        if not _is_json(headers):
            return None
        try:
            length = int(headers.get("content-length", "0"))
        except ValueError:
            return None
        if length > self.settings.max_json_body_bytes:
            return PayloadTooLargeFault(
                message=f"JSON body exceeds {self.settings.max_json_body_bytes} bytes"
            )
        return None

    def _capped_receive(self, receive: Receive) -> Receive:
        """Count body bytes as they arrive; covers chunked bodies without Content-Length."""
        limit = self.settings.max_json_body_bytes
        seen = 0

        async def capped() -> Message:
            nonlocal seen
            message = await receive()
            if message["type"] == "http.request":
                seen += len(message.get("body", b""))
                if seen > limit:
                    raise BodyLimitExceeded(limit)
            return message

        return capped

    async def _send_fault(self, fault: ApiError, scope: Scope, receive: Receive, send: Send) -> None:
        response = render_fault(fault, self.settings)
        await response(scope, receive, send)


def _is_json(headers: Headers) -> bool:
    return headers.get("content-type", "").startswith("application/json")
