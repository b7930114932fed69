"""
Vidtube Error Signals.

Typed, client-surfaceable faults. Each one carries an explicit HTTP status
code; the boundary layer (``vidtube.core.boundary``) is the only place that
turns them into responses.
"""
from __future__ import annotations

import traceback
from typing import Any, Dict, List, Optional


class ApiError(Exception):
    """Base fault. ``status_code`` ≥ 400 always, so ``success`` is implicitly false."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(
        self,
        status_code: Optional[int] = None,
        message: Optional[str] = None,
        errors: Optional[List[Any]] = None,
        trace: Optional[str] = None,
    ):
        self.status_code = status_code or type(self).status_code
        self.message = message or self.default_message
        self.errors: List[Any] = list(errors or [])
        self._trace = trace
        super().__init__(self.message)

    @property
    def success(self) -> bool:
        return False

    @property
    def trace(self) -> str:
        if self._trace:
            return self._trace
        return "".join(traceback.format_exception(type(self), self, self.__traceback__))

    def to_envelope(self, include_trace: bool = False) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "statusCode": self.status_code,
            "message": self.message,
            "errors": self.errors,
            "success": False,
        }
        if include_trace:
            body["trace"] = self.trace
        return body

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code}, message={self.message!r})"


class ValidationFault(ApiError):
    status_code = 400
    default_message = "Invalid request"


class AuthFault(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class ForbiddenFault(ApiError):
    status_code = 403
    default_message = "You are not allowed to modify this resource"


class NotFoundFault(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictFault(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class PayloadTooLargeFault(ApiError):
    status_code = 413
    default_message = "Payload too large"


class UpstreamFault(ApiError):
    status_code = 500
    default_message = "Internal Server Error"


class GatewayTimeoutFault(ApiError):
    status_code = 504
    default_message = "Request timed out"
