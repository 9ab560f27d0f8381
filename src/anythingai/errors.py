"""Error kinds surfaced to clients and helpers for classifying upstream failures.

Every error that reaches a client carries the same JSON shape::

    {"error": true, "code": "<ErrorKind>", "message": "..."}

Before an SSE stream opens it is sent as a plain JSON response with an HTTP
status; afterwards it travels as the terminal ``error`` event.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

__all__ = [
    "ErrorKind",
    "ChatError",
    "error_body",
    "is_rate_limit_error",
    "is_timeout_error",
    "normalize_error",
]


class ErrorKind(str, Enum):
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    TIMEOUT = "TIMEOUT"
    SERVER_ERROR = "SERVER_ERROR"


_DEFAULT_STATUS: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.RATE_LIMIT_EXCEEDED: 429,
    ErrorKind.QUOTA_EXCEEDED: 429,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.SERVER_ERROR: 500,
}


class ChatError(Exception):
    """An error with a client-facing kind, message and HTTP status."""

    def __init__(self, kind: ErrorKind, message: str, status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code or _DEFAULT_STATUS[kind]

    def to_dict(self) -> dict[str, Any]:
        return error_body(self.kind, self.message)

    def __repr__(self) -> str:
        return f"ChatError({self.kind.value}, {self.message!r}, status={self.status_code})"


def error_body(kind: ErrorKind, message: str) -> dict[str, Any]:
    return {"error": True, "code": kind.value, "message": message}


def _status_of(err: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(err, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(err, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def is_rate_limit_error(err: BaseException) -> bool:
    """True for upstream 429 / quota / resource-exhausted failures."""
    status = _status_of(err)
    if status is not None:
        return status == 429
    msg = str(err).lower()
    return (
        "429" in msg
        or "rate limit" in msg
        or "resource exhausted" in msg
        or "quota" in msg
    )


def is_timeout_error(err: BaseException) -> bool:
    if isinstance(err, TimeoutError):
        return True
    name = type(err).__name__.lower()
    if "timeout" in name:
        return True
    msg = str(err).lower()
    return "timeout" in msg or "timed out" in msg or "etimedout" in msg or "deadline" in msg


def normalize_error(err: BaseException) -> ChatError:
    """Map any exception onto a ChatError suitable for the client."""
    if isinstance(err, ChatError):
        return err
    if is_rate_limit_error(err):
        return ChatError(
            ErrorKind.QUOTA_EXCEEDED, "Rate limit exceeded. Please try again in a moment."
        )
    if is_timeout_error(err):
        return ChatError(ErrorKind.TIMEOUT, "Request timed out. Please try again.")
    message = str(err) or "An unexpected error occurred"
    return ChatError(ErrorKind.SERVER_ERROR, message)
