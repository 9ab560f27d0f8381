# Shared FastAPI dependencies for the API layer.
# Created: 2026-09-05
#
# Long-lived services are built once in the app lifespan and stored on
# app.state; handlers reach them only through these dependencies.

from __future__ import annotations

import hmac
import re

from fastapi import Depends, Request

from anythingai.config import Settings
from anythingai.errors import ChatError, ErrorKind
from anythingai.llm.generation import GenerationClient
from anythingai.llm.usage import UsageLogger
from anythingai.queue import RequestQueue
from anythingai.security.tokens import verify_access_token
from anythingai.store.models import Department, User
from anythingai.store.protocol import ChatStoreProtocol

_ACCESS_CODE_RE = re.compile(r"^\d{4}$")


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> ChatStoreProtocol:
    return request.app.state.store


def get_queue(request: Request) -> RequestQueue:
    return request.app.state.queue


def get_generation_client(request: Request) -> GenerationClient:
    return request.app.state.generation


def get_usage_logger(request: Request) -> UsageLogger:
    return request.app.state.usage_logger


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    store: ChatStoreProtocol = Depends(get_store),
) -> User:
    """Resolve the bearer token to a stored user, or raise 401."""
    token = _bearer_token(request)
    if token is None:
        raise ChatError(ErrorKind.UNAUTHORIZED, "Authentication required.")

    user_id = verify_access_token(token, settings.token_secret)
    if user_id is None:
        raise ChatError(ErrorKind.UNAUTHORIZED, "Invalid or expired token.")

    user = await store.get_user(user_id)
    if user is None:
        raise ChatError(ErrorKind.UNAUTHORIZED, "User not found.")
    return user


async def authorize_department(
    store: ChatStoreProtocol,
    user: User,
    department_id: str | None,
    access_code: str | None,
) -> Department:
    """Check that *user* may act in *department_id* and return the department.

    ``department_id`` defaults to the user's own department.  Departments
    with an access code require the exact 4-digit code on every request.
    """
    department_id = department_id or user.department_id
    if department_id != user.department_id:
        raise ChatError(ErrorKind.FORBIDDEN, "You do not have access to this department.")

    department = await store.get_department(department_id)
    if department is None:
        raise ChatError(ErrorKind.BAD_REQUEST, "Department not found.")

    if department.requires_access_code:
        code = (access_code or "").strip()
        if not code:
            raise ChatError(ErrorKind.FORBIDDEN, "This department requires an access code.")
        if not _ACCESS_CODE_RE.match(code):
            raise ChatError(ErrorKind.BAD_REQUEST, "Access code must be 4 digits.")
        if not hmac.compare_digest(code, department.access_code or ""):
            raise ChatError(ErrorKind.FORBIDDEN, "Invalid access code.")
    return department
