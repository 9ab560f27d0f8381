# Auth router: register, login, current user.
# Created: 2026-09-05

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends

from anythingai.api.deps import get_app_settings, get_current_user, get_store
from anythingai.api.schemas.auth import LoginRequest, RegisterRequest
from anythingai.config import Settings
from anythingai.errors import ChatError, ErrorKind
from anythingai.security.passwords import hash_password_async, verify_password_async
from anythingai.security.tokens import create_access_token
from anythingai.store.models import User
from anythingai.store.protocol import ChatStoreProtocol

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


async def _user_payload(store: ChatStoreProtocol, user: User) -> dict[str, Any]:
    department = await store.get_department(user.department_id)
    payload = user.to_public_dict()
    payload["departmentName"] = department.name if department else None
    return payload


def _issue(settings: Settings, user: User) -> str:
    return create_access_token(user.id, settings.token_secret, ttl_hours=settings.token_ttl_hours)


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    settings: Settings = Depends(get_app_settings),
    store: ChatStoreProtocol = Depends(get_store),
):
    """Create an account in an existing department (matched by name)."""
    email = body.email.strip().lower()
    department_name = body.department_name.strip()
    if not email or not body.password:
        raise ChatError(ErrorKind.BAD_REQUEST, "Email and password are required.")
    if not department_name:
        raise ChatError(ErrorKind.BAD_REQUEST, "Department name is required.")

    if await store.get_user_by_email(email) is not None:
        raise ChatError(ErrorKind.CONFLICT, "An account with this email already exists.")

    department = await store.get_department_by_name(department_name)
    if department is None:
        raise ChatError(
            ErrorKind.BAD_REQUEST, "Department not found. Please choose an existing department."
        )

    password_hash = await hash_password_async(body.password, rounds=settings.password_hash_rounds)
    user = User(
        email=email,
        password_hash=password_hash,
        department_id=department.id,
    )
    await store.save_user(user)
    logger.info("Registered user %s in %s", user.id, department.name)

    return {"token": _issue(settings, user), "user": await _user_payload(store, user)}


@router.post("/login")
async def login(
    body: LoginRequest,
    settings: Settings = Depends(get_app_settings),
    store: ChatStoreProtocol = Depends(get_store),
):
    email = body.email.strip().lower()
    if not email or not body.password:
        raise ChatError(ErrorKind.BAD_REQUEST, "Email and password are required.")

    user = await store.get_user_by_email(email)
    if user is None or not await verify_password_async(body.password, user.password_hash):
        raise ChatError(ErrorKind.UNAUTHORIZED, "Invalid email or password.")

    return {"token": _issue(settings, user), "user": await _user_payload(store, user)}


@router.get("/me")
async def me(
    user: User = Depends(get_current_user),
    store: ChatStoreProtocol = Depends(get_store),
):
    return {"user": await _user_payload(store, user)}
