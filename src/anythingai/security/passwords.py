"""Password hashing with bcrypt.

Hashing is CPU-bound; API handlers call the ``*_async`` variants so a login
does not stall the open SSE streams sharing the event loop.
"""

import asyncio

import bcrypt

__all__ = ["hash_password", "hash_password_async", "verify_password", "verify_password_async"]

_ROUNDS = 12


def hash_password(password: str, *, rounds: int = _ROUNDS) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, stored: str) -> bool:
    """Check *password* against a stored bcrypt hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
    except ValueError:
        return False


async def hash_password_async(password: str, *, rounds: int = _ROUNDS) -> str:
    return await asyncio.to_thread(hash_password, password, rounds=rounds)


async def verify_password_async(password: str, stored: str) -> bool:
    return await asyncio.to_thread(verify_password, password, stored)
