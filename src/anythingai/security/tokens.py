"""HMAC-based stateless access tokens with TTL.

Token format: ``{user_id}:{expires_unix}:{hex_hmac}``

The signature covers ``{user_id}:{expires_unix}``, so a token cannot be
re-pointed at another user.  Rotating the secret invalidates every
outstanding token.
"""

import hashlib
import hmac
import time

__all__ = ["create_access_token", "verify_access_token"]


def create_access_token(user_id: str, secret: str, ttl_hours: int = 168) -> str:
    """Issue a token for *user_id* that expires after *ttl_hours*."""
    if not user_id or ":" in user_id:
        raise ValueError("user_id must be non-empty and must not contain ':'")
    expires = int(time.time()) + ttl_hours * 3600
    payload = f"{user_id}:{expires}"
    return f"{payload}:{_sign(secret, payload)}"


def verify_access_token(token: str, secret: str) -> str | None:
    """Return the user id carried by *token*, or None if invalid or expired."""
    parts = token.split(":")
    if len(parts) != 3:
        return None

    user_id, expires_str, sig = parts
    if not user_id:
        return None
    try:
        expires = int(expires_str)
    except ValueError:
        return None

    if time.time() > expires:
        return None

    expected = _sign(secret, f"{user_id}:{expires_str}")
    if not hmac.compare_digest(sig, expected):
        return None
    return user_id


def _sign(key: str, message: str) -> str:
    return hmac.new(key.encode(), message.encode(), hashlib.sha256).hexdigest()
