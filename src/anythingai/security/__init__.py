"""Authentication and abuse protection."""

from anythingai.security.passwords import (
    hash_password,
    hash_password_async,
    verify_password,
    verify_password_async,
)
from anythingai.security.rate_limiter import (
    RateLimiter,
    RateLimitInfo,
    limiter_from_settings,
    run_periodic_cleanup,
)
from anythingai.security.tokens import create_access_token, verify_access_token

__all__ = [
    "RateLimitInfo",
    "RateLimiter",
    "create_access_token",
    "hash_password",
    "hash_password_async",
    "limiter_from_settings",
    "run_periodic_cleanup",
    "verify_access_token",
    "verify_password",
    "verify_password_async",
]
