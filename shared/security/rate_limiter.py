"""
Rate limiting for admin-triggered endpoints (manual payment distribution).

Requests are bucketed per acting user when a valid bearer token is present,
per client address otherwise.
"""
import os

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from .jwt_handler import verify_access_token

DISTRIBUTE_RATE_LIMIT = os.getenv("DISTRIBUTE_RATE_LIMIT", "10/minute")


def _bearer_token(request: Request) -> str | None:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token


def user_id_or_ip(request: Request) -> str:
    token = _bearer_token(request)
    payload = verify_access_token(token) if token else None
    if payload and payload.get("sub"):
        return f"user:{payload['sub']}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=user_id_or_ip)
