"""
Shared secret for service-to-service calls: chat reconciliation retries
coming in, system messages going out to the chat message log.
"""
import os
import secrets
import warnings

INTERNAL_API_KEY_HEADER = "X-Internal-API-Key"


def _load_key() -> str:
    key = os.getenv("INTERNAL_API_KEY", "")
    if key:
        return key
    # Local runs start without a .env; production must set it
    warnings.warn(
        "INTERNAL_API_KEY is not set. Using an insecure default. "
        "Set this env var in production!",
        stacklevel=3,
    )
    return "insecure-default-change-me"


INTERNAL_API_KEY: str = _load_key()

# Attached to every outbound internal request
INTERNAL_API_HEADERS = {INTERNAL_API_KEY_HEADER: INTERNAL_API_KEY}


def verify_api_key(provided_key: str | None) -> bool:
    """Constant-time comparison against the configured key."""
    if not provided_key:
        return False
    return secrets.compare_digest(provided_key.encode(), INTERNAL_API_KEY.encode())
