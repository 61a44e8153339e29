from .jwt_handler import create_access_token, verify_access_token
from .api_key import INTERNAL_API_HEADERS, INTERNAL_API_KEY_HEADER, verify_api_key
from .dependencies import get_current_user_id, verify_internal_api_key
from .rate_limiter import DISTRIBUTE_RATE_LIMIT, limiter, user_id_or_ip

__all__ = [
    "create_access_token",
    "verify_access_token",
    "INTERNAL_API_HEADERS",
    "INTERNAL_API_KEY_HEADER",
    "verify_api_key",
    "get_current_user_id",
    "verify_internal_api_key",
    "DISTRIBUTE_RATE_LIMIT",
    "limiter",
    "user_id_or_ip"
]
