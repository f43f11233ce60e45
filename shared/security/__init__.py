from .jwt_handler import create_access_token, verify_access_token
from .dependencies import get_current_user, require_admin
from .permissions import ADMIN_ROLE, DEFAULT_ROLE, Caller, is_admin, is_authorized
from .rate_limiter import limiter, user_id_or_ip

__all__ = [
    "create_access_token",
    "verify_access_token",
    "get_current_user",
    "require_admin",
    "ADMIN_ROLE",
    "DEFAULT_ROLE",
    "Caller",
    "is_admin",
    "is_authorized",
    "limiter",
    "user_id_or_ip"
]
