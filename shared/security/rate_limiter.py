from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from shared.config.settings import RATE_LIMIT_ENABLED
from .jwt_handler import verify_access_token


def user_id_or_ip(request: Request) -> str:
    """
    SlowAPI key: authenticated callers are limited per user, anonymous ones per IP.
    The token is decoded here because limits apply before route dependencies run.
    """
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme == "Bearer" and token:
        claims = verify_access_token(token)
        if claims and claims.get("sub"):
            return f"user:{claims['sub']}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=user_id_or_ip, enabled=RATE_LIMIT_ENABLED)
