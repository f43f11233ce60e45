from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from shared.exceptions import AuthenticationError, AuthorizationError
from .jwt_handler import verify_access_token
from .permissions import Caller, is_admin

# Defines the expected header format (Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)

async def get_current_user(request: Request, token: str = Depends(oauth2_scheme)) -> Caller:
    """Dependency to validate the JWT and return the caller's id and role."""
    if not token:
        raise AuthenticationError("No token provided")

    payload = verify_access_token(token)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    user_id = payload.get("sub")
    role = payload.get("role")
    if user_id is None or role is None:
        raise AuthenticationError("Could not validate credentials")

    try:
        caller = Caller(user_id=int(user_id), role=role)
    except ValueError:
        raise AuthenticationError("Could not validate credentials")

    # Store in request state for downstream use (like rate limiting)
    request.state.user_id = user_id
    return caller

async def require_admin(caller: Caller = Depends(get_current_user)) -> Caller:
    """Dependency equivalent of an admin-only role gate."""
    if not is_admin(caller):
        raise AuthorizationError("Access denied")
    return caller
