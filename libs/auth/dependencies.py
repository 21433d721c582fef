from typing import Annotated, Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from pydantic import ValidationError

from libs.auth.models import AuthUser, RoleName
from libs.auth.security import decode_access_token
from libs.common.errors import Forbidden, Unauthorized

security = HTTPBearer(auto_error=False)


def user_from_token(token: str) -> AuthUser:
    """
    Decode a bearer token into an AuthUser. Shared by HTTP and WebSocket auth.
    """
    try:
        payload = decode_access_token(token)
        return AuthUser(**payload)
    except (JWTError, ValidationError):
        raise Unauthorized()


async def get_current_user(
    request: Request,
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> AuthUser:
    """
    Validate the bearer token and return the authenticated user.
    """
    if token is None:
        raise Unauthorized("Access denied: no token provided")

    user = user_from_token(token.credentials)
    # Exposed for per-user rate limiting
    request.state.user = user
    return user


def require_roles(*roles: RoleName) -> Callable:
    """
    Build a dependency that only admits callers holding one of ``roles``.

    Usage:
        @router.get("/vendors", dependencies=[Depends(require_roles("ADMIN"))])
    """

    async def _check(
        current_user: Annotated[AuthUser, Depends(get_current_user)]
    ) -> AuthUser:
        if current_user.role not in roles:
            raise Forbidden(
                "You do not have the required role to access this resource"
            )
        return current_user

    return _check


require_admin = require_roles("ADMIN")
require_vendor = require_roles("VENDOR")
require_customer = require_roles("CUSTOMER")
