"""FastAPI dependencies for bearer-token authentication and role checks."""

from typing import Optional
from fastapi import Depends, Header
import jwt
from jwt import PyJWTError

from .config import settings
from .exceptions import AuthenticationError, AuthorizationError

ADMIN_ROLE = "admin"


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> dict:
    """
    Authentication dependency that validates Bearer tokens.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        dict: User information from validated token

    Raises:
        AuthenticationError: If token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError(detail="Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError(detail="Invalid authorization header format")

    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    try:
        # Expiry is checked by PyJWT when the token carries an "exp" claim
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=[settings.jwt_algorithm]
        )
    except PyJWTError as e:
        raise AuthenticationError(detail=f"Token validation failed: {str(e)}")

    user_id = payload.get("sub")
    if user_id is None:
        raise AuthenticationError(detail="Invalid token payload")

    return {
        "user_id": str(user_id),
        "username": payload.get("username"),
        "email": payload.get("email"),
        "roles": payload.get("roles", []),
    }


def is_admin(user: dict) -> bool:
    """Return True if the authenticated user carries the admin role."""
    return ADMIN_ROLE in user.get("roles", [])


async def require_admin(user: dict = Depends(get_current_user)) -> dict:
    """
    Authorization dependency restricting a route to administrators.

    Raises:
        AuthorizationError: If the user is not an administrator
    """
    if not is_admin(user):
        raise AuthorizationError(
            detail="Administrator role required",
            required_permissions=[ADMIN_ROLE]
        )
    return user


RequiredAuth = Depends(get_current_user)
AdminAuth = Depends(require_admin)
