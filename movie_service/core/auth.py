"""
Authentication dependencies for protected endpoints.

Validates bearer tokens issued by the /auth/login endpoint.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..logging_config import get_logger
from .security import decode_access_token

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[int]:
    """
    Validate the bearer token and return the user id.

    Returns None for unauthenticated requests.

    Args:
        request: Incoming request, whose app holds the signing settings
        credentials: HTTP Bearer token from Authorization header

    Returns:
        User id if authenticated, None otherwise
    """
    if not credentials:
        logger.debug("No credentials provided - anonymous access")
        return None

    user_id = decode_access_token(credentials.credentials, request.app.state.settings)
    if user_id is None:
        logger.warning("Token validation failed")
        return None

    return user_id


async def require_authentication(
    user_id: Optional[int] = Depends(get_current_user_id),
) -> int:
    """
    Require an authenticated user.

    Raises:
        HTTPException: 401 if the request carries no valid token
    """
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "success": False,
                "error": "unauthorized",
                "message": "Invalid or missing token",
            },
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
