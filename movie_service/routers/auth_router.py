"""
Authentication router.

Registers accounts and issues bearer tokens for the protected movie endpoints.
"""

from fastapi import APIRouter, Depends, status

from ..config import Settings
from ..core.security import create_access_token
from ..dependencies import get_settings, get_user_service, with_request_deadline
from ..logging_config import get_logger
from ..schemas import AuthRequest, ErrorResponse, RegisterResponse, TokenResponse
from ..services.user_service import UserService

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
)
async def register(
    request: AuthRequest,
    service: UserService = Depends(get_user_service),
    app_settings: Settings = Depends(get_settings),
) -> RegisterResponse:
    """Register a new user account."""
    user_id = await with_request_deadline(
        service.register_user(request.email, request.password),
        app_settings.REQUEST_TIMEOUT_SECONDS,
    )
    return RegisterResponse(id=user_id)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
)
async def login(
    request: AuthRequest,
    service: UserService = Depends(get_user_service),
    app_settings: Settings = Depends(get_settings),
) -> TokenResponse:
    """Exchange email and password for an access token."""
    user = await with_request_deadline(
        service.login_user(request.email, request.password),
        app_settings.REQUEST_TIMEOUT_SECONDS,
    )
    return TokenResponse(token=create_access_token(user.id, app_settings=app_settings))
