from __future__ import annotations

from fastapi import APIRouter, Depends

from eco_rewards.api.deps import get_admin_user_repository
from eco_rewards.core.errors import AuthenticationError
from eco_rewards.core.logger import get_logger
from eco_rewards.core.security import create_access_token, verify_password
from eco_rewards.core.settings import Settings, get_settings
from eco_rewards.repositories.admin_users import AdminUserRepository
from eco_rewards.schemas.rewards import LoginRequest, LoginResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Authentication"])


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in",
    description="Exchange an admin user's email and password for a bearer token.",
    operation_id="login",
)
def login(
    payload: LoginRequest,
    users: AdminUserRepository = Depends(get_admin_user_repository),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    """Log an admin user in.

    Args:
        payload: LoginRequest payload.
        users: Admin user repository (FastAPI dependency).
        settings: Application settings (FastAPI dependency).

    Returns:
        LoginResponse: Bearer token.

    Raises:
        AuthenticationError: 401 for unknown users and wrong passwords alike.
    """
    user = users.get_by_email(payload.username)
    if user is None or not verify_password(payload.password, user.password):
        logger.info("login_rejected", username=payload.username)
        raise AuthenticationError("Invalid username or password")

    logger.info("login_succeeded", user_id=user.id)
    return LoginResponse(token=create_access_token(settings, str(user.id), {"email": user.email}))
