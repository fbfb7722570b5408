from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from eco_rewards.core.errors import AuthenticationError
from eco_rewards.core.security import decode_access_token
from eco_rewards.core.settings import Settings, get_settings
from eco_rewards.db.models import AdminUser
from eco_rewards.db.session import get_db
from eco_rewards.journeys.importer import JourneyImporter
from eco_rewards.journeys.reward_policy import RewardPolicy
from eco_rewards.repositories.admin_users import AdminUserRepository
from eco_rewards.repositories.journeys import JourneyRepository
from eco_rewards.repositories.members import MemberRepository

_bearer = HTTPBearer(auto_error=False)


def get_member_repository(db: Session = Depends(get_db)) -> MemberRepository:
    return MemberRepository(db)


def get_journey_repository(db: Session = Depends(get_db)) -> JourneyRepository:
    return JourneyRepository(db)


def get_admin_user_repository(db: Session = Depends(get_db)) -> AdminUserRepository:
    return AdminUserRepository(db)


def get_reward_policy(settings: Settings = Depends(get_settings)) -> RewardPolicy:
    return RewardPolicy.from_settings(settings)


def get_journey_importer(
    settings: Settings = Depends(get_settings),
    members: MemberRepository = Depends(get_member_repository),
    journeys: JourneyRepository = Depends(get_journey_repository),
    policy: RewardPolicy = Depends(get_reward_policy),
) -> JourneyImporter:
    return JourneyImporter(
        members,
        journeys,
        policy,
        batch_size=settings.import_batch_size,
        max_attempts=settings.import_max_attempts,
        backoff_seconds=settings.import_backoff_seconds,
    )


# PUBLIC_INTERFACE
def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_settings),
    users: AdminUserRepository = Depends(get_admin_user_repository),
) -> AdminUser:
    """This is a public function.

    FastAPI dependency resolving the admin user behind a bearer token.

    Raises:
        AuthenticationError: 401 if the token is missing, invalid, or names
            an admin user that no longer exists.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(settings, credentials.credentials)
    try:
        user_id = int(payload.get("sub", ""))
    except (TypeError, ValueError) as exc:
        raise AuthenticationError("Invalid token") from exc

    user = users.get(user_id)
    if user is None:
        raise AuthenticationError("Invalid token")
    return user
