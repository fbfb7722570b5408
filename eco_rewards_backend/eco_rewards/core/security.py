from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from eco_rewards.core.errors import AuthenticationError
from eco_rewards.core.logger import get_logger
from eco_rewards.core.settings import Settings

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return pwd_context.verify(password, hashed_password)


def create_access_token(settings: Settings, subject: str, claims: dict[str, Any] | None = None) -> str:
    """Create a signed bearer token for an admin user.

    Args:
        settings: Application settings (secret, algorithm, expiry).
        subject: The admin user's id, stored as the `sub` claim.
        claims: Extra claims to embed.

    Returns:
        str: Encoded JWT.
    """
    to_encode = dict(claims or {})
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({"sub": subject, "exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> dict[str, Any]:
    """Decode and verify a bearer token.

    Raises:
        AuthenticationError: if the token is expired, tampered with or malformed.
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        logger.info("token_expired")
        raise AuthenticationError("Token has expired") from exc
    except JWTError as exc:
        logger.warning("token_rejected", error_message=str(exc))
        raise AuthenticationError("Invalid token") from exc
