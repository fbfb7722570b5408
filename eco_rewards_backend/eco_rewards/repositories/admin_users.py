from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from eco_rewards.core.errors import ConflictError
from eco_rewards.core.security import get_password_hash
from eco_rewards.db.models import AdminUser


class AdminUserRepository:
    """Data access for admin users."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> AdminUser | None:
        return self.db.get(AdminUser, user_id)

    def get_by_email(self, email: str) -> AdminUser | None:
        stmt = select(AdminUser).where(AdminUser.email == email.strip().lower())
        return self.db.execute(stmt).scalars().first()

    def create(self, email: str, password: str) -> AdminUser:
        """Create an admin user, storing only a hash of `password`."""
        email = email.strip().lower()
        if self.get_by_email(email) is not None:
            raise ConflictError("Admin user already exists")
        user = AdminUser(email=email, password=get_password_hash(password))
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
