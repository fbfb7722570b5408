"""
Create the database schema and, optionally, an admin user.

Usage:
    python -m eco_rewards.db.bootstrap --admin-email admin@example.com --admin-password secret
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from eco_rewards.core.errors import ConflictError
from eco_rewards.core.logger import get_logger, setup_logging
from eco_rewards.core.settings import get_settings
from eco_rewards.db.session import create_schema, open_session
from eco_rewards.repositories.admin_users import AdminUserRepository

logger = get_logger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create tables and an admin user.")
    parser.add_argument("--admin-email", help="Email of the admin user to create")
    parser.add_argument("--admin-password", help="Password of the admin user to create")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(log_level=settings.log_level, use_json=settings.log_json, environment=settings.environment)

    create_schema()
    logger.info("schema_created")

    if args.admin_email:
        if not args.admin_password:
            logger.error("admin_password_missing")
            return 2
        with open_session() as db:
            try:
                user = AdminUserRepository(db).create(args.admin_email, args.admin_password)
            except ConflictError:
                logger.info("admin_user_exists", email=args.admin_email)
            else:
                logger.info("admin_user_created", user_id=user.id, email=user.email)
    return 0


if __name__ == "__main__":
    sys.exit(main())
