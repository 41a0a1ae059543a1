# backend/scripts/reset_password.py
#
# Resets the password of a user directly in the database.
# Usage: python -m backend.scripts.reset_password <username> <new_password>

import argparse
import logging
import sys
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from backend.api.auth import PASSWORD_MIN_LENGTH
from backend.config import Settings
from backend.core.security import get_password_hash
from backend.database import create_db_engine, create_session_factory
from backend.models.user import User


logger = logging.getLogger(__name__)


def reset_password(session_factory, username: str, new_password: str) -> bool:
    db = session_factory()
    try:
        user = db.query(User).filter(User.username == username).first()
        if user is None:
            return False
        user.password = get_password_hash(new_password)
        db.commit()
        return True
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        db.close()


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    parser = argparse.ArgumentParser(description="Reset the password of a user")
    parser.add_argument("username", help="Account whose password is reset")
    parser.add_argument("new_password", help=f"New password (at least {PASSWORD_MIN_LENGTH} characters)")
    args = parser.parse_args(argv)

    if len(args.new_password) < PASSWORD_MIN_LENGTH:
        print(f"Error: the new password must be at least {PASSWORD_MIN_LENGTH} characters", file=sys.stderr)
        return 1

    settings = settings or Settings.from_env()
    if not settings.database_url:
        print("Error: DATABASE_URL is not configured, set it in .env", file=sys.stderr)
        return 1

    engine = create_db_engine(settings.database_url, pool_size=1)
    try:
        if not reset_password(create_session_factory(engine), args.username, args.new_password):
            print(f"Error: user does not exist: {args.username}", file=sys.stderr)
            return 1
    except SQLAlchemyError as e:
        logger.error("Reset failed: %s", e)
        print(f"Reset failed: {e}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()

    print("Password has been reset.")
    print(f"Username: {args.username}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
