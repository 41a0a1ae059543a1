# backend/core/bootstrap.py

import logging
from typing import Optional
from sqlalchemy.orm import sessionmaker
from backend.core.security import get_password_hash
from backend.database import ensure_admin_column
from backend.models.user import User


logger = logging.getLogger(__name__)


def ensure_admin_user(
    session_factory: Optional[sessionmaker],
    admin_username: Optional[str],
    admin_password: Optional[str],
) -> None:
    """
    Makes sure the configured admin account exists and carries the admin flag.
    Safe to run on every start; errors are logged and never raised.
    """
    if not admin_username or not admin_password or session_factory is None:
        return

    db = session_factory()
    try:
        ensure_admin_column(db.get_bind())

        user = db.query(User).filter(User.username == admin_username).first()
        if user is None:
            db.add(User(
                username=admin_username,
                password=get_password_hash(admin_password),
                is_admin=True,
            ))
            db.commit()
            logger.info("[Admin] Created admin user: %s", admin_username)
        elif not user.is_admin:
            user.is_admin = True
            db.commit()
            logger.info("[Admin] Set admin privilege for: %s", admin_username)
    except Exception as e:
        db.rollback()
        logger.error("[Admin] ensure_admin_user error: %s", e)
    finally:
        db.close()
