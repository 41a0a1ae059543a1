# backend/api/auth.py

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from backend.core.errors import server_error
from backend.core.security import generate_token, get_password_hash, verify_password
from backend.database import get_db, retry_on_missing_admin_column
from backend.models.user import User


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6

INVALID_LOGIN = "Invalid username or password"
INVALID_ADMIN = "Invalid admin credentials, or the account is not an admin"


class Credentials(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    username: Optional[str] = None
    newPassword: Optional[str] = None
    adminUsername: Optional[str] = None
    adminPassword: Optional[str] = None


def find_user(db: Session, username: str) -> Optional[User]:
    return retry_on_missing_admin_column(
        db, lambda: db.query(User).filter(User.username == username).first()
    )


def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    user = find_user(db, username)
    if not user or not verify_password(password, user.password):
        return None
    return user


def _is_debug(request: Request) -> bool:
    return request.app.state.settings.debug


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: Credentials, request: Request, db: Session = Depends(get_db)):
    username, password = body.username, body.password

    if not username or not password:
        raise HTTPException(status_code=400, detail="Username and password are required")
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters",
        )
    if len(password) < PASSWORD_MIN_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
        )

    try:
        user_exists = db.query(User.id).filter(User.username == username).first()
        if user_exists:
            db.rollback()
            raise HTTPException(status_code=409, detail="Username already exists")

        hashed = get_password_hash(password)

        def insert_user() -> User:
            new_user = User(username=username, password=hashed, is_admin=False)
            db.add(new_user)
            db.flush()
            return new_user

        user_id = retry_on_missing_admin_column(db, insert_user).id
        db.commit()
    except HTTPException:
        raise
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Username already exists")
    except Exception as e:
        db.rollback()
        logger.exception("Registration error")
        return server_error("Registration failed", e, _is_debug(request))

    logger.info("Registered user %s (id=%s)", username, user_id)
    return {
        "success": True,
        "message": "Registration successful",
        "token": generate_token(),
        "username": username,
        "userId": user_id,
    }


@router.post("/login")
def login(body: Credentials, request: Request, db: Session = Depends(get_db)):
    if not body.username or not body.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    try:
        user = authenticate_user(db, body.username, body.password)
    except Exception as e:
        logger.exception("Login error")
        return server_error("Login failed", e, _is_debug(request))

    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_LOGIN)

    return {
        "success": True,
        "message": "Login successful",
        "token": generate_token(),
        "username": user.username,
        "userId": user.id,
        "isAdmin": bool(user.is_admin),
    }


@router.post("/admin/reset-password")
def reset_password(body: ResetPasswordRequest, request: Request, db: Session = Depends(get_db)):
    """
    Lets an admin overwrite the password of any user.
    Wrong admin name, wrong admin password and missing admin flag all
    produce the same 403.
    """
    if not body.username or not body.newPassword or not body.adminUsername or not body.adminPassword:
        raise HTTPException(
            status_code=400,
            detail="username, newPassword, adminUsername and adminPassword are required",
        )
    if len(body.newPassword) < PASSWORD_MIN_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"New password must be at least {PASSWORD_MIN_LENGTH} characters",
        )

    try:
        admin = authenticate_user(db, body.adminUsername, body.adminPassword)
        if not admin or not admin.is_admin:
            raise HTTPException(status_code=403, detail=INVALID_ADMIN)

        target = db.query(User).filter(User.username == body.username).first()
        if not target:
            raise HTTPException(status_code=404, detail="User to reset does not exist")

        target.password = get_password_hash(body.newPassword)
        db.commit()
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Admin reset-password error")
        return server_error("Password reset failed", e, _is_debug(request))

    logger.info("Admin %s reset the password of %s", body.adminUsername, body.username)
    return {"success": True, "message": "Password has been reset"}
