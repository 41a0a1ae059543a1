# backend/core/security.py

import secrets
from passlib.context import CryptContext


# Unsalted SHA-256 hex digests, compatible with rows written by earlier releases.
pwd_context = CryptContext(schemes=["hex_sha256"])

TOKEN_BYTES = 32


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def generate_token() -> str:
    """
    Returns an opaque bearer token (64 hex characters).
    Tokens are not stored and not checked on later requests.
    """
    return secrets.token_hex(TOKEN_BYTES)
