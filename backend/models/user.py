# backend/models/user.py

from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, Integer, String, false
from . import Base


# -------------------------------
# User Model
# -------------------------------

class User(Base):
    """
    Database model for game accounts.
    Stores the username, the hex password digest and the admin flag.
    Column names follow the camelCase layout of the existing `User` table.
    """
    __tablename__ = "User"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(20), unique=True, index=True, nullable=False)
    password = Column(String(64), nullable=False)
    is_admin = Column("isAdmin", Boolean, nullable=False, default=False, server_default=false())
    created_at = Column("createdAt", DateTime, default=datetime.now)
    updated_at = Column("updatedAt", DateTime, default=datetime.now, onupdate=datetime.now)
