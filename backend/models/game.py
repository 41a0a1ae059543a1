# backend/models/game.py

import json
from datetime import datetime
from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from . import Base


def monster_client_key(monster_data):
    """
    Key stored in `Monster.clientId` for a monster document: the JSON
    encoding of `data["id"]`, so `1` and `"1"` stay distinct.
    """
    if not isinstance(monster_data, dict) or monster_data.get("id") is None:
        return None
    return json.dumps(monster_data["id"], sort_keys=True)


class GameSave(Base):
    __tablename__ = "GameSave"
    __table_args__ = (UniqueConstraint("userId", "slot", name="uq_gamesave_user_slot"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column("userId", Integer, ForeignKey("User.id"), nullable=False, index=True)
    slot = Column(Integer, nullable=False)
    data = Column(JSON, nullable=False)
    created_at = Column("createdAt", DateTime, default=datetime.now)
    updated_at = Column("updatedAt", DateTime, default=datetime.now, onupdate=datetime.now)


class Monster(Base):
    """
    One monster in a user's inventory.
    `client_id` holds `monster_client_key(data)`, derived from the identifier
    generated by the game client.
    """
    __tablename__ = "Monster"
    __table_args__ = (UniqueConstraint("userId", "clientId", name="uq_monster_user_client"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column("userId", Integer, ForeignKey("User.id"), nullable=False, index=True)
    client_id = Column("clientId", String(191), nullable=True)
    name = Column(String(255), nullable=False)
    element = Column(String(64), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column("imageUrl", Text, nullable=True)
    model_url = Column("modelUrl", Text, nullable=True)
    visual_prompt = Column("visualPrompt", Text, nullable=True)
    data = Column(JSON, nullable=False)
    created_at = Column("createdAt", DateTime, default=datetime.now, index=True)
    updated_at = Column("updatedAt", DateTime, default=datetime.now, onupdate=datetime.now)
