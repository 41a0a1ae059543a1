# backend/api/monsters.py

import logging
from datetime import datetime
from typing import Any, Dict, Tuple
from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from backend.api.saves import get_user_id
from backend.core.errors import server_error
from backend.database import get_db
from backend.models.game import Monster, monster_client_key


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/monsters")


def apply_monster_fields(monster: Monster, monster_data: Dict[str, Any]) -> None:
    monster.name = monster_data["name"]
    monster.element = monster_data["element"]
    monster.description = monster_data.get("description") or None
    monster.image_url = monster_data.get("imageUrl") or None
    monster.model_url = monster_data.get("modelUrl") or None
    monster.visual_prompt = monster_data.get("visualPrompt") or None
    monster.data = monster_data


def find_monster(db: Session, user_id: int, client_id):
    if client_id is None:
        return None
    monster = db.query(Monster).filter_by(user_id=user_id, client_id=client_id).first()
    if monster is not None:
        return monster
    # Rows written by older releases carry no clientId; match them on data.id.
    legacy_rows = db.query(Monster).filter(Monster.user_id == user_id, Monster.client_id.is_(None))
    for legacy in legacy_rows.order_by(Monster.id):
        if monster_client_key(legacy.data) == client_id:
            return legacy
    return None


def update_monster(db: Session, monster: Monster, monster_data: Dict[str, Any]) -> int:
    apply_monster_fields(monster, monster_data)
    monster.client_id = monster_client_key(monster_data)
    monster.updated_at = datetime.now()
    monster_id = monster.id
    db.commit()
    return monster_id


def upsert_monster(db: Session, user_id: int, monster_data: Dict[str, Any]) -> Tuple[int, bool]:
    """
    Returns the row id and whether a new row was inserted.
    """
    client_id = monster_client_key(monster_data)
    existing = find_monster(db, user_id, client_id)
    if existing:
        return update_monster(db, existing, monster_data), False

    monster = Monster(user_id=user_id, client_id=client_id)
    apply_monster_fields(monster, monster_data)
    db.add(monster)
    try:
        db.flush()
    except IntegrityError:
        # A concurrent request inserted the same client id first.
        db.rollback()
        existing = find_monster(db, user_id, client_id)
        if existing is None:
            raise
        return update_monster(db, existing, monster_data), False

    monster_id = monster.id
    db.commit()
    return monster_id, True


def serialize_monster(monster: Monster) -> dict:
    return {
        "id": monster.id,
        "name": monster.name,
        "element": monster.element,
        "description": monster.description,
        "imageUrl": monster.image_url,
        "modelUrl": monster.model_url,
        "visualPrompt": monster.visual_prompt,
        "data": monster.data,
        "createdAt": monster.created_at,
    }


@router.post("/{username}")
def save_monster(
    username: str,
    request: Request,
    response: Response,
    monster_data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    """
    Adds a monster to the user's inventory, or overwrites the one with the
    same client `id`. Answers 201 for a new row and 200 for an update;
    `monsterId` is always the database id of the affected row.
    """
    if not monster_data.get("name") or not monster_data.get("element"):
        raise HTTPException(status_code=400, detail="Monster data is incomplete (name and element are required)")

    try:
        user_id = get_user_id(db, username)
        if user_id is None:
            db.rollback()
            raise HTTPException(status_code=404, detail="User does not exist")

        monster_id, created = upsert_monster(db, user_id, monster_data)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Save monster error")
        return server_error("Failed to save monster", e, request.app.state.settings.debug)

    if not created:
        return {"success": True, "message": "Monster updated", "monsterId": monster_id}
    response.status_code = status.HTTP_201_CREATED
    return {"success": True, "message": "Monster saved", "monsterId": monster_id}


@router.get("/{username}")
def list_monsters(username: str, request: Request, db: Session = Depends(get_db)):
    try:
        user_id = get_user_id(db, username)
        if user_id is None:
            raise HTTPException(status_code=404, detail="User does not exist")

        monsters = (
            db.query(Monster)
            .filter_by(user_id=user_id)
            .order_by(Monster.created_at.desc(), Monster.id.desc())
            .all()
        )
        return {"success": True, "monsters": [serialize_monster(m) for m in monsters]}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("List monsters error")
        return server_error("Failed to list monsters", e, request.app.state.settings.debug)
