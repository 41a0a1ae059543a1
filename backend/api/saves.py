# backend/api/saves.py

import logging
from datetime import datetime
from typing import Any
from fastapi import APIRouter, Body, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from backend.core.errors import server_error
from backend.database import get_db
from backend.models.game import GameSave
from backend.models.user import User


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/saves")


def get_user_id(db: Session, username: str):
    row = db.query(User.id).filter(User.username == username).first()
    return row.id if row else None


@router.get("/{username}/{slot}")
def load_save(username: str, slot: int, request: Request, db: Session = Depends(get_db)):
    try:
        user_id = get_user_id(db, username)
        if user_id is None:
            raise HTTPException(status_code=404, detail="User does not exist")

        save = db.query(GameSave).filter_by(user_id=user_id, slot=slot).first()
        if save is None:
            raise HTTPException(status_code=404, detail="Save does not exist")

        return {"success": True, "data": save.data, "updatedAt": save.updated_at}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Load save error")
        return server_error("Failed to load save", e, request.app.state.settings.debug)


@router.post("/{username}/{slot}")
def store_save(
    username: str,
    slot: int,
    request: Request,
    payload: Any = Body(None),
    db: Session = Depends(get_db),
):
    """
    Writes the request body as the save document of (user, slot).
    The user must already be registered; an existing slot is overwritten.
    An empty body is stored as an empty object.
    """
    if payload is None:
        payload = {}
    try:
        user_id = get_user_id(db, username)
        if user_id is None:
            db.rollback()
            raise HTTPException(status_code=404, detail="User does not exist, please register first")

        existing = db.query(GameSave).filter_by(user_id=user_id, slot=slot).first()
        if existing:
            existing.data = payload
            existing.updated_at = datetime.now()
            db.commit()
        else:
            db.add(GameSave(user_id=user_id, slot=slot, data=payload))
            try:
                db.commit()
            except IntegrityError:
                # Another request created the slot first.
                db.rollback()
                db.query(GameSave).filter_by(user_id=user_id, slot=slot).update(
                    {GameSave.data: payload}, synchronize_session=False
                )
                db.commit()
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Save error")
        return server_error("Failed to store save", e, request.app.state.settings.debug)

    return {"success": True, "message": "Save stored"}
