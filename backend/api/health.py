# backend/api/health.py

import logging
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from backend.database import check_connection


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
@router.get("/api/health")
def health(request: Request):
    engine = request.app.state.engine
    if engine is None:
        return JSONResponse(status_code=503, content={"error": "Database not configured"})
    try:
        check_connection(engine)
    except SQLAlchemyError as e:
        logger.warning("Health check failed: %s", e)
        return JSONResponse(
            status_code=503,
            content={"error": "Database connection failed", "message": str(e)},
        )
    return {"status": "ok", "database": "connected"}
