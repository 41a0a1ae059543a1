# backend/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from backend.api import auth, health, monsters, saves
from backend.config import Settings
from backend.core.bootstrap import ensure_admin_user
from backend.core.errors import http_exception_handler, validation_exception_handler
from backend.database import check_connection, create_db_engine, create_session_factory, init_db


logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    engine = app.state.engine

    if engine is None:
        logger.warning("Database not configured. Set DATABASE_URL in .env")
    else:
        try:
            check_connection(engine)
            init_db(engine)
            logger.info("Database connection test successful")
        except SQLAlchemyError as e:
            logger.error("Database connection test failed: %s", e)
        ensure_admin_user(
            app.state.session_factory,
            settings.admin_username,
            settings.admin_password,
        )

    yield

    if engine is not None:
        engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title="GenMon Backend", lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = None
    app.state.session_factory = None
    if settings.database_url:
        app.state.engine = create_db_engine(settings.database_url, settings.pool_size)
        app.state.session_factory = create_session_factory(app.state.engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(saves.router)
    app.include_router(monsters.router)

    return app


def run() -> None:
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger.info("Backend server running on http://localhost:%s", settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
