# backend/database.py

import logging
from typing import Callable, TypeVar
from fastapi import HTTPException, Request
from sqlalchemy import create_engine, inspect, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, OperationalError, ProgrammingError
from sqlalchemy.orm import Session, sessionmaker
from backend.models import Base
from backend.models.game import Monster, monster_client_key
from backend.models.user import User


logger = logging.getLogger(__name__)

T = TypeVar("T")

# MySQL: "Unknown column ... in 'field list'"
ER_BAD_FIELD_ERROR = 1054

ADMIN_COLUMN = "isAdmin"

# Columns added to `Monster` after the first release.
MONSTER_COLUMNS = (
    ("clientId", "VARCHAR(191) NULL"),
    ("updatedAt", "DATETIME NULL"),
)


def create_db_engine(url: str, pool_size: int = 10) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False}
        )
    # Fixed capacity: extra requests wait for a free connection.
    return create_engine(
        url,
        pool_size=pool_size,
        max_overflow=0,
        pool_pre_ping=True,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine
    )


def has_admin_column(engine: Engine) -> bool:
    columns = inspect(engine).get_columns(User.__tablename__)
    return any(column["name"] == ADMIN_COLUMN for column in columns)


def add_column(engine: Engine, table: str, column: str, definition: str) -> bool:
    """
    Adds a column to an existing table.
    Best effort: failures are logged and reported as False.
    """
    preparer = engine.dialect.identifier_preparer
    statement = "ALTER TABLE {table} ADD COLUMN {column} {definition}".format(
        table=preparer.quote(table),
        column=preparer.quote(column),
        definition=definition,
    )
    try:
        with engine.begin() as conn:
            conn.execute(text(statement))
        logger.warning("Added missing %s column to %s table", column, table)
        return True
    except DBAPIError as e:
        logger.error("Could not add %s column to %s: %s", column, table, e)
        return False


def add_admin_column(engine: Engine) -> bool:
    return add_column(engine, User.__tablename__, ADMIN_COLUMN, "BOOLEAN NOT NULL DEFAULT FALSE")


def ensure_admin_column(engine: Engine) -> None:
    if not has_admin_column(engine):
        add_admin_column(engine)


def ensure_monster_columns(engine: Engine) -> None:
    existing = {column["name"] for column in inspect(engine).get_columns(Monster.__tablename__)}
    for column, definition in MONSTER_COLUMNS:
        if column not in existing:
            add_column(engine, Monster.__tablename__, column, definition)


def backfill_monster_client_ids(engine: Engine) -> int:
    """
    Fills `clientId` for rows written without it, from the stored `data.id`.
    Returns the number of rows updated.
    """
    table = Monster.__table__
    columns = Monster.__mapper__.columns
    updated = 0
    with engine.begin() as conn:
        rows = conn.execute(
            select(columns.id, columns.data).where(columns.client_id.is_(None))
        ).all()
        for row in rows:
            client_id = monster_client_key(row.data)
            if client_id is None:
                continue
            conn.execute(
                update(table).where(columns.id == row.id).values({columns.client_id: client_id})
            )
            updated += 1
    if updated:
        logger.info("Backfilled clientId for %d monster rows", updated)
    return updated


def init_db(engine: Engine) -> None:
    """
    Creates missing tables and brings tables written by older releases up
    to date, so request handlers can assume every mapped column exists.
    """
    Base.metadata.create_all(bind=engine)
    ensure_admin_column(engine)
    ensure_monster_columns(engine)
    try:
        backfill_monster_client_ids(engine)
    except DBAPIError as e:
        logger.error("Could not backfill monster client ids: %s", e)


def is_missing_admin_column(exc: Exception) -> bool:
    if not isinstance(exc, (OperationalError, ProgrammingError)):
        return False
    orig = exc.orig
    args = getattr(orig, "args", ())
    if args and args[0] == ER_BAD_FIELD_ERROR:
        return True
    return ADMIN_COLUMN in str(orig)


def retry_on_missing_admin_column(db: Session, operation: Callable[[], T]) -> T:
    """
    Runs `operation`; if it fails because the `isAdmin` column is absent,
    rolls back, adds the column and runs the operation once more.
    """
    try:
        return operation()
    except DBAPIError as e:
        if not is_missing_admin_column(e):
            raise
        logger.warning("%s column missing, repairing schema and retrying", ADMIN_COLUMN)
        db.rollback()
        add_admin_column(db.get_bind())
        return operation()


def check_connection(engine: Engine) -> None:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def get_db(request: Request):
    session_factory = request.app.state.session_factory
    if session_factory is None:
        raise HTTPException(status_code=503, detail="Database not configured")
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
