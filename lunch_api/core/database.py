"""Database connection and session management."""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lunch_api.core.config import settings


def _engine_options(database_url: str) -> dict[str, Any]:
    """Engine keyword arguments for the configured backend."""
    options: dict[str, Any] = {"echo": settings.DEBUG}
    if database_url.startswith("sqlite"):
        # One shared connection so an in-memory database survives across sessions.
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:"):
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
    return options


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False
