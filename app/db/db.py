"""Database connection manager and session factory."""

import os
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings


def _pool_options() -> dict:
    """QueuePool sizing for Postgres, overridable per deployment."""
    return {
        "pool_size": int(os.getenv("POOL_SIZE", "10")),
        "max_overflow": int(os.getenv("MAX_OVERFLOW", "20")),
        "pool_recycle": int(os.getenv("POOL_RECYCLE", "3600")),
        "pool_timeout": int(os.getenv("POOL_TIMEOUT", "30")),
        "pool_pre_ping": os.getenv("POOL_PRE_PING", "true").lower() == "true",
    }


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create the engine for ``url``.

    SQLite (local runs and tests) shares a single connection so in-memory
    databases survive across sessions.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    return create_engine(url, echo=echo, **_pool_options())


engine = build_engine(
    settings.APP_DATABASE_URL,
    echo=os.getenv("SQL_ECHO", "false").lower() == "true",
)

# Repositories hand detached rows back to the API layer
SessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session that is closed after the request."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_engine() -> Engine:
    return engine


def get_session_local() -> sessionmaker:
    """Session factory shared by the repositories and the test suite."""
    return SessionLocal
