"""
SQLAlchemy 2.x engine and sessions for the POS database.

PostgreSQL in production; the same models also run on SQLite so the test
suite needs no server.
"""
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from src.lib.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by admins, customers, transactions and receipt counters."""


def _engine_options(database_url: str) -> dict:
    # SQLite has no QueuePool sizing and is touched from the test client's thread
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_options(settings.database_url),
)

# Receipts are built from rows after commit, so attributes must stay loaded
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session for FastAPI routes; services decide when to commit."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Session for scripts such as create_admin.py: commits on success, rolls back on error.

    Usage:
        with get_db_context() as db:
            db.add(admin)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
