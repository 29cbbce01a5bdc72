"""
Engine, session factory and transactional scope for the relational store.

Components never reach for a global connection: they are handed a
``sessionmaker`` and open a ``transaction()`` around each unit of work.
"""

import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from detailing.config import DatabaseConfig, settings
from detailing.errors import StorageError

logger = logging.getLogger(__name__)

SLOW_QUERY_THRESHOLD = 1.0

Base = declarative_base()


def build_engine(
    config: Optional[DatabaseConfig] = None, url: Optional[str] = None, **overrides
) -> Engine:
    """Create an engine for ``url`` (or the configured DATABASE_URL).

    ``overrides`` are passed straight to ``create_engine``, e.g. a
    ``poolclass`` for in-memory SQLite.
    """
    config = config or settings.database
    url = url or config.url
    kwargs: dict = {"echo": config.echo, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        # Busy timeout doubles as the per-request storage deadline.
        kwargs["connect_args"] = {
            "timeout": config.busy_timeout_sec,
            "check_same_thread": False,
        }
    else:
        kwargs["pool_size"] = config.pool_size
    kwargs.update(overrides)

    engine = create_engine(url, **kwargs)

    if url.startswith("sqlite"):

        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    @event.listens_for(engine, "before_cursor_execute")
    def _before_cursor_execute(conn, _cursor, _statement, _parameters, _context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def _after_cursor_execute(conn, _cursor, statement, _parameters, _context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > SLOW_QUERY_THRESHOLD:
            logger.warning("Slow query (%.2fs): %s", total, statement[:200])

    logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables. Safe to call repeatedly."""
    from detailing import models  # noqa: F401  registers tables on Base

    Base.metadata.create_all(engine)
    logger.info("Database tables initialized")


@contextmanager
def transaction(session_factory: sessionmaker) -> Iterator[Session]:
    """Open a session, commit on success, roll back on any exception.

    Usage:
        with transaction(factory) as session:
            session.add(row)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        raise
    finally:
        session.close()



@contextmanager
def storage_guard(operation: str) -> Iterator[None]:
    """Translate driver failures into StorageError, logging the internals.

    Domain errors raised inside the block pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Storage failure while trying to %s", operation)
        raise StorageError(f"Failed to {operation}", internal_detail=str(exc)) from exc
