from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import QueuePool

from .config import get_settings


class DatabaseError(Exception):
    """Any failure coming back from the database: connectivity, constraints, bad SQL."""


def make_engine(url: str, pool_size: int = 5, pool_timeout: Optional[float] = None) -> Engine:
    """Build an engine whose pool never grows past ``pool_size`` connections.

    With ``pool_timeout=None`` a caller that finds the pool exhausted waits
    until another request releases its connection.
    """
    connect_args = {}
    if url.startswith("sqlite"):
        # Handlers run on the server's worker threads.
        connect_args["check_same_thread"] = False
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=pool_timeout,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


settings = get_settings()

# Create the SQLAlchemy engine and its bounded connection pool.
engine = make_engine(
    settings.sqlalchemy_url,
    pool_size=settings.db_pool_size,
    pool_timeout=settings.db_pool_timeout,
)

# Base class for the table descriptions in models.py.
Base = declarative_base()


@contextmanager
def get_db():
    """Check one pooled connection out for a single request.

    Used with ``with`` inside the handler, so acquiring, using and releasing
    the connection all happen on the thread that serves the request.
    """
    try:
        db = engine.connect()
    except SQLAlchemyError as e:
        logger.error("Could not acquire a database connection: {}", e)
        raise DatabaseError(str(e)) from e
    try:
        yield db
    finally:
        # Always hand the connection back to the pool, even if the handler failed.
        db.close()


def query_db(db: Connection, statement, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """Execute one parameterized statement and return its rows as dicts.

    ``statement`` is either a SQLAlchemy construct or a SQL string with
    ``:name`` placeholders. Statements that return no rows give ``[]``.
    """
    if isinstance(statement, str):
        statement = text(statement)
    try:
        result = db.execute(statement, params or {})
        rows = [dict(row._mapping) for row in result] if result.returns_rows else []
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Statement failed: {}", e.__class__.__name__)
        raise DatabaseError(str(e)) from e
    return rows


def run_query(statement, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """Acquire a connection, run one statement, release the connection."""
    with get_db() as db:
        return query_db(db, statement, params)


def ping(db: Connection) -> bool:
    return query_db(db, "SELECT 1 AS ok") == [{"ok": 1}]
