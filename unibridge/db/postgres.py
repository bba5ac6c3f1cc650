import logging
from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from unibridge.core.config import Settings

logger = logging.getLogger(__name__)


@lru_cache()
def _engine_for(url: str, echo: bool) -> Engine:
    # pool_size=5: maintain 5 connections ready
    # max_overflow=10: allow 10 extra connections under load
    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        echo=echo  # Log SQL queries in debug mode
    )


def get_engine(settings: Settings) -> Engine:
    """
    Engine for the configured database, created on first use so importing
    the app never needs a database. One engine per database URL.
    """
    return _engine_for(settings.postgres_url, settings.debug)


@contextmanager
def get_db_session(settings: Settings):
    """
    Context manager for database sessions.
    Usage:
        with get_db_session(settings) as db:
            db.execute(text("SELECT * FROM opportunities"))
    """
    session = sessionmaker(autocommit=False, autoflush=False, bind=get_engine(settings))()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def test_postgres_connection(settings: Settings) -> bool:
    """
    Test if PostgreSQL is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        with get_db_session(settings) as db:
            result = db.execute(text("SELECT 1 as test"))
            row = result.fetchone()
            return row[0] == 1
    except Exception as e:
        logger.warning("PostgreSQL connection failed: %s", e)
        return False


def execute_raw_sql(settings: Settings, sql: str, params: dict = None) -> list:
    """
    Execute raw SQL and return results as list of dicts.
    """
    with get_db_session(settings) as db:
        result = db.execute(text(sql), params or {})
        columns = result.keys()
        return [dict(zip(columns, row)) for row in result.fetchall()]
