"""
Database module - PostgreSQL connection (read-only catalog access).
"""
from unibridge.db.postgres import get_db_session, get_engine, execute_raw_sql, test_postgres_connection

__all__ = [
    "get_db_session",
    "get_engine",
    "execute_raw_sql",
    "test_postgres_connection"
]
