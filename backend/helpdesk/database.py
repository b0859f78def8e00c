# =============================================================================
# HELPDESK API - DATABASE MANAGER
# =============================================================================
# PostgreSQL (psycopg2 pool) in production, SQLite for development and tests.
# Both backends are wrapped behind the same sqlite3-style interface:
#   db.execute(sql, params) -> cursor with fetchone/fetchall/lastrowid
# SQL is written with ? placeholders and converted for PostgreSQL.
# =============================================================================

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional, Iterator

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor

from .config import config
from .schema import render_schema

logger = logging.getLogger(__name__)

# Constraint violations raised by either backend
INTEGRITY_ERRORS = (sqlite3.IntegrityError, psycopg2.IntegrityError)


def utcnow() -> str:
    """Current UTC time as an ISO-8601 string (the stored timestamp format)."""
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# ROWS AND CURSORS
# =============================================================================

class HybridRow(dict):
    """
    Row supporting both key access (row['col']) and index access (row[0]).
    """
    def __init__(self, data):
        super().__init__(data)
        self._values = list(data.values())

    def __getitem__(self, key):
        if isinstance(key, int):
            return self._values[key]
        return super().__getitem__(key)


class WrappedCursor:
    """Cursor wrapper returning HybridRow objects for both backends."""

    def __init__(self, cursor, lastrowid: Optional[int] = None):
        self._cursor = cursor
        self.lastrowid = lastrowid if lastrowid is not None else getattr(cursor, "lastrowid", None)
        self.rowcount = cursor.rowcount

    def fetchone(self) -> Optional[HybridRow]:
        row = self._cursor.fetchone()
        if row is None:
            return None
        return HybridRow(dict(row))

    def fetchall(self) -> list:
        return [HybridRow(dict(row)) for row in self._cursor.fetchall()]

    def close(self):
        self._cursor.close()


# =============================================================================
# POSTGRESQL
# =============================================================================

_pool: Optional[pool.ThreadedConnectionPool] = None


def init_pool():
    """Initialize the PostgreSQL connection pool."""
    global _pool
    if _pool is not None:
        return

    _pool = pool.ThreadedConnectionPool(
        minconn=config.PG_POOL_MIN,
        maxconn=config.PG_POOL_MAX,
        host=config.PG_HOST,
        port=config.PG_PORT,
        database=config.PG_DATABASE,
        user=config.PG_USER,
        password=config.PG_PASSWORD
    )
    logger.info(f"PostgreSQL pool: {config.PG_HOST}:{config.PG_PORT}/{config.PG_DATABASE}")


def close_pool():
    """Close the connection pool."""
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None


class PostgreSQLConnection:
    """
    Wrapper exposing the sqlite3.Connection interface on a pooled
    psycopg2 connection.
    """

    def __init__(self, conn):
        self._conn = conn

    def execute(self, sql: str, params: tuple = None) -> WrappedCursor:
        """
        Execute a statement, converting ? placeholders to %s.

        INSERT statements without RETURNING get `RETURNING id` appended so
        that lastrowid is available like on sqlite3.
        """
        pg_sql = self._convert_sql(sql)
        is_insert = pg_sql.lstrip().upper().startswith("INSERT")
        auto_returning = is_insert and "RETURNING" not in pg_sql.upper()
        if auto_returning:
            pg_sql = pg_sql.rstrip().rstrip(";") + " RETURNING id"

        cursor = self._conn.cursor(cursor_factory=RealDictCursor)
        try:
            cursor.execute(pg_sql, tuple(params) if params else None)
        except psycopg2.Error:
            cursor.close()
            self._conn.rollback()
            raise

        lastrowid = None
        if auto_returning:
            row = cursor.fetchone()
            if row:
                lastrowid = row["id"]
        return WrappedCursor(cursor, lastrowid=lastrowid)

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        """Release the connection to the pool, discarding uncommitted work."""
        if self._conn.status != psycopg2.extensions.STATUS_READY:
            self._conn.rollback()
        if _pool is not None:
            _pool.putconn(self._conn)

    @staticmethod
    def _convert_sql(sql: str) -> str:
        return sql.replace("?", "%s")


# =============================================================================
# SQLITE
# =============================================================================

class SQLiteConnection:
    """Same interface as PostgreSQLConnection, on a sqlite3 connection."""

    def __init__(self, path: str):
        self._conn = sqlite3.connect(path, check_same_thread=False, timeout=30)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        # Readers must not block the background enrichment writer
        self._conn.execute("PRAGMA journal_mode = WAL")

    def execute(self, sql: str, params: tuple = None) -> WrappedCursor:
        cursor = self._conn.execute(sql, tuple(params) if params else ())
        return WrappedCursor(cursor)

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        self._conn.rollback()
        self._conn.close()


# =============================================================================
# CONNECTIONS
# =============================================================================

def connect():
    """Open a connection on the configured backend."""
    if config.DB_TYPE == "sqlite":
        return SQLiteConnection(config.DB_PATH)

    if _pool is None:
        init_pool()
    raw_conn = _pool.getconn()
    raw_conn.autocommit = False
    return PostgreSQLConnection(raw_conn)


def get_db() -> Iterator:
    """
    FastAPI dependency: one connection per request, released afterwards.

    Usage:
        @router.get("/tickets")
        async def list_tickets(db=Depends(get_db)):
            ...
    """
    db = connect()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def db_session():
    """Context manager with automatic commit/rollback, for background jobs."""
    db = connect()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_database() -> bool:
    """Database liveness check used by /health."""
    try:
        with db_session() as db:
            db.execute("SELECT 1").fetchone()
        return True
    except (sqlite3.Error, psycopg2.Error) as e:
        logger.error(f"Database check failed: {e}")
        return False


# =============================================================================
# INITIALIZATION
# =============================================================================

def _ensure_admin_exists(db) -> None:
    """Create the bootstrap admin from ADMIN_EMAIL/ADMIN_PASSWORD if missing."""
    if not config.ADMIN_EMAIL or not config.ADMIN_PASSWORD:
        return

    email = config.ADMIN_EMAIL.strip().lower()
    existing = db.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
    if existing:
        return

    from .auth.security import hash_password

    now = utcnow()
    db.execute(
        """
        INSERT INTO users (email, password_hash, name, role,
                           has_notifications, is_email_verified, created_at, updated_at)
        VALUES (?, ?, ?, 'admin', ?, ?, ?, ?)
        """,
        (email, hash_password(config.ADMIN_PASSWORD), config.ADMIN_NAME,
         False, True, now, now)
    )
    logger.info(f"Bootstrap admin created: {email}")


def init_database() -> None:
    """Create the schema (idempotent) and bootstrap the admin user."""
    with db_session() as db:
        for statement in render_schema(config.DB_TYPE):
            db.execute(statement)
        _ensure_admin_exists(db)

    if config.DB_TYPE == "sqlite":
        logger.info(f"SQLite database ready: {config.DB_PATH}")
    else:
        logger.info(f"PostgreSQL database ready: {config.PG_DATABASE}")
