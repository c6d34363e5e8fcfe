import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from .schema import SCHEMA_SQL, INDEXES_SQL, SCHEMA_VERSION, DEFAULT_FORUM_CATEGORIES

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".campuscove"
DB_PATH = CONFIG_DIR / "campuscove.db"

def init_db():
    """Initialize the database by creating tables and indexes if they don't exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with get_conn() as conn:
        conn.executescript(SCHEMA_SQL)
        conn.executescript(INDEXES_SQL)
        ensure_forum_categories(conn)
        purge_expired_sessions(conn)
        ensure_schema_version(conn)
        conn.commit()
    logger.info("Database ready at %s (schema v%s)", DB_PATH, SCHEMA_VERSION)

def ensure_forum_categories(conn: sqlite3.Connection) -> None:
    """Seed the default forum categories on a fresh install."""
    cursor = conn.cursor()
    cursor.execute("SELECT COUNT(*) FROM forum_categories")
    if cursor.fetchone()[0]:
        return
    cursor.executemany(
        "INSERT OR IGNORE INTO forum_categories (name, description) VALUES (?, ?)",
        DEFAULT_FORUM_CATEGORIES,
    )

def purge_expired_sessions(conn: sqlite3.Connection) -> None:
    """Drop login sessions whose expiry has passed."""
    conn.execute(
        "DELETE FROM sessions WHERE expires_at < strftime('%Y-%m-%dT%H:%M:%S', 'now')"
    )

def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the SQLite schema version from PRAGMA user_version."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA user_version")
    row = cursor.fetchone()
    return int(row[0]) if row else 0

def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Set the SQLite schema version via PRAGMA user_version."""
    conn.execute(f"PRAGMA user_version = {int(version)}")

def ensure_schema_version(conn: sqlite3.Connection) -> None:
    """Ensure the current schema version is written to the database."""
    current = get_schema_version(conn)
    if current != SCHEMA_VERSION:
        set_schema_version(conn, SCHEMA_VERSION)

@contextmanager
def savepoint(conn: sqlite3.Connection, name: str):
    """Run a block inside a SAVEPOINT; on error roll back only that block and re-raise."""
    conn.execute(f"SAVEPOINT {name}")
    try:
        yield conn
    except Exception:
        conn.execute(f"ROLLBACK TO SAVEPOINT {name}")
        conn.execute(f"RELEASE SAVEPOINT {name}")
        raise
    conn.execute(f"RELEASE SAVEPOINT {name}")

@contextmanager
def get_conn():
    """Context manager for SQLite connection, using row_factory for dict-like rows."""
    conn = sqlite3.connect(DB_PATH, detect_types=sqlite3.PARSE_DECLTYPES, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()

def get_db():
    """FastAPI dependency that yields a DB connection and closes it afterwards."""
    with get_conn() as conn:
        yield conn
