import os
import sqlite3
from typing import Optional

from .config import settings


def default_db_path() -> str:
    return os.path.join(settings.DB_DIR, settings.DB_FILE)


def get_db_connection(db_path: Optional[str] = None):
    """Establishes a connection to the SQLite database."""
    conn = sqlite3.connect(
        db_path or default_db_path(), timeout=settings.DB_TIMEOUT_SECONDS
    )
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(conn: sqlite3.Connection):
    """Creates the ledger, result and log tables if they don't exist."""
    with conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS login_days (
                user_id TEXT NOT NULL,
                date TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                PRIMARY KEY (user_id, date)
            );
            CREATE TABLE IF NOT EXISTS quiz_results (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                quiz_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                completed_at TEXT NOT NULL,
                payload TEXT NOT NULL,
                UNIQUE (user_id, quiz_id)
            );
            CREATE TABLE IF NOT EXISTS logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                level TEXT,
                message TEXT
            );
            """
        )


def init_db(db_path: Optional[str] = None) -> str:
    """Initializes the database file and creates necessary tables."""
    db_path = db_path or default_db_path()
    directory = os.path.dirname(db_path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)
    conn = get_db_connection(db_path)
    try:
        create_tables(conn)
    finally:
        conn.close()
    return db_path
