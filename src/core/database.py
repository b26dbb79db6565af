"""
Database utilities and connection management
SQLite storage backing the task store and the completion history

Usage:
    db = get_database()                       # task database from Config
    history_db = get_history_database()       # completion history, created on demand
"""

import sqlite3
from pathlib import Path
from typing import List, Dict, Any, Optional, Tuple
from contextlib import contextmanager

from .config import Config


TASKS_SCHEMA = """
    CREATE TABLE IF NOT EXISTS tasks (
        uuid TEXT PRIMARY KEY,
        description TEXT NOT NULL,
        project TEXT DEFAULT '',
        priority TEXT DEFAULT '' CHECK(priority IN ('H', 'M', 'L', '')),
        due DATETIME,
        status TEXT NOT NULL DEFAULT 'pending',
        created_at DATETIME DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
    );
    CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);
    CREATE INDEX IF NOT EXISTS idx_tasks_due ON tasks(due);
"""

HISTORY_SCHEMA = """
    CREATE TABLE IF NOT EXISTS time_entries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        uuid TEXT NOT NULL UNIQUE,
        description TEXT NOT NULL,
        project TEXT DEFAULT '',
        tags TEXT DEFAULT '',
        priority TEXT DEFAULT '',
        estimated_hours REAL DEFAULT 0,
        actual_hours REAL DEFAULT 0,
        completed_at DATETIME NOT NULL,
        created_at DATETIME NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_project ON time_entries(project);
    CREATE INDEX IF NOT EXISTS idx_priority ON time_entries(priority);
    CREATE INDEX IF NOT EXISTS idx_completed_at ON time_entries(completed_at);
"""


class SQLiteDatabase:
    """SQLite database implementation"""

    def __init__(self, db_path: Optional[Path] = None, create: bool = False):
        if db_path is None:
            db_path = Config().get_database_path()

        self.db_path = Path(db_path)

        if not self.db_path.exists():
            if not create:
                raise FileNotFoundError(
                    f"Database not found at {self.db_path}. "
                    "Run 'python scripts/init_db.py' to create it."
                )
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def execute(self, query: str, params: Tuple = ()) -> List[Dict[str, Any]]:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            rows = cursor.fetchall()
            return [dict(row) for row in rows]

    def execute_one(self, query: str, params: Tuple = ()) -> Optional[Dict[str, Any]]:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            row = cursor.fetchone()
            return dict(row) if row else None

    def execute_write(self, query: str, params: Tuple = ()) -> int:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            conn.commit()
            return cursor.lastrowid if cursor.lastrowid else cursor.rowcount

    def init_schema(self, schema: str) -> None:
        """Run CREATE ... IF NOT EXISTS statements"""
        with self.get_connection() as conn:
            conn.executescript(schema)
            conn.commit()

    def get_table_names(self) -> List[str]:
        query = "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
        rows = self.execute(query)
        return [row['name'] for row in rows]


def get_database(config: Optional[Config] = None) -> SQLiteDatabase:
    """
    Open the task database configured in settings.

    Raises FileNotFoundError if the database has not been initialized.
    """
    config = config if config else Config()
    return SQLiteDatabase(config.get_database_path())


def get_history_database(config: Optional[Config] = None) -> SQLiteDatabase:
    """Open (creating if needed) the completion history database."""
    config = config if config else Config()
    db = SQLiteDatabase(config.get_history_database_path(), create=True)
    db.init_schema(HISTORY_SCHEMA)
    return db
