#!/usr/bin/env python3
"""
Database initialization script for the task planning engine
Creates the SQLite task database and the completion history database
"""

import sqlite3
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.config import Config
from src.core.database import SQLiteDatabase, TASKS_SCHEMA, HISTORY_SCHEMA


def init_database(db_path: Path, schema: str, label: str) -> bool:
    """Create one database file with the given schema"""

    if db_path.exists():
        response = input(f"{label} database already exists at {db_path}. Overwrite? (yes/no): ")
        if response.lower() != 'yes':
            print(f"Keeping existing {label.lower()} database.")
            return True
        db_path.unlink()

    print(f"Creating {label.lower()} database at {db_path}...")
    try:
        db = SQLiteDatabase(db_path, create=True)
        db.init_schema(schema)
        print(f"✓ Tables created: {', '.join(db.get_table_names())}")
        return True
    except sqlite3.Error as e:
        print(f"✗ Database error: {e}")
        return False


if __name__ == "__main__":
    print("=" * 60)
    print("Task Planning Engine - Database Initialization")
    print("=" * 60)
    print()

    config = Config()
    success = (
        init_database(config.get_database_path(), TASKS_SCHEMA, "Task")
        and init_database(config.get_history_database_path(), HISTORY_SCHEMA, "History")
    )

    if success:
        print("\n" + "=" * 60)
        print("Database initialization complete!")
        print("=" * 60)
        sys.exit(0)
    else:
        print("\n" + "=" * 60)
        print("Database initialization failed!")
        print("=" * 60)
        sys.exit(1)
