"""
Task store and history store collaborators.

The engine only reads through the TaskStore and HistoryStore interfaces.
Adapters are provided for in-memory collections and for the SQLite
databases created by scripts/init_db.py.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from src.core.database import SQLiteDatabase
from src.core.errors import DataSourceUnavailable, ItemUnavailable
from src.core.models import Item, HistoricalCompletion, ensure_utc
from src.planning.urgency import calculate_urgency


logger = logging.getLogger(__name__)


@dataclass
class TaskFilter:
    """
    Which items a task store should offer for planning.

    An item matches when its status is allowed and, if any due windows or
    an urgency threshold are set, it is due inside a window or its urgency
    exceeds the threshold.
    """
    statuses: Tuple[str, ...] = ("pending", "waiting")
    due_windows: List[Tuple[datetime, datetime]] = field(default_factory=list)  # [start, end)
    urgency_over: Optional[float] = None
    now: Optional[datetime] = None  # reference time for urgency; defaults to utcnow

    def matches(self, item: Item, now: Optional[datetime] = None) -> bool:
        if item.status not in self.statuses:
            return False
        if not self.due_windows and self.urgency_over is None:
            return True

        if item.due is not None:
            due = ensure_utc(item.due)
            for start, end in self.due_windows:
                if ensure_utc(start) <= due < ensure_utc(end):
                    return True

        if self.urgency_over is not None:
            return calculate_urgency(item, now or self.now) > self.urgency_over
        return False


class TaskStore(ABC):
    """Read-only source of pending work items."""

    @abstractmethod
    def list_candidate_ids(self, task_filter: TaskFilter) -> List[str]:
        """IDs of items matching the filter"""
        pass

    @abstractmethod
    def get_item(self, item_id: str) -> Item:
        """Full details for one item; raises ItemUnavailable if missing"""
        pass


class HistoryStore(ABC):
    """Read-only source of historical completions."""

    @abstractmethod
    def query_completions(self, project: str, limit: int) -> List[HistoricalCompletion]:
        """
        Usable completions for a project (or for any project when empty),
        newest first, at most `limit` entries.
        """
        pass


def _project_matches(completion_project: str, project: str) -> bool:
    return not project or completion_project in (project, "")


class InMemoryTaskStore(TaskStore):
    """Task store over a fixed collection of items."""

    def __init__(self, items: Iterable[Item] = ()):
        self._items: Dict[str, Item] = {}
        for item in items:
            self._items[item.id] = item

    def add(self, item: Item) -> None:
        self._items[item.id] = item

    def list_candidate_ids(self, task_filter: TaskFilter) -> List[str]:
        return [
            item_id for item_id, item in self._items.items()
            if task_filter.matches(item)
        ]

    def get_item(self, item_id: str) -> Item:
        try:
            return self._items[item_id]
        except KeyError:
            raise ItemUnavailable(item_id) from None


class InMemoryHistoryStore(HistoryStore):
    """History store over a fixed collection of completions."""

    def __init__(self, completions: Iterable[HistoricalCompletion] = ()):
        self._completions: List[HistoricalCompletion] = list(completions)

    def add(self, completion: HistoricalCompletion) -> None:
        self._completions.append(completion)

    def query_completions(self, project: str, limit: int) -> List[HistoricalCompletion]:
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        matching = [
            completion for completion in self._completions
            if completion.is_usable() and _project_matches(completion.project, project)
        ]
        matching.sort(key=lambda c: ensure_utc(c.completed_at) or oldest, reverse=True)
        return matching[:limit]


class DatabaseTaskStore(TaskStore):
    """Task store backed by the SQLite `tasks` table."""

    def __init__(self, db: SQLiteDatabase):
        self.db = db

    def list_candidate_ids(self, task_filter: TaskFilter) -> List[str]:
        placeholders = ", ".join("?" for _ in task_filter.statuses)
        query = f"""
            SELECT * FROM tasks
            WHERE status IN ({placeholders})
            ORDER BY uuid ASC
        """
        try:
            rows = self.db.execute(query, tuple(task_filter.statuses))
        except sqlite3.Error as e:
            raise DataSourceUnavailable("task store", str(e)) from e

        items = [Item.from_dict(row) for row in rows]
        return [item.id for item in items if task_filter.matches(item)]

    def get_item(self, item_id: str) -> Item:
        try:
            row = self.db.execute_one("SELECT * FROM tasks WHERE uuid = ?", (item_id,))
        except sqlite3.Error as e:
            raise ItemUnavailable(item_id, str(e)) from e

        if row is None:
            raise ItemUnavailable(item_id)
        return Item.from_dict(row)

    def add_item(self, item: Item) -> None:
        """Insert or replace an item (used to seed local databases)"""
        self.db.execute_write(
            """
            INSERT OR REPLACE INTO tasks (uuid, description, project, priority, due, status)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                item.id,
                item.description,
                item.project,
                item.priority,
                item.due.isoformat() if item.due else None,
                item.status,
            ),
        )


class DatabaseHistoryStore(HistoryStore):
    """History store backed by the SQLite `time_entries` table."""

    def __init__(self, db: SQLiteDatabase):
        self.db = db

    def query_completions(self, project: str, limit: int) -> List[HistoricalCompletion]:
        query = """
            SELECT uuid, description, project, priority, estimated_hours,
                   actual_hours, completed_at
            FROM time_entries
            WHERE actual_hours > 0
              AND (project = ? OR project = '' OR ? = '')
            ORDER BY completed_at DESC
            LIMIT ?
        """
        try:
            rows = self.db.execute(query, (project, project, limit))
        except sqlite3.Error as e:
            raise DataSourceUnavailable("history store", str(e)) from e

        return [HistoricalCompletion.from_dict(row) for row in rows]

    def record_completion(
        self,
        item: Item,
        estimated_hours: float,
        actual_hours: float,
        completed_at: Optional[datetime] = None
    ) -> None:
        """
        Record a completed item with its estimated and actual duration.

        Replaces any earlier record for the same item.
        """
        completed_at = ensure_utc(completed_at) or datetime.now(timezone.utc)
        now = datetime.now(timezone.utc)
        try:
            self.db.execute_write(
                """
                INSERT OR REPLACE INTO time_entries
                (uuid, description, project, tags, priority, estimated_hours,
                 actual_hours, completed_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.id,
                    item.description,
                    item.project,
                    "",
                    item.priority,
                    estimated_hours,
                    actual_hours,
                    completed_at.isoformat(),
                    now.isoformat(),
                ),
            )
        except sqlite3.Error as e:
            raise DataSourceUnavailable("history store", str(e)) from e
        logger.info("Recorded completion for %s: %.2fh actual", item.id, actual_hours)
