"""
Error types for the planning engine.

All failures are raised to the caller as one of these types; nothing in the
engine is fatal to the process.
"""

from typing import Any


class PlanningError(Exception):
    """Base class for planning engine errors."""
    pass


class DataSourceUnavailable(PlanningError):
    """Raised when the task store or history store cannot be queried."""
    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"{source} unavailable: {message}")


class ItemUnavailable(PlanningError):
    """Raised by a task store when a single item's details cannot be fetched."""
    def __init__(self, item_id: Any, reason: str = "not found"):
        self.item_id = item_id
        self.reason = reason
        super().__init__(f"Task {item_id}: {reason}")


class InvalidIndex(PlanningError):
    """Raised when a plan position is outside the current task list."""
    def __init__(self, index: Any, length: int):
        self.index = index
        self.length = length
        super().__init__(f"Invalid task index {index} (plan has {length} tasks)")
