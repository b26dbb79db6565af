"""
Data models for the planning engine
Defines work items, historical completions and planned items
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Optional, Dict, Any

from dateutil import parser as date_parser


# Valid item priorities; "" means no priority set
PRIORITIES = ("H", "M", "L", "")


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp from a task record or database row.

    Accepts datetime objects, ISO-8601 strings and the compact
    ``20250310T170000Z`` form used by task exports.

    Returns:
        UTC datetime, or None if the value is empty or unparseable
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return ensure_utc(date_parser.isoparse(text))
    except ValueError:
        pass
    try:
        return ensure_utc(date_parser.parse(text))
    except (ValueError, OverflowError):
        return None


def normalize_priority(value: Any) -> str:
    """Map a raw priority to one of H/M/L, or "" when unset or unknown."""
    if not value:
        return ""
    priority = str(value).strip().upper()
    return priority if priority in PRIORITIES else ""


@dataclass
class Item:
    """Pending work item as provided by the task store (read-only)."""
    id: str = ""
    description: str = ""
    project: str = ""
    priority: str = ""  # 'H', 'M', 'L' or '' for none
    due: Optional[datetime] = None
    status: str = "pending"  # 'pending', 'waiting', 'completed', 'deleted'

    def __post_init__(self):
        self.due = ensure_utc(self.due)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Item':
        """Create Item from a task record or database row dictionary"""
        return cls(
            id=str(data.get('uuid') or data.get('id') or ''),
            description=(data.get('description') or '').strip(),
            project=(data.get('project') or '').strip(),
            priority=normalize_priority(data.get('priority')),
            due=parse_timestamp(data.get('due')),
            status=(data.get('status') or 'pending').strip(),
        )

    def has_due(self) -> bool:
        """Check if the item carries a due timestamp"""
        return self.due is not None

    def has_project(self) -> bool:
        """Check if the item is assigned to a project"""
        return bool(self.project)


@dataclass
class HistoricalCompletion:
    """Completed item with its estimated and actual duration"""
    id: str = ""
    description: str = ""
    project: str = ""
    priority: str = ""
    estimated_hours: float = 0.0
    actual_hours: float = 0.0
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        self.completed_at = ensure_utc(self.completed_at)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoricalCompletion':
        """Create HistoricalCompletion from database row dictionary"""
        return cls(
            id=str(data.get('uuid') or data.get('id') or ''),
            description=data.get('description') or '',
            project=data.get('project') or '',
            priority=normalize_priority(data.get('priority')),
            estimated_hours=float(data.get('estimated_hours') or 0.0),
            actual_hours=float(data.get('actual_hours') or 0.0),
            completed_at=parse_timestamp(data.get('completed_at')),
        )

    def is_usable(self) -> bool:
        """Only completions with recorded actual time can inform estimates"""
        return self.actual_hours > 0


class TaskCategory(IntEnum):
    """Planning tier, ordered from most to least pressing"""
    CRITICAL = 0   # Must do (due or very urgent)
    IMPORTANT = 1  # Should do
    FLEXIBLE = 2   # Could do

    def __str__(self) -> str:
        return self.name.capitalize()


class WarningLevel(IntEnum):
    """Capacity warning derived from planned hours vs focus capacity"""
    NONE = 0
    CAUTION = 1   # 90%+ of focus capacity
    OVERLOAD = 2  # 100%+ of focus capacity

    def __str__(self) -> str:
        return self.name.capitalize()


class EnergyLevel(Enum):
    """Cognitive energy an item needs"""
    HIGH = "high"      # Focused, uninterrupted time
    MEDIUM = "medium"  # Moderate cognitive load
    LOW = "low"        # Can be done with minimal focus


@dataclass
class PlannedItem:
    """Item with the planning metadata derived for one session."""
    item: Item
    estimated_hours: float = 0.0
    estimation_reason: str = ""
    confidence: float = 0.0
    urgency: float = 0.0
    category: TaskCategory = TaskCategory.FLEXIBLE
    is_due: bool = False
    is_scheduled: bool = False
    energy_level: EnergyLevel = EnergyLevel.MEDIUM
    optimal_time_slot: str = "afternoon"
    planned_date: Optional[datetime] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def description(self) -> str:
        return self.item.description

    @property
    def project(self) -> str:
        return self.item.project

    @property
    def priority(self) -> str:
        return self.item.priority

    def to_dict(self) -> Dict[str, Any]:
        """Convert planned item to dictionary for presentation layers."""
        return {
            "id": self.id,
            "description": self.description,
            "project": self.project,
            "priority": self.priority,
            "due": self.item.due.isoformat() if self.item.due else None,
            "estimated_hours": self.estimated_hours,
            "estimation_reason": self.estimation_reason,
            "confidence": self.confidence,
            "urgency": self.urgency,
            "category": str(self.category),
            "is_due": self.is_due,
            "is_scheduled": self.is_scheduled,
            "energy_level": self.energy_level.value,
            "optimal_time_slot": self.optimal_time_slot,
        }
