"""
Urgency scoring for the planning engine.

Scores an item from its priority, due date proximity and project
assignment. The score is unbounded; higher means more pressing.

Score formula:
    urgency = priority + due + project
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from src.core.models import Item, ensure_utc


PRIORITY_WEIGHTS = {
    "H": 6.0,
    "M": 1.8,
    "L": 0.0,
}

# (max days until due, contribution), checked in order
DUE_WEIGHTS = (
    (1.0, 12.0),   # Due today/tomorrow, or overdue
    (7.0, 6.0),    # Due this week
    (30.0, 2.0),   # Due this month
)

PROJECT_WEIGHT = 1.0

SECONDS_PER_DAY = 86400.0


def days_until(due: datetime, now: datetime) -> float:
    """Real-valued days from now until due (negative when overdue)."""
    return (ensure_utc(due) - ensure_utc(now)).total_seconds() / SECONDS_PER_DAY


def priority_contribution(item: Item) -> float:
    return PRIORITY_WEIGHTS.get(item.priority, 0.0)


def due_contribution(item: Item, now: datetime) -> float:
    if item.due is None:
        return 0.0

    days = days_until(item.due, now)
    for max_days, weight in DUE_WEIGHTS:
        if days <= max_days:
            return weight
    return 0.0


def project_contribution(item: Item) -> float:
    return PROJECT_WEIGHT if item.project else 0.0


def urgency_breakdown(item: Item, now: Optional[datetime] = None) -> Dict[str, float]:
    """
    Break an item's urgency into its components.

    Args:
        item: Item to score
        now: Current datetime (defaults to utcnow)

    Returns:
        Dict with 'priority', 'due' and 'project' contributions
    """
    if now is None:
        now = datetime.now(timezone.utc)

    return {
        "priority": priority_contribution(item),
        "due": due_contribution(item, now),
        "project": project_contribution(item),
    }


def calculate_urgency(item: Item, now: Optional[datetime] = None) -> float:
    """
    Calculate urgency score for an item.

    Scoring:
        - Priority: H +6.0, M +1.8, L or none +0.0
        - Due within 1 day (or overdue): +12.0
        - Due within 7 days: +6.0
        - Due within 30 days: +2.0
        - Has project: +1.0

    Args:
        item: Item to score
        now: Current datetime (defaults to utcnow)

    Returns:
        Urgency score (>= 0.0)
    """
    breakdown = urgency_breakdown(item, now)
    return breakdown["priority"] + breakdown["due"] + breakdown["project"]
