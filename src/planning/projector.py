"""
Completion timeline projection.

Walks an ordered plan from a start time, advancing a running clock by each
item's estimated hours. Weekends and working hours are not modelled.
"""

from datetime import datetime, timedelta
from typing import List, Sequence, Tuple

from src.core.models import PlannedItem


def project_completion_times(
    items: Sequence[PlannedItem],
    start_time: datetime
) -> List[datetime]:
    """
    Projected finish time for each item when worked in order.

    Args:
        items: Planned items in working order
        start_time: When work on the first item begins

    Returns:
        One timestamp per item, in the same order
    """
    completion_times = []
    current = start_time

    for planned in items:
        current = current + timedelta(hours=planned.estimated_hours)
        completion_times.append(current)

    return completion_times


def projected_timeline(
    items: Sequence[PlannedItem],
    start_time: datetime
) -> List[Tuple[PlannedItem, datetime, datetime]]:
    """(item, start, finish) for each item, for timeline displays."""
    timeline = []
    start = start_time
    for planned, finish in zip(items, project_completion_times(items, start_time)):
        timeline.append((planned, start, finish))
        start = finish
    return timeline
