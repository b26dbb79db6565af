"""
Capacity-bounded allocation of planned items into tiers.

Items are admitted greedily in input order over three passes (Critical,
Important, Flexible) that share running totals. Anything that does not
fit goes to the backlog. No optimality is attempted.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from src.core.models import PlannedItem, TaskCategory, WarningLevel


logger = logging.getLogger(__name__)

# Critical items admitted regardless of hours
CRITICAL_FLOOR = 3

CAUTION_RATIO = 0.9
OVERLOAD_RATIO = 1.0

SUGGEST_MOVE_FLEXIBLE = "move flexible tasks to backlog"
SUGGEST_DEFER_IMPORTANT = "defer some important tasks"
SUGGEST_BREAK_DOWN = "break down large tasks or defer to tomorrow"


def planning_sort_key(planned: PlannedItem):
    """Due items first, then higher urgency, then description."""
    return (not planned.is_due, -planned.urgency, planned.description)


def sort_for_planning(items: Iterable[PlannedItem]) -> List[PlannedItem]:
    """Return items in deterministic planning order."""
    return sorted(items, key=planning_sort_key)


def total_hours(items: Iterable[PlannedItem]) -> float:
    """Sum of estimated hours."""
    return sum(planned.estimated_hours for planned in items)


def capacity_ratio(hours: float, focus_capacity: float) -> float:
    """Planned hours as a fraction of focus capacity."""
    if focus_capacity <= 0:
        return float("inf") if hours > 0 else 0.0
    return hours / focus_capacity


def warning_level(hours: float, focus_capacity: float) -> WarningLevel:
    """
    Derive the capacity warning for a plan.

    Returns:
        OVERLOAD at 100%+ of focus capacity, CAUTION at 90%+, else NONE
    """
    ratio = capacity_ratio(hours, focus_capacity)
    if ratio >= OVERLOAD_RATIO:
        return WarningLevel.OVERLOAD
    if ratio >= CAUTION_RATIO:
        return WarningLevel.CAUTION
    return WarningLevel.NONE


def overload_suggestion(flexible_count: int, important_count: int) -> str:
    """Guidance for an overloaded plan."""
    if flexible_count > 0:
        return SUGGEST_MOVE_FLEXIBLE
    if important_count > 2:
        return SUGGEST_DEFER_IMPORTANT
    return SUGGEST_BREAK_DOWN


@dataclass
class ScheduleResult:
    """Outcome of one allocation run."""
    critical: List[PlannedItem] = field(default_factory=list)
    important: List[PlannedItem] = field(default_factory=list)
    flexible: List[PlannedItem] = field(default_factory=list)
    backlog: List[PlannedItem] = field(default_factory=list)

    @property
    def tasks(self) -> List[PlannedItem]:
        """Admitted items: critical, then important, then flexible."""
        return self.critical + self.important + self.flexible

    @property
    def total_hours(self) -> float:
        return total_hours(self.tasks)


class CapacityScheduler:
    """
    Greedy tier allocator.

    Critical items are always admitted until CRITICAL_FLOOR of them are in
    the plan; after that they need hour budget like everything else.
    Important and flexible items need both count and hour budget.
    """

    def __init__(self, max_tasks: int, max_focus_hours: float):
        """
        Initialize scheduler.

        Args:
            max_tasks: Maximum number of items in the plan
            max_focus_hours: Maximum planned hours
        """
        self.max_tasks = max_tasks
        self.max_focus_hours = max_focus_hours

    def allocate(self, items: List[PlannedItem]) -> ScheduleResult:
        """
        Allocate categorized items into tiers and backlog.

        Args:
            items: Categorized items, already in planning order

        Returns:
            ScheduleResult preserving input order within each list
        """
        result = ScheduleResult()
        admitted_hours = 0.0
        admitted_count = 0

        for planned in items:
            if planned.category != TaskCategory.CRITICAL:
                continue
            fits = admitted_hours + planned.estimated_hours <= self.max_focus_hours
            if len(result.critical) < CRITICAL_FLOOR or fits:
                result.critical.append(planned)
                admitted_hours += planned.estimated_hours
                admitted_count += 1
            else:
                result.backlog.append(planned)

        for category, admitted in (
            (TaskCategory.IMPORTANT, result.important),
            (TaskCategory.FLEXIBLE, result.flexible),
        ):
            for planned in items:
                if planned.category != category:
                    continue
                fits = admitted_hours + planned.estimated_hours <= self.max_focus_hours
                if admitted_count < self.max_tasks and fits:
                    admitted.append(planned)
                    admitted_hours += planned.estimated_hours
                    admitted_count += 1
                else:
                    result.backlog.append(planned)

        logger.debug(
            "Allocated %d critical, %d important, %d flexible, %d backlog (%.2fh)",
            len(result.critical), len(result.important), len(result.flexible),
            len(result.backlog), admitted_hours
        )
        return result
