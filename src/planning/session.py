"""
Planning session: loads pending items, scores and estimates them, allocates
them into tiers under capacity limits and exposes the mutation API used by
presentation layers.

Pipeline (load_tasks):
    task store -> urgency -> estimate -> sort -> categorize -> allocate -> totals

Tier membership has a single source of truth: each PlannedItem's category.
The session keeps one ordered plan plus a backlog; the tier lists are views
over the plan.
"""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, List, Optional, Any

from src.core.config import Config
from src.core.database import get_database, get_history_database
from src.core.errors import DataSourceUnavailable, InvalidIndex
from src.core.models import Item, HistoricalCompletion, PlannedItem, TaskCategory, WarningLevel, ensure_utc
from src.planning.categorizer import categorize, calculate_energy_level, optimal_time_slot
from src.planning.estimator import Estimate, SimilarityEstimator, fallback_estimate
from src.planning.projector import project_completion_times
from src.planning.scheduler import (
    CapacityScheduler,
    capacity_ratio,
    overload_suggestion,
    sort_for_planning,
    total_hours,
    warning_level,
)
from src.planning.stores import (
    TaskFilter,
    TaskStore,
    HistoryStore,
    DatabaseTaskStore,
    DatabaseHistoryStore,
)
from src.planning.urgency import calculate_urgency, urgency_breakdown


WORKDAY_START_HOUR = 9


class PlanningHorizon(Enum):
    """How far ahead a session plans."""
    TOMORROW = "tomorrow"
    WEEK = "week"
    QUICK = "quick"


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def build_task_filter(horizon: PlanningHorizon, now: datetime) -> TaskFilter:
    """
    Candidate filter for a planning horizon.

    TOMORROW: due tomorrow, or urgency above 15
    WEEK: due within the next seven days (overdue included), or urgency above 10
    QUICK: due today or tomorrow, or urgency above 25
    """
    now = ensure_utc(now)
    today = _start_of_day(now)
    tomorrow = today + timedelta(days=1)
    day_after = today + timedelta(days=2)

    if horizon == PlanningHorizon.TOMORROW:
        return TaskFilter(due_windows=[(tomorrow, day_after)], urgency_over=15.0, now=now)
    if horizon == PlanningHorizon.WEEK:
        earliest = datetime.min.replace(tzinfo=timezone.utc)
        return TaskFilter(
            due_windows=[(earliest, now + timedelta(days=7))], urgency_over=10.0, now=now
        )
    if horizon == PlanningHorizon.QUICK:
        return TaskFilter(due_windows=[(today, day_after)], urgency_over=25.0, now=now)
    raise ValueError(f"Unknown planning horizon: {horizon}")


class PlanningSession:
    """
    One interactive planning run over a task store.

    Not safe for concurrent mutation; the owning caller serializes calls.
    """

    def __init__(
        self,
        task_store: TaskStore,
        history_store: Optional[HistoryStore] = None,
        horizon: PlanningHorizon = PlanningHorizon.TOMORROW,
        config: Optional[Config] = None,
        estimator: Optional[SimilarityEstimator] = None,
        date: Optional[datetime] = None
    ):
        """
        Initialize planning session.

        Args:
            task_store: Source of pending items
            history_store: Source of historical completions; None plans with
                priority-based fallback estimates
            horizon: Planning horizon
            config: Configuration (capacity limits come from its planning section)
            estimator: Similarity estimator (defaults to SimilarityEstimator())
            date: Target date (defaults from horizon)
        """
        self.task_store = task_store
        self.history_store = history_store
        self.horizon = horizon
        self.config = config if config else Config()
        self.estimator = estimator if estimator else SimilarityEstimator()
        self.logger = logging.getLogger("planning.session")

        self.daily_capacity = float(self._planning_setting("daily_capacity", 8.0))
        self.focus_capacity = float(self._planning_setting("focus_capacity", 6.0))
        self.max_tasks = int(self._planning_setting("max_tasks", 8))
        self.max_focus_hours = float(self._planning_setting("max_focus_hours", 6.0))
        self.buffer_time = float(self._planning_setting("buffer_time", 0.25))  # informational
        self.history_limit = int(self._planning_setting("history_limit", 30))

        if horizon == PlanningHorizon.QUICK:
            self.max_tasks = int(self._planning_setting("quick_max_tasks", 3))
            self.max_focus_hours = float(self._planning_setting("quick_max_focus_hours", 4.0))

        if date is None:
            now = datetime.now(timezone.utc)
            date = now if horizon == PlanningHorizon.WEEK else now + timedelta(days=1)
        self.date = _start_of_day(ensure_utc(date))

        self._plan: List[PlannedItem] = []
        self._backlog: List[PlannedItem] = []
        self.total_hours = 0.0
        self.warning_level = WarningLevel.NONE

    def _planning_setting(self, key: str, default: Any) -> Any:
        return self.config.get(key, section="planning", default=default)

    @classmethod
    def open(
        cls,
        config: Optional[Config] = None,
        horizon: PlanningHorizon = PlanningHorizon.TOMORROW
    ) -> 'PlanningSession':
        """
        Create a session over the configured SQLite databases.

        The task database must exist. If the history database cannot be
        opened, the session plans with fallback estimates.
        """
        config = config if config else Config()
        logger = logging.getLogger("planning.session")

        try:
            task_db = get_database(config)
        except FileNotFoundError as e:
            raise DataSourceUnavailable("task store", str(e)) from e

        history_store = None
        try:
            history_store = DatabaseHistoryStore(get_history_database(config))
        except Exception as e:
            logger.warning(f"History database unavailable, using default estimates: {e}")

        return cls(DatabaseTaskStore(task_db), history_store, horizon=horizon, config=config)

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------

    @property
    def tasks(self) -> List[PlannedItem]:
        """Planned items in working order."""
        return list(self._plan)

    def _tier(self, category: TaskCategory) -> List[PlannedItem]:
        return [planned for planned in self._plan if planned.category == category]

    @property
    def critical_tasks(self) -> List[PlannedItem]:
        return self._tier(TaskCategory.CRITICAL)

    @property
    def important_tasks(self) -> List[PlannedItem]:
        return self._tier(TaskCategory.IMPORTANT)

    @property
    def flexible_tasks(self) -> List[PlannedItem]:
        return self._tier(TaskCategory.FLEXIBLE)

    @property
    def backlog_tasks(self) -> List[PlannedItem]:
        return list(self._backlog)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_tasks(self, now: Optional[datetime] = None) -> List[PlannedItem]:
        """
        Build a fresh plan from the task store.

        Raises:
            DataSourceUnavailable: if candidates or history cannot be read.
                The previous plan is left untouched.

        Returns:
            The planned items in working order
        """
        now = ensure_utc(now) if now else datetime.now(timezone.utc)
        task_filter = build_task_filter(self.horizon, now)

        try:
            item_ids = self.task_store.list_candidate_ids(task_filter)
        except DataSourceUnavailable:
            raise
        except Exception as e:
            raise DataSourceUnavailable("task store", str(e)) from e

        items: List[Item] = []
        for item_id in item_ids:
            try:
                items.append(self.task_store.get_item(item_id))
            except Exception as e:
                self.logger.warning(f"Skipping task {item_id}: {e}")

        if self.history_store is None:
            self.logger.warning("No history store; using default estimates")

        history_cache: Dict[str, List[HistoricalCompletion]] = {}
        analyzed = [self.analyze_item(item, now, history_cache) for item in items]

        ordered = sort_for_planning(analyzed)
        for planned in ordered:
            planned.category = categorize(planned)
            planned.energy_level = calculate_energy_level(planned)
            planned.optimal_time_slot = optimal_time_slot(planned.energy_level, planned.category)
            planned.planned_date = self.date

        result = CapacityScheduler(self.max_tasks, self.max_focus_hours).allocate(ordered)

        self._plan = result.tasks
        self._backlog = result.backlog
        self.recompute_totals()

        self.logger.info(
            f"Loaded {len(self._plan)} planned tasks ({len(self._backlog)} in backlog) "
            f"for {self.horizon.value}: {self.total_hours:.1f}h"
        )
        return self.tasks

    def analyze_item(
        self,
        item: Item,
        now: datetime,
        history_cache: Optional[Dict[str, List[HistoricalCompletion]]] = None
    ) -> PlannedItem:
        """Score and estimate a single item (category is assigned later)."""
        estimate = self._estimate(item, now, history_cache if history_cache is not None else {})

        return PlannedItem(
            item=item,
            estimated_hours=estimate.hours,
            estimation_reason=estimate.reason,
            confidence=estimate.confidence,
            urgency=calculate_urgency(item, now),
            is_due=item.has_due(),
            is_scheduled=item.has_due(),
            details={
                "urgency": urgency_breakdown(item, now),
                "estimate_source": estimate.source,
                "similar_tasks": len(estimate.matches),
            },
        )

    def _estimate(
        self,
        item: Item,
        now: datetime,
        history_cache: Dict[str, List[HistoricalCompletion]]
    ) -> Estimate:
        if self.history_store is None:
            return fallback_estimate(item)

        if item.project not in history_cache:
            try:
                history_cache[item.project] = self.history_store.query_completions(
                    item.project, self.history_limit
                )
            except DataSourceUnavailable:
                raise
            except Exception as e:
                raise DataSourceUnavailable("history store", str(e)) from e

        return self.estimator.estimate(item, history_cache[item.project], now)

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def recompute_totals(self) -> None:
        """Refresh total hours and the capacity warning from the plan."""
        self.total_hours = total_hours(self._plan)
        self.warning_level = warning_level(self.total_hours, self.focus_capacity)

    # ------------------------------------------------------------------
    # Mutation API
    # ------------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if not isinstance(index, int) or not 0 <= index < len(self._plan):
            raise InvalidIndex(index, len(self._plan))

    def _regroup(self) -> None:
        """Rebuild the plan as critical, then important, then flexible."""
        self._plan = self.critical_tasks + self.important_tasks + self.flexible_tasks

    def move_task(self, from_index: int, to_index: int) -> None:
        """
        Reposition an item within the plan.

        Tier membership is not re-derived, so a move across a tier boundary
        keeps the user's order rather than the grouped one.
        """
        self._check_index(from_index)
        self._check_index(to_index)
        if from_index == to_index:
            return

        planned = self._plan.pop(from_index)
        self._plan.insert(to_index, planned)
        self.recompute_totals()

    def remove_task(self, index: int) -> PlannedItem:
        """Drop an item from the session entirely and return it; the plan is rebuilt in tier order."""
        self._check_index(index)
        planned = self._plan.pop(index)
        self._regroup()
        self.recompute_totals()
        self.logger.info(f"Removed task {planned.id} from plan")
        return planned

    def promote_to_critical(self, index: int) -> bool:
        """
        Relabel an item as Critical and re-run allocation over the plan.

        Items the scheduler now rejects join the end of the existing backlog.

        Returns:
            False if the item was already Critical, True otherwise
        """
        self._check_index(index)
        planned = self._plan[index]

        if planned.category == TaskCategory.CRITICAL:
            self.logger.info(f"Task {planned.id} is already critical")
            return False

        working = self.critical_tasks + self.important_tasks + self.flexible_tasks
        planned.category = TaskCategory.CRITICAL
        planned.optimal_time_slot = optimal_time_slot(planned.energy_level, planned.category)

        result = CapacityScheduler(self.max_tasks, self.max_focus_hours).allocate(working)
        self._plan = result.tasks
        self._backlog.extend(result.backlog)
        self.recompute_totals()

        if result.backlog:
            self.logger.info(f"Promotion moved {len(result.backlog)} tasks to backlog")
        return True

    def defer_task(self, index: int) -> PlannedItem:
        """
        Move an item from the plan to the end of the backlog.

        The plan is rebuilt in tier order. Freed capacity is not backfilled
        from the backlog.
        """
        self._check_index(index)
        planned = self._plan.pop(index)
        self._backlog.append(planned)
        self._regroup()
        self.recompute_totals()
        return planned

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def overload_suggestion(self) -> str:
        return overload_suggestion(len(self.flexible_tasks), len(self.important_tasks))

    def capacity_status(self) -> str:
        """Human-readable capacity status with guidance."""
        used = self.total_hours
        available = self.focus_capacity
        ratio = capacity_ratio(used, available)
        percentage = int(ratio * 100) if ratio != float("inf") else 100
        count = len(self._plan)

        if self.warning_level == WarningLevel.OVERLOAD:
            return (
                f"Overloaded by {used - available:.1f}h: {used:.1f}h/{available:.1f}h "
                f"({percentage}% of focus capacity, {count} tasks) - {self.overload_suggestion()}"
            )
        if self.warning_level == WarningLevel.CAUTION:
            return (
                f"Near capacity: {used:.1f}h/{available:.1f}h ({percentage}%, {count} tasks) "
                f"- consider deferring flexible tasks"
            )
        return f"{used:.1f}h/{available:.1f}h ({percentage}% focus capacity, {count} tasks)"

    def projected_completion_times(self, start_time: Optional[datetime] = None) -> List[datetime]:
        """
        Finish time for each planned item when worked in order.

        Args:
            start_time: When work begins (defaults to 9:00 on the target date)
        """
        if start_time is None:
            start_time = self.date.replace(hour=WORKDAY_START_HOUR)
        return project_completion_times(self._plan, start_time)

    def workload_summary(self) -> Dict[str, Any]:
        """Planned hours broken down by category and energy level."""
        by_category: Dict[str, float] = {str(category): 0.0 for category in TaskCategory}
        by_energy: Dict[str, float] = {}

        for planned in self._plan:
            by_category[str(planned.category)] += planned.estimated_hours
            key = planned.energy_level.value
            by_energy[key] = by_energy.get(key, 0.0) + planned.estimated_hours

        return {
            "total_hours": self.total_hours,
            "focus_capacity": self.focus_capacity,
            "task_count": len(self._plan),
            "backlog_count": len(self._backlog),
            "warning_level": str(self.warning_level),
            "by_category": by_category,
            "by_energy": by_energy,
        }

    def backlog_summary(self) -> str:
        if not self._backlog:
            return "No tasks in backlog"
        hours = total_hours(self._backlog)
        return f"Backlog: {len(self._backlog)} tasks, {hours:.1f}h total"
