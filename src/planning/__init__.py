"""
Planning module for the task planning engine.

Provides urgency scoring, similarity-based time estimation, tier
categorization, capacity-bounded scheduling, completion projection and
the PlanningSession that ties them together.
"""

from .urgency import calculate_urgency, urgency_breakdown
from .estimator import (
    SimilarityEstimator,
    SimilarityScore,
    Estimate,
    score_completion,
    calculate_confidence,
    fallback_estimate,
)
from .categorizer import categorize, calculate_energy_level, optimal_time_slot
from .scheduler import (
    CapacityScheduler,
    ScheduleResult,
    sort_for_planning,
    warning_level,
    overload_suggestion,
)
from .projector import project_completion_times, projected_timeline
from .stores import (
    TaskFilter,
    TaskStore,
    HistoryStore,
    InMemoryTaskStore,
    InMemoryHistoryStore,
    DatabaseTaskStore,
    DatabaseHistoryStore,
)
from .session import PlanningSession, PlanningHorizon, build_task_filter

__all__ = [
    # Urgency
    'calculate_urgency',
    'urgency_breakdown',
    # Estimator
    'SimilarityEstimator',
    'SimilarityScore',
    'Estimate',
    'score_completion',
    'calculate_confidence',
    'fallback_estimate',
    # Categorizer
    'categorize',
    'calculate_energy_level',
    'optimal_time_slot',
    # Scheduler
    'CapacityScheduler',
    'ScheduleResult',
    'sort_for_planning',
    'warning_level',
    'overload_suggestion',
    # Projector
    'project_completion_times',
    'projected_timeline',
    # Stores
    'TaskFilter',
    'TaskStore',
    'HistoryStore',
    'InMemoryTaskStore',
    'InMemoryHistoryStore',
    'DatabaseTaskStore',
    'DatabaseHistoryStore',
    # Session
    'PlanningSession',
    'PlanningHorizon',
    'build_task_filter',
]
