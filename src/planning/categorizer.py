"""
Tier classification for planned items.

Critical: due, or urgency >= 20.0
Important: 10.0 <= urgency < 20.0
Flexible: everything else

Also suggests the energy an item needs and the time of day it suits.
"""

from src.core.models import PlannedItem, TaskCategory, EnergyLevel


CRITICAL_URGENCY = 20.0
IMPORTANT_URGENCY = 10.0

HIGH_ENERGY_KEYWORDS = (
    "design", "code", "develop", "write", "create",
    "analyze", "research", "plan", "architect", "review",
)

LOW_ENERGY_KEYWORDS = (
    "email", "call", "meeting", "standup", "sync",
    "update", "check", "status", "admin", "file",
)


def categorize(planned: PlannedItem) -> TaskCategory:
    """
    Assign a planning tier from due-ness and urgency.

    Thresholds are inclusive at the lower bound, so 20.0 is Critical
    and 10.0 is Important.
    """
    if planned.is_due or planned.urgency >= CRITICAL_URGENCY:
        return TaskCategory.CRITICAL
    if planned.urgency >= IMPORTANT_URGENCY:
        return TaskCategory.IMPORTANT
    return TaskCategory.FLEXIBLE


def calculate_energy_level(planned: PlannedItem) -> EnergyLevel:
    """
    Estimate the cognitive energy an item needs.

    Keywords win over duration, which wins over priority.
    """
    description = planned.description.lower()

    if any(keyword in description for keyword in HIGH_ENERGY_KEYWORDS):
        return EnergyLevel.HIGH
    if any(keyword in description for keyword in LOW_ENERGY_KEYWORDS):
        return EnergyLevel.LOW

    # Long items need focus; short ones rarely do
    if planned.estimated_hours >= 2.0:
        return EnergyLevel.HIGH
    if 0 < planned.estimated_hours <= 0.5:
        return EnergyLevel.LOW

    if planned.priority == "H":
        return EnergyLevel.HIGH

    return EnergyLevel.MEDIUM


def optimal_time_slot(energy: EnergyLevel, category: TaskCategory) -> str:
    """Suggest the time of day an item fits best."""
    if energy == EnergyLevel.HIGH:
        return "morning"
    if energy == EnergyLevel.LOW:
        return "anytime"
    if category == TaskCategory.CRITICAL:
        return "morning"
    return "afternoon"
