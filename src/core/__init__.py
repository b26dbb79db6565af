"""
Core module for the planning engine
Contains database, configuration, error and model definitions
"""

from .config import Config
from .database import SQLiteDatabase, get_database, get_history_database
from .errors import PlanningError, DataSourceUnavailable, ItemUnavailable, InvalidIndex
from .models import (
    Item,
    HistoricalCompletion,
    PlannedItem,
    TaskCategory,
    WarningLevel,
    EnergyLevel,
)

__all__ = [
    'Config', 'SQLiteDatabase', 'get_database', 'get_history_database',
    'PlanningError', 'DataSourceUnavailable', 'ItemUnavailable', 'InvalidIndex',
    'Item', 'HistoricalCompletion', 'PlannedItem', 'TaskCategory', 'WarningLevel', 'EnergyLevel',
]
