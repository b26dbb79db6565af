"""
Unit tests for the models module.
Tests record parsing and planned item helpers.
"""

import pytest
from datetime import datetime, timezone

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from src.core.models import (
    Item,
    HistoricalCompletion,
    PlannedItem,
    TaskCategory,
    WarningLevel,
    EnergyLevel,
    parse_timestamp,
    normalize_priority,
)


class TestParseTimestamp:
    """Tests for timestamp parsing."""

    def test_parses_iso_string(self):
        result = parse_timestamp("2025-03-10T17:00:00+00:00")
        assert result == datetime(2025, 3, 10, 17, 0, tzinfo=timezone.utc)

    def test_parses_compact_export_format(self):
        """Compact task export timestamps are accepted."""
        result = parse_timestamp("20250310T170000Z")
        assert result == datetime(2025, 3, 10, 17, 0, tzinfo=timezone.utc)

    def test_naive_values_become_utc(self):
        result = parse_timestamp(datetime(2025, 3, 10, 9, 0))
        assert result.tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", 42])
    def test_invalid_values_return_none(self, value):
        assert parse_timestamp(value) is None


class TestNormalizePriority:
    """Tests for priority normalization."""

    @pytest.mark.parametrize("raw,expected", [
        ("H", "H"), ("m", "M"), (" l ", "L"), (None, ""), ("", ""), ("urgent", ""),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_priority(raw) == expected


class TestItem:
    """Tests for Item records."""

    def test_from_dict_reads_uuid(self):
        item = Item.from_dict({
            "uuid": "abc-123",
            "description": " Write report ",
            "project": "work",
            "priority": "h",
            "due": "2025-03-11T17:00:00Z",
            "status": "pending",
        })

        assert item.id == "abc-123"
        assert item.description == "Write report"
        assert item.priority == "H"
        assert item.has_due()
        assert item.has_project()

    def test_from_dict_defaults(self):
        item = Item.from_dict({"id": "x"})

        assert item.project == ""
        assert item.priority == ""
        assert item.due is None
        assert item.status == "pending"
        assert not item.has_due()
        assert not item.has_project()

    def test_naive_due_becomes_utc(self):
        item = Item(id="a", due=datetime(2025, 3, 11, 17, 0))

        assert item.due == datetime(2025, 3, 11, 17, 0, tzinfo=timezone.utc)


class TestHistoricalCompletion:
    """Tests for HistoricalCompletion records."""

    def test_from_dict(self):
        completion = HistoricalCompletion.from_dict({
            "uuid": "h-1",
            "description": "Write report",
            "project": "work",
            "priority": "M",
            "estimated_hours": 2,
            "actual_hours": 2.5,
            "completed_at": "2025-03-01T12:00:00Z",
        })

        assert completion.actual_hours == 2.5
        assert completion.estimated_hours == 2.0
        assert completion.completed_at == datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
        assert completion.is_usable()

    def test_zero_actual_hours_not_usable(self):
        assert not HistoricalCompletion(description="x", actual_hours=0.0).is_usable()

    def test_naive_completed_at_becomes_utc(self):
        completion = HistoricalCompletion(id="h", actual_hours=1.0, completed_at=datetime(2025, 3, 1, 12, 0))

        assert completion.completed_at.tzinfo == timezone.utc
        assert completion.completed_at > datetime(2025, 3, 1, 11, 0, tzinfo=timezone.utc)


class TestEnums:
    """Tests for enum helpers."""

    def test_category_order(self):
        assert TaskCategory.CRITICAL < TaskCategory.IMPORTANT < TaskCategory.FLEXIBLE

    def test_string_forms(self):
        assert str(TaskCategory.CRITICAL) == "Critical"
        assert str(WarningLevel.OVERLOAD) == "Overload"


class TestPlannedItem:
    """Tests for PlannedItem."""

    def test_delegates_item_fields(self):
        item = Item(id="t-1", description="Review PR", project="work", priority="M")
        planned = PlannedItem(item=item, estimated_hours=1.5)

        assert planned.id == "t-1"
        assert planned.description == "Review PR"
        assert planned.project == "work"
        assert planned.priority == "M"

    def test_to_dict(self):
        item = Item(id="t-1", description="Review PR")
        planned = PlannedItem(
            item=item,
            estimated_hours=1.5,
            category=TaskCategory.IMPORTANT,
            energy_level=EnergyLevel.HIGH,
        )

        data = planned.to_dict()

        assert data["id"] == "t-1"
        assert data["due"] is None
        assert data["category"] == "Important"
        assert data["energy_level"] == "high"
        assert data["estimated_hours"] == 1.5
