"""Tests for history rows and relative time labels."""

from datetime import datetime, timedelta, timezone

import pytest

from nutriscan.domain.history.models import HistoryItem, format_relative_time
from nutriscan.domain.scan.result_models import ScoreTier

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


class TestHistoryItem:
    def test_from_wire(self) -> None:
        item = HistoryItem.model_validate(
            {
                "id": "scan_1",
                "scanType": "food",
                "foodName": "Apple",
                "overallScore": 91,
                "confidenceLevel": "high",
                "createdAt": "2024-05-01T12:00:00",
            }
        )

        assert item.is_food_photo is True
        assert item.title == "Food Photo"
        assert item.tier is ScoreTier.EXCELLENT
        assert item.created_at.tzinfo is timezone.utc

    def test_label_title(self) -> None:
        item = HistoryItem(id="s2", overallScore=35, createdAt=NOW)

        assert item.title == "Nutrition Label"
        assert item.tier is ScoreTier.POOR


class TestFormatRelativeTime:
    """Tests for format_relative_time."""

    @pytest.mark.parametrize(
        "delta,label",
        [
            (timedelta(seconds=30), "0m ago"),
            (timedelta(minutes=59), "59m ago"),
            (timedelta(hours=1), "1h ago"),
            (timedelta(hours=23, minutes=59), "23h ago"),
            (timedelta(days=1, hours=3), "Yesterday"),
            (timedelta(days=6), "6d ago"),
        ],
    )
    def test_recent(self, delta: timedelta, label: str) -> None:
        assert format_relative_time(NOW - delta, now=NOW) == label

    def test_older_than_a_week_shows_date(self) -> None:
        assert format_relative_time(NOW - timedelta(days=8), now=NOW) == "2024-05-02"

    def test_naive_timestamp_taken_as_utc(self) -> None:
        created = datetime(2024, 5, 10, 11, 30)
        assert format_relative_time(created, now=NOW) == "30m ago"
