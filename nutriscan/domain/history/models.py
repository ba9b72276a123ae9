"""Scan history domain models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nutriscan.domain.scan.result_models import ScoreTier


class HistoryItem(BaseModel):
    """
    One row of GET /history.

    Example:
        >>> item = HistoryItem.model_validate({
        ...     "id": "scan_1", "scanType": "food", "foodName": "Apple",
        ...     "overallScore": 91, "confidenceLevel": "high",
        ...     "createdAt": "2024-05-01T12:00:00Z",
        ... })
        >>> item.tier
        <ScoreTier.EXCELLENT: 'excellent'>
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    scan_type: str = Field("label", alias="scanType")
    food_name: Optional[str] = Field(None, alias="foodName")
    overall_score: float = Field(..., ge=0, le=100, alias="overallScore")
    confidence_level: Optional[str] = Field(None, alias="confidenceLevel")
    created_at: datetime = Field(..., alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are taken as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def tier(self) -> ScoreTier:
        return ScoreTier.for_score(self.overall_score)

    @property
    def is_food_photo(self) -> bool:
        return self.scan_type == "food"

    @property
    def title(self) -> str:
        return "Food Photo" if self.is_food_photo else "Nutrition Label"


def format_relative_time(created_at: datetime, now: Optional[datetime] = None) -> str:
    """
    Human label for how long ago a scan was made.

    Under an hour "<m>m ago", under a day "<h>h ago", one day
    "Yesterday", under a week "<d>d ago", otherwise the ISO date.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)

    diff_seconds = (now - created_at).total_seconds()
    diff_mins = int(diff_seconds // 60)
    diff_hours = int(diff_seconds // 3600)
    diff_days = int(diff_seconds // 86400)

    if diff_mins < 60:
        return f"{max(diff_mins, 0)}m ago"
    if diff_hours < 24:
        return f"{diff_hours}h ago"
    if diff_days == 1:
        return "Yesterday"
    if diff_days < 7:
        return f"{diff_days}d ago"
    return created_at.date().isoformat()
