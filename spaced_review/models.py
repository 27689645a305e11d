"""Pydantic models validating input to the review services."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .domain import ReviewResult, SessionType


class CompleteReviewRequest(BaseModel):
    """Input for completing a pending review explicitly."""

    review_id: str
    user_id: str
    result: ReviewResult
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    quality_rating: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None


class ReviewSettingsUpdate(BaseModel):
    """Partial update of a user's review settings; omitted fields stay unchanged."""

    base_intervals: Optional[List[int]] = None
    perfect_multiplier: Optional[float] = Field(default=None, ge=1.0)
    good_multiplier: Optional[float] = Field(default=None, ge=1.0)
    regular_multiplier: Optional[float] = Field(default=None, ge=1.0)
    bad_reset: Optional[bool] = None

    @field_validator("base_intervals")
    @classmethod
    def validate_base_intervals(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        if value is None:
            return value
        if not value:
            raise ValueError("base_intervals must contain at least one interval")
        if any(interval < 1 for interval in value):
            raise ValueError("base_intervals must be positive day counts")
        return value


class LogSessionRequest(BaseModel):
    """Input for logging a study session on a topic."""

    topic_id: str
    session_type: Optional[SessionType] = None
    result: ReviewResult = ReviewResult.GOOD
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    quality_rating: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None
    studied_at: Optional[datetime] = None


__all__ = [
    "CompleteReviewRequest",
    "LogSessionRequest",
    "ReviewSettingsUpdate",
]
