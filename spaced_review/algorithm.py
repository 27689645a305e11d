"""Spaced repetition scoring: interval growth, due dates, urgency and mastery.

Every function here is pure. Callers that need a notion of "now" pass it in,
so one captured instant can be threaded through a whole workflow.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import List, Sequence

from .domain import (
    DEFAULT_BASE_INTERVALS,
    CompletedReviewData,
    ReviewResult,
    ReviewSettings,
    TopicStatus,
)


MAX_INTERVAL_DAYS = 365
MAX_MASTERY = 10.0
MASTERED_THRESHOLD = 7.0

# Weighted mastery factors
MASTERY_FACTOR_WEIGHT = 3.0
REVIEW_COUNT_SATURATION = 5
INTERVAL_SATURATION_DAYS = 30
RECENT_WINDOW = 3
RECENT_BONUS = 1.0


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with ties going up (``2.5 -> 3``), unlike the built-in ``round``."""

    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def default_base_intervals() -> List[int]:
    return list(DEFAULT_BASE_INTERVALS)


def calculate_next_interval(
    current_interval_days: int, result: ReviewResult, settings: ReviewSettings
) -> int:
    """Return the interval in days until the review after this one.

    A bad result either resets to the first base interval or halves the
    current interval, depending on ``settings.bad_reset``. Any other result
    scales the interval by its multiplier. The outcome never exceeds
    ``MAX_INTERVAL_DAYS``.
    """

    if result.is_bad:
        if settings.bad_reset:
            next_interval = settings.first_interval()
        else:
            next_interval = max(1, int(round_half_up(current_interval_days / 2)))
    else:
        multiplier = settings.multiplier_for(result)
        next_interval = int(round_half_up(current_interval_days * multiplier))

    return min(next_interval, MAX_INTERVAL_DAYS)


def calculate_next_review_date(base_date: datetime, interval_days: int) -> datetime:
    return base_date + timedelta(days=interval_days)


def calculate_urgency_score(
    scheduled_date: datetime,
    interval_days: int,
    mastery_level: float,
    now: datetime,
) -> float:
    """Rank a pending review; higher means it should be studied sooner.

    ``((days_overdue + 1) / max(1, interval_days)) * (11 - mastery)`` where a
    mastery of zero or less counts as 1.
    """

    days_overdue = max(0, (now - scheduled_date) // timedelta(days=1))
    effective_mastery = mastery_level if mastery_level > 0 else 1
    return ((days_overdue + 1) / max(1, interval_days)) * (11 - effective_mastery)


def calculate_system_mastery(completed_reviews: Sequence[CompletedReviewData]) -> float:
    """Score a topic's review history on a 0-10 scale, one decimal place.

    Three factors each contribute up to 3 points: how many reviews were done
    (saturating at five), the share of perfect/good results, and how long the
    latest interval was (saturating at 30 days). A final point is added when
    the last three reviews were all successful.
    """

    if not completed_reviews:
        return 0.0

    total = len(completed_reviews)
    successful = sum(1 for review in completed_reviews if review.result.is_successful)

    count_factor = min(1.0, total / REVIEW_COUNT_SATURATION)
    success_ratio = successful / total

    last_interval = completed_reviews[-1].interval_days
    interval_factor = min(
        1.0, math.log2(last_interval + 1) / math.log2(INTERVAL_SATURATION_DAYS + 1)
    )

    recent = completed_reviews[-RECENT_WINDOW:]
    recent_bonus = RECENT_BONUS if all(r.result.is_successful for r in recent) else 0.0

    mastery = min(
        MAX_MASTERY,
        (count_factor + success_ratio + interval_factor) * MASTERY_FACTOR_WEIGHT + recent_bonus,
    )
    return round_half_up(mastery, 1)


def determine_topic_status(system_mastery: float) -> TopicStatus:
    if system_mastery >= MASTERED_THRESHOLD:
        return TopicStatus.MASTERED
    return TopicStatus.IN_PROGRESS


__all__ = [
    "MASTERED_THRESHOLD",
    "MAX_INTERVAL_DAYS",
    "calculate_next_interval",
    "calculate_next_review_date",
    "calculate_system_mastery",
    "calculate_urgency_score",
    "default_base_intervals",
    "determine_topic_status",
    "round_half_up",
]
