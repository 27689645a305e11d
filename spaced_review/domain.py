"""Domain models shared across services and repositories."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from .errors import InvalidReviewTransitionError


DEFAULT_BASE_INTERVALS = (1, 7, 30, 90)
DEFAULT_PERFECT_MULTIPLIER = 2.5
DEFAULT_GOOD_MULTIPLIER = 2.0
DEFAULT_REGULAR_MULTIPLIER = 1.2


def utcnow() -> datetime:
    """Naive UTC timestamp; every date in the core is timezone-naive."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class ReviewResult(str, Enum):
    PERFECT = "perfect"
    GOOD = "good"
    REGULAR = "regular"
    BAD = "bad"

    @property
    def is_successful(self) -> bool:
        return self in (ReviewResult.PERFECT, ReviewResult.GOOD)

    @property
    def is_bad(self) -> bool:
        return self is ReviewResult.BAD


class ReviewStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]

    def can_transition_to(self, target: "ReviewStatus") -> bool:
        return can_transition(self, target)


_TRANSITIONS: Dict[ReviewStatus, FrozenSet[ReviewStatus]] = {
    ReviewStatus.PENDING: frozenset({ReviewStatus.COMPLETED, ReviewStatus.SKIPPED}),
    ReviewStatus.COMPLETED: frozenset(),
    ReviewStatus.SKIPPED: frozenset(),
}


def can_transition(current: ReviewStatus, target: ReviewStatus) -> bool:
    """Return whether a review in ``current`` status may move to ``target``."""

    return target in _TRANSITIONS[current]


class TopicStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    MASTERED = "mastered"


class SessionType(str, Enum):
    FIRST_TIME = "first_time"
    REVIEW = "review"
    PRACTICE = "practice"


@dataclass
class ReviewSchedule:
    """One scheduled review of a topic and its pending/completed/skipped lifecycle."""

    id: str
    user_id: str
    topic_id: str
    scheduled_date: datetime
    interval_days: int
    review_number: int
    status: ReviewStatus = ReviewStatus.PENDING
    completed_date: Optional[datetime] = None
    result: Optional[ReviewResult] = None
    urgency_score: float = 0.0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def schedule_first(
        cls,
        id: str,
        user_id: str,
        topic_id: str,
        scheduled_date: datetime,
        interval_days: int,
        now: Optional[datetime] = None,
    ) -> "ReviewSchedule":
        return cls.schedule_next(
            id=id,
            user_id=user_id,
            topic_id=topic_id,
            scheduled_date=scheduled_date,
            interval_days=interval_days,
            review_number=1,
            now=now,
        )

    @classmethod
    def schedule_next(
        cls,
        id: str,
        user_id: str,
        topic_id: str,
        scheduled_date: datetime,
        interval_days: int,
        review_number: int,
        now: Optional[datetime] = None,
    ) -> "ReviewSchedule":
        created = now or utcnow()
        return cls(
            id=id,
            user_id=user_id,
            topic_id=topic_id,
            scheduled_date=scheduled_date,
            interval_days=interval_days,
            review_number=review_number,
            created_at=created,
            updated_at=created,
        )

    @property
    def is_pending(self) -> bool:
        return self.status is ReviewStatus.PENDING

    def _transition(self, target: ReviewStatus) -> None:
        if not self.status.can_transition_to(target):
            raise InvalidReviewTransitionError(self.status.value, target.value)
        self.status = target

    def complete(self, result: ReviewResult, completed_date: datetime) -> None:
        self._transition(ReviewStatus.COMPLETED)
        self.result = result
        self.completed_date = completed_date
        self.updated_at = completed_date

    def skip(self, now: Optional[datetime] = None) -> None:
        self._transition(ReviewStatus.SKIPPED)
        self.updated_at = now or utcnow()

    def update_urgency_score(self, score: float, now: Optional[datetime] = None) -> None:
        self.urgency_score = score
        self.updated_at = now or utcnow()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "topic_id": self.topic_id,
            "scheduled_date": _format_datetime(self.scheduled_date),
            "completed_date": _format_datetime(self.completed_date),
            "status": self.status.value,
            "result": self.result.value if self.result else None,
            "urgency_score": self.urgency_score,
            "interval_days": self.interval_days,
            "review_number": self.review_number,
            "created_at": _format_datetime(self.created_at),
            "updated_at": _format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "ReviewSchedule":
        result = payload.get("result")
        return cls(
            id=payload["id"],
            user_id=payload["user_id"],
            topic_id=payload["topic_id"],
            scheduled_date=_parse_datetime(payload["scheduled_date"]),
            interval_days=int(payload["interval_days"]),
            review_number=int(payload["review_number"]),
            status=ReviewStatus(payload.get("status", ReviewStatus.PENDING.value)),
            completed_date=_parse_datetime(payload.get("completed_date")),
            result=ReviewResult(result) if result else None,
            urgency_score=float(payload.get("urgency_score", 0.0)),
            created_at=_parse_datetime(payload.get("created_at")) or utcnow(),
            updated_at=_parse_datetime(payload.get("updated_at")) or utcnow(),
        )


@dataclass
class ReviewSettings:
    """Per-user parameters for interval growth."""

    id: str
    user_id: str
    base_intervals: List[int] = field(default_factory=lambda: list(DEFAULT_BASE_INTERVALS))
    perfect_multiplier: float = DEFAULT_PERFECT_MULTIPLIER
    good_multiplier: float = DEFAULT_GOOD_MULTIPLIER
    regular_multiplier: float = DEFAULT_REGULAR_MULTIPLIER
    bad_reset: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create_default(
        cls, id: str, user_id: str, now: Optional[datetime] = None
    ) -> "ReviewSettings":
        created = now or utcnow()
        return cls(id=id, user_id=user_id, created_at=created, updated_at=created)

    def update(
        self,
        base_intervals: Optional[List[int]] = None,
        perfect_multiplier: Optional[float] = None,
        good_multiplier: Optional[float] = None,
        regular_multiplier: Optional[float] = None,
        bad_reset: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> None:
        if base_intervals is not None:
            self.base_intervals = list(base_intervals)
        if perfect_multiplier is not None:
            self.perfect_multiplier = perfect_multiplier
        if good_multiplier is not None:
            self.good_multiplier = good_multiplier
        if regular_multiplier is not None:
            self.regular_multiplier = regular_multiplier
        if bad_reset is not None:
            self.bad_reset = bad_reset
        self.updated_at = now or utcnow()

    def multiplier_for(self, result: ReviewResult) -> float:
        multipliers = {
            ReviewResult.PERFECT: self.perfect_multiplier,
            ReviewResult.GOOD: self.good_multiplier,
            ReviewResult.REGULAR: self.regular_multiplier,
        }
        return multipliers.get(result, 1.0)

    def first_interval(self) -> int:
        return self.base_intervals[0] if self.base_intervals else 1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "base_intervals": list(self.base_intervals),
            "perfect_multiplier": self.perfect_multiplier,
            "good_multiplier": self.good_multiplier,
            "regular_multiplier": self.regular_multiplier,
            "bad_reset": self.bad_reset,
            "created_at": _format_datetime(self.created_at),
            "updated_at": _format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "ReviewSettings":
        return cls(
            id=payload["id"],
            user_id=payload["user_id"],
            base_intervals=list(payload.get("base_intervals") or DEFAULT_BASE_INTERVALS),
            perfect_multiplier=float(payload.get("perfect_multiplier", DEFAULT_PERFECT_MULTIPLIER)),
            good_multiplier=float(payload.get("good_multiplier", DEFAULT_GOOD_MULTIPLIER)),
            regular_multiplier=float(payload.get("regular_multiplier", DEFAULT_REGULAR_MULTIPLIER)),
            bad_reset=bool(payload.get("bad_reset", True)),
            created_at=_parse_datetime(payload.get("created_at")) or utcnow(),
            updated_at=_parse_datetime(payload.get("updated_at")) or utcnow(),
        )


@dataclass(frozen=True)
class CompletedReviewData:
    """The slice of a completed review the mastery calculation needs."""

    result: ReviewResult
    interval_days: int
    completed_date: datetime


@dataclass(frozen=True)
class PendingReviewForUrgency:
    """A pending review joined with its topic's current mastery level."""

    id: str
    scheduled_date: datetime
    interval_days: int
    topic_mastery_level: float


@dataclass
class StudySession:
    """A logged block of study on a topic."""

    id: str
    user_id: str
    topic_id: str
    session_type: SessionType
    duration_minutes: Optional[int] = None
    quality_rating: Optional[int] = None
    notes: Optional[str] = None
    studied_at: datetime = field(default_factory=utcnow)


__all__ = [
    "CompletedReviewData",
    "DEFAULT_BASE_INTERVALS",
    "PendingReviewForUrgency",
    "ReviewResult",
    "ReviewSchedule",
    "ReviewSettings",
    "ReviewStatus",
    "SessionType",
    "StudySession",
    "TopicStatus",
    "can_transition",
    "utcnow",
]
