"""In-process repository implementation used for wiring and tests."""
from __future__ import annotations

import threading
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from .domain import (
    CompletedReviewData,
    PendingReviewForUrgency,
    ReviewResult,
    ReviewSchedule,
    ReviewSettings,
    ReviewStatus,
    StudySession,
    TopicStatus,
)
from .errors import ConcurrentModificationError, ReviewNotFoundError
from .repositories import (
    ReviewRepository,
    ReviewSettingsRepository,
    StudySessionRepository,
    TopicMasteryRepository,
)


# A stored completed or skipped review only accepts writes that agree on these.
_TERMINAL_FIELDS = ("status", "result", "completed_date")


class InMemoryReviewStore(
    ReviewRepository, ReviewSettingsRepository, TopicMasteryRepository, StudySessionRepository
):
    """Stores reviews, settings, topic mastery and sessions in dictionaries.

    Reviews and settings are kept as serialised payloads so callers never hold
    a reference into the store; every read hands back a fresh entity.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reviews: Dict[str, dict] = {}
        self._settings: Dict[str, dict] = {}
        self._topics: Dict[str, Tuple[float, TopicStatus]] = {}
        self._sessions: List[StudySession] = []

    # ReviewRepository ---------------------------------------------------
    def _pending_for_user(self, user_id: str) -> List[ReviewSchedule]:
        return [
            ReviewSchedule.from_dict(payload)
            for payload in self._reviews.values()
            if payload["user_id"] == user_id and payload["status"] == ReviewStatus.PENDING.value
        ]

    def get(self, review_id: str) -> ReviewSchedule:
        with self._lock:
            payload = self._reviews.get(review_id)
        if payload is None:
            raise ReviewNotFoundError(review_id)
        return ReviewSchedule.from_dict(payload)

    def list_reviews(self, user_id: str, topic_id: Optional[str] = None) -> List[ReviewSchedule]:
        with self._lock:
            reviews = [
                ReviewSchedule.from_dict(payload)
                for payload in self._reviews.values()
                if payload["user_id"] == user_id
                and (topic_id is None or payload["topic_id"] == topic_id)
            ]
        return sorted(reviews, key=lambda review: (review.review_number, review.created_at))

    def find_pending_by_id(self, review_id: str, user_id: str) -> Optional[ReviewSchedule]:
        with self._lock:
            payload = self._reviews.get(review_id)
        if (
            payload is None
            or payload["user_id"] != user_id
            or payload["status"] != ReviewStatus.PENDING.value
        ):
            return None
        return ReviewSchedule.from_dict(payload)

    def find_pending_by_topic(self, topic_id: str, user_id: str) -> Optional[ReviewSchedule]:
        with self._lock:
            candidates = [r for r in self._pending_for_user(user_id) if r.topic_id == topic_id]
        if not candidates:
            return None
        return min(candidates, key=lambda review: review.scheduled_date)

    def find_pending_due(self, user_id: str, up_to: datetime) -> List[ReviewSchedule]:
        with self._lock:
            due = [r for r in self._pending_for_user(user_id) if r.scheduled_date <= up_to]
        return sorted(due, key=lambda review: (-review.urgency_score, review.scheduled_date))

    def find_upcoming(
        self, user_id: str, after: datetime, limit: Optional[int] = None
    ) -> List[ReviewSchedule]:
        with self._lock:
            upcoming = [r for r in self._pending_for_user(user_id) if r.scheduled_date > after]
        upcoming.sort(key=lambda review: review.scheduled_date)
        return upcoming[:limit] if limit is not None else upcoming

    def find_all_pending_for_urgency(self, user_id: str) -> List[PendingReviewForUrgency]:
        with self._lock:
            pending = self._pending_for_user(user_id)
            mastery = {topic_id: level for topic_id, (level, _) in self._topics.items()}
        return [
            PendingReviewForUrgency(
                id=review.id,
                scheduled_date=review.scheduled_date,
                interval_days=review.interval_days,
                topic_mastery_level=mastery.get(review.topic_id, 0.0),
            )
            for review in pending
        ]

    def find_completed_by_topic(self, topic_id: str, user_id: str) -> List[CompletedReviewData]:
        with self._lock:
            completed = [
                payload
                for payload in self._reviews.values()
                if payload["topic_id"] == topic_id
                and payload["user_id"] == user_id
                and payload["status"] == ReviewStatus.COMPLETED.value
            ]
        history = [
            CompletedReviewData(
                result=ReviewResult(payload["result"]),
                interval_days=payload["interval_days"],
                completed_date=datetime.fromisoformat(payload["completed_date"]),
            )
            for payload in completed
        ]
        return sorted(history, key=lambda item: item.completed_date)

    def find_orphaned_completions(self, user_id: str) -> List[ReviewSchedule]:
        with self._lock:
            owned = [p for p in self._reviews.values() if p["user_id"] == user_id]
        numbers = {(p["topic_id"], p["review_number"]) for p in owned}
        orphans = [
            ReviewSchedule.from_dict(payload)
            for payload in owned
            if payload["status"] == ReviewStatus.COMPLETED.value
            and (payload["topic_id"], payload["review_number"] + 1) not in numbers
        ]
        return sorted(orphans, key=lambda review: review.completed_date)

    def save(self, review: ReviewSchedule) -> None:
        payload = review.to_dict()
        with self._lock:
            stored = self._reviews.get(review.id)
            if stored is not None and ReviewStatus(stored["status"]).is_terminal:
                if any(stored[key] != payload[key] for key in _TERMINAL_FIELDS):
                    raise ConcurrentModificationError(
                        f"Review {review.id} is already {stored['status']}"
                    )
            self._reviews[review.id] = payload

    def update_urgency_scores(self, scores: Iterable[Tuple[str, float]], now: datetime) -> None:
        updates = list(scores)
        with self._lock:
            for review_id, _ in updates:
                if review_id not in self._reviews:
                    raise ReviewNotFoundError(review_id)
            for review_id, score in updates:
                review = ReviewSchedule.from_dict(self._reviews[review_id])
                review.update_urgency_score(score, now=now)
                self._reviews[review_id] = review.to_dict()

    # ReviewSettingsRepository -------------------------------------------
    def find_by_user(self, user_id: str) -> Optional[ReviewSettings]:
        with self._lock:
            payload = self._settings.get(user_id)
        if payload is None:
            return None
        return ReviewSettings.from_dict(payload)

    def upsert(self, settings: ReviewSettings) -> ReviewSettings:
        payload = settings.to_dict()
        with self._lock:
            self._settings[settings.user_id] = payload
        return ReviewSettings.from_dict(payload)

    # TopicMasteryRepository ---------------------------------------------
    def update_mastery(self, topic_id: str, system_mastery_level: float, status: TopicStatus) -> None:
        with self._lock:
            self._topics[topic_id] = (system_mastery_level, status)

    def get_mastery(self, topic_id: str) -> float:
        with self._lock:
            level, _ = self._topics.get(topic_id, (0.0, TopicStatus.IN_PROGRESS))
        return level

    def get_topic_status(self, topic_id: str) -> Optional[TopicStatus]:
        with self._lock:
            entry = self._topics.get(topic_id)
        return entry[1] if entry else None

    # StudySessionRepository ---------------------------------------------
    def count_by_topic(self, topic_id: str, user_id: str) -> int:
        with self._lock:
            return sum(
                1 for s in self._sessions if s.topic_id == topic_id and s.user_id == user_id
            )

    def save_session(self, session: StudySession) -> None:
        with self._lock:
            self._sessions.append(session)

    def list_sessions(self, user_id: str, topic_id: Optional[str] = None) -> List[StudySession]:
        with self._lock:
            return [
                s
                for s in self._sessions
                if s.user_id == user_id and (topic_id is None or s.topic_id == topic_id)
            ]


__all__ = ["InMemoryReviewStore"]
