"""Repository interfaces the review core persists through."""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .domain import (
    CompletedReviewData,
    PendingReviewForUrgency,
    ReviewSchedule,
    ReviewSettings,
    StudySession,
    TopicStatus,
)


class ReviewRepository(ABC):
    """Look up and persist review schedules."""

    @abstractmethod
    def find_pending_by_id(self, review_id: str, user_id: str) -> Optional[ReviewSchedule]:
        """Return the pending review with this id owned by the user, if any."""

    @abstractmethod
    def find_pending_by_topic(self, topic_id: str, user_id: str) -> Optional[ReviewSchedule]:
        """Return the earliest-scheduled pending review for the topic, if any."""

    @abstractmethod
    def find_pending_due(self, user_id: str, up_to: datetime) -> List[ReviewSchedule]:
        """Return pending reviews scheduled at or before ``up_to``, most urgent first."""

    @abstractmethod
    def find_upcoming(
        self, user_id: str, after: datetime, limit: Optional[int] = None
    ) -> List[ReviewSchedule]:
        """Return pending reviews scheduled after ``after``, soonest first."""

    @abstractmethod
    def find_all_pending_for_urgency(self, user_id: str) -> List[PendingReviewForUrgency]:
        """Return every pending review of the user with its topic's mastery attached."""

    @abstractmethod
    def find_completed_by_topic(self, topic_id: str, user_id: str) -> List[CompletedReviewData]:
        """Return the topic's completed reviews ordered by completion date."""

    @abstractmethod
    def find_orphaned_completions(self, user_id: str) -> List[ReviewSchedule]:
        """Return completed reviews that have no successor in their topic."""

    @abstractmethod
    def save(self, review: ReviewSchedule) -> None:
        """Create or update a review by id."""

    @abstractmethod
    def update_urgency_scores(self, scores: Iterable[Tuple[str, float]], now: datetime) -> None:
        """Apply ``(review_id, urgency_score)`` pairs stamped with ``now`` as one atomic batch."""


class ReviewSettingsRepository(ABC):
    """Per-user review settings."""

    @abstractmethod
    def find_by_user(self, user_id: str) -> Optional[ReviewSettings]:
        """Return persisted settings or ``None`` so the caller can use defaults."""

    @abstractmethod
    def upsert(self, settings: ReviewSettings) -> ReviewSettings:
        """Persist the settings and return the stored copy."""


class TopicMasteryRepository(ABC):
    """Write side of the topic aggregate owned by the study catalogue."""

    @abstractmethod
    def update_mastery(self, topic_id: str, system_mastery_level: float, status: TopicStatus) -> None:
        """Record the recalculated system mastery and status for a topic."""

    @abstractmethod
    def get_mastery(self, topic_id: str) -> float:
        """Return the topic's current mastery level (0 when unknown)."""

    @abstractmethod
    def get_topic_status(self, topic_id: str) -> Optional[TopicStatus]:
        """Return the topic's status, or ``None`` when nothing was recorded yet."""


class StudySessionRepository(ABC):
    """Logged study sessions."""

    @abstractmethod
    def count_by_topic(self, topic_id: str, user_id: str) -> int:
        """Return how many sessions the user has logged for the topic."""

    @abstractmethod
    def save_session(self, session: StudySession) -> None:
        """Persist a study session."""


__all__ = [
    "ReviewRepository",
    "ReviewSettingsRepository",
    "StudySessionRepository",
    "TopicMasteryRepository",
]
