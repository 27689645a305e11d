"""Core services implementing the review completion and scheduling workflows."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional
from uuid import uuid4

from .algorithm import (
    calculate_next_interval,
    calculate_next_review_date,
    calculate_system_mastery,
    calculate_urgency_score,
    determine_topic_status,
)
from .config import SchedulerConfig
from .domain import (
    CompletedReviewData,
    ReviewResult,
    ReviewSchedule,
    ReviewSettings,
    ReviewStatus,
    SessionType,
    StudySession,
    TopicStatus,
    utcnow,
)
from .errors import InvalidOperationError, ReviewNotFoundError
from .metrics import METRICS
from .models import CompleteReviewRequest, LogSessionRequest, ReviewSettingsUpdate
from .repositories import (
    ReviewRepository,
    ReviewSettingsRepository,
    StudySessionRepository,
    TopicMasteryRepository,
)


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_SETTINGS_ID = "default"


def _new_id() -> str:
    return str(uuid4())


def _end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999999)


@dataclass
class ReviewCompletionResult:
    """Everything a completion produced, already persisted."""

    completed_review: ReviewSchedule
    next_review: ReviewSchedule
    system_mastery: float
    topic_status: TopicStatus


@dataclass
class LoggedSession:
    """A logged study session and the review it completed, if any."""

    session: StudySession
    completion: Optional[ReviewCompletionResult] = None
    first_review: Optional[ReviewSchedule] = None


def resolve_settings(
    repository: ReviewSettingsRepository, user_id: str, now: Optional[datetime] = None
) -> ReviewSettings:
    """Return the user's persisted settings, or in-memory defaults that are never saved."""

    settings = repository.find_by_user(user_id)
    if settings is None:
        logger.debug("No review settings for user %s, using defaults", user_id)
        return ReviewSettings.create_default(DEFAULT_SETTINGS_ID, user_id, now=now)
    return settings


class ReviewCompletionService:
    """Completes a pending review, schedules its successor and rescores the topic.

    Both explicit review completion and review-typed study sessions go
    through :meth:`complete_and_schedule_next`.
    """

    def __init__(
        self,
        reviews: ReviewRepository,
        settings: ReviewSettingsRepository,
        topics: TopicMasteryRepository,
        clock: Clock = utcnow,
    ) -> None:
        self._reviews = reviews
        self._settings = settings
        self._topics = topics
        self._clock = clock

    def complete_and_schedule_next(
        self,
        review: ReviewSchedule,
        result: ReviewResult,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> ReviewCompletionResult:
        now = now or self._clock()
        review.complete(result, now)

        effective_settings = resolve_settings(self._settings, user_id, now)
        next_review = self._build_next_review(review, result, user_id, effective_settings, now)

        history = self._reviews.find_completed_by_topic(review.topic_id, user_id)
        history.append(
            CompletedReviewData(result=result, interval_days=review.interval_days, completed_date=now)
        )
        system_mastery = calculate_system_mastery(history)
        topic_status = determine_topic_status(system_mastery)

        # Completed review first, successor second: a completion with no
        # successor is an orphan for repair_orphaned_completions.
        self._reviews.save(review)
        self._reviews.save(next_review)
        self._topics.update_mastery(review.topic_id, system_mastery, topic_status)

        METRICS.record_completion(result.value, next_review.interval_days, topic_status.value)
        logger.info(
            "Completed review %s (#%d, %s); next review %s in %d days, topic %s mastery %.1f",
            review.id,
            review.review_number,
            result.value,
            next_review.id,
            next_review.interval_days,
            review.topic_id,
            system_mastery,
        )
        return ReviewCompletionResult(
            completed_review=review,
            next_review=next_review,
            system_mastery=system_mastery,
            topic_status=topic_status,
        )

    def regenerate_next_review(
        self, completed_review: ReviewSchedule, user_id: str, now: Optional[datetime] = None
    ) -> ReviewSchedule:
        """Rebuild the successor of a completed review whose successor was never saved."""

        if completed_review.status is not ReviewStatus.COMPLETED:
            raise InvalidOperationError(
                f"Review {completed_review.id} is {completed_review.status.value}, not completed"
            )
        now = now or self._clock()
        effective_settings = resolve_settings(self._settings, user_id, now)
        next_review = self._build_next_review(
            completed_review,
            completed_review.result,
            user_id,
            effective_settings,
            completed_review.completed_date,
            created_at=now,
        )
        self._reviews.save(next_review)

        history = self._reviews.find_completed_by_topic(completed_review.topic_id, user_id)
        system_mastery = calculate_system_mastery(history)
        self._topics.update_mastery(
            completed_review.topic_id, system_mastery, determine_topic_status(system_mastery)
        )

        METRICS.record_orphan_repair()
        logger.info(
            "Regenerated review %s (#%d) for orphaned completion %s",
            next_review.id,
            next_review.review_number,
            completed_review.id,
        )
        return next_review

    def _build_next_review(
        self,
        review: ReviewSchedule,
        result: ReviewResult,
        user_id: str,
        settings: ReviewSettings,
        completed_at: datetime,
        created_at: Optional[datetime] = None,
    ) -> ReviewSchedule:
        next_interval_days = calculate_next_interval(review.interval_days, result, settings)
        # Early completion keeps the original calendar cadence; on-time and
        # late completions count from the completion moment.
        base_date = review.scheduled_date if review.scheduled_date > completed_at else completed_at
        return ReviewSchedule.schedule_next(
            id=_new_id(),
            user_id=user_id,
            topic_id=review.topic_id,
            scheduled_date=calculate_next_review_date(base_date, next_interval_days),
            interval_days=next_interval_days,
            review_number=review.review_number + 1,
            now=created_at or completed_at,
        )


class ReviewService:
    """Review use-cases: scheduling, completing, skipping, listing and rescoring."""

    def __init__(
        self,
        reviews: ReviewRepository,
        settings: ReviewSettingsRepository,
        topics: TopicMasteryRepository,
        sessions: StudySessionRepository,
        config: Optional[SchedulerConfig] = None,
        clock: Clock = utcnow,
        completion: Optional[ReviewCompletionService] = None,
    ) -> None:
        self._reviews = reviews
        self._settings = settings
        self._sessions = sessions
        self._config = config or SchedulerConfig()
        self._clock = clock
        self._completion = completion or ReviewCompletionService(
            reviews, settings, topics, clock=clock
        )

    @property
    def completion(self) -> ReviewCompletionService:
        return self._completion

    def schedule_first_review(self, user_id: str, topic_id: str) -> ReviewSchedule:
        now = self._clock()
        first_interval = resolve_settings(self._settings, user_id, now).first_interval()
        review = ReviewSchedule.schedule_first(
            id=_new_id(),
            user_id=user_id,
            topic_id=topic_id,
            scheduled_date=calculate_next_review_date(now, first_interval),
            interval_days=first_interval,
            now=now,
        )
        self._reviews.save(review)
        METRICS.record_first_review()
        logger.info("Scheduled first review %s for topic %s in %d days", review.id, topic_id, first_interval)
        return review

    def complete_review(self, request: CompleteReviewRequest) -> ReviewCompletionResult:
        review = self._reviews.find_pending_by_id(request.review_id, request.user_id)
        if review is None:
            raise ReviewNotFoundError(request.review_id)

        now = self._clock()
        completion = self._completion.complete_and_schedule_next(
            review, request.result, request.user_id, now=now
        )
        self._sessions.save_session(
            StudySession(
                id=_new_id(),
                user_id=request.user_id,
                topic_id=review.topic_id,
                session_type=SessionType.REVIEW,
                duration_minutes=request.duration_minutes,
                quality_rating=request.quality_rating,
                notes=request.notes,
                studied_at=now,
            )
        )
        return completion

    def skip_review(self, review_id: str, user_id: str) -> ReviewSchedule:
        """Skip a pending review and put the same review back on tomorrow's list."""

        review = self._reviews.find_pending_by_id(review_id, user_id)
        if review is None:
            raise ReviewNotFoundError(review_id)

        now = self._clock()
        review.skip(now=now)
        rescheduled = ReviewSchedule.schedule_next(
            id=_new_id(),
            user_id=user_id,
            topic_id=review.topic_id,
            scheduled_date=calculate_next_review_date(now, self._config.skip_delay_days),
            interval_days=review.interval_days,
            review_number=review.review_number,
            now=now,
        )
        self._reviews.save(review)
        self._reviews.save(rescheduled)

        METRICS.record_skip()
        logger.info("Skipped review %s; rescheduled as %s", review.id, rescheduled.id)
        return rescheduled

    def get_pending_reviews(self, user_id: str) -> List[ReviewSchedule]:
        return self._reviews.find_pending_due(user_id, _end_of_day(self._clock()))

    def get_upcoming_reviews(self, user_id: str, limit: Optional[int] = None) -> List[ReviewSchedule]:
        return self._reviews.find_upcoming(
            user_id,
            _end_of_day(self._clock()),
            self._config.upcoming_limit if limit is None else limit,
        )

    def get_settings(self, user_id: str) -> ReviewSettings:
        return resolve_settings(self._settings, user_id, self._clock())

    def update_settings(self, user_id: str, update: ReviewSettingsUpdate) -> ReviewSettings:
        now = self._clock()
        settings = self._settings.find_by_user(user_id)
        if settings is None:
            settings = ReviewSettings.create_default(_new_id(), user_id, now=now)
        settings.update(**update.model_dump(exclude_none=True), now=now)
        return self._settings.upsert(settings)

    def recalculate_urgency(self, user_id: str) -> int:
        """Rescore every pending review of the user; returns how many were updated."""

        now = self._clock()
        pending = self._reviews.find_all_pending_for_urgency(user_id)
        scores = [
            (
                review.id,
                calculate_urgency_score(
                    review.scheduled_date, review.interval_days, review.topic_mastery_level, now
                ),
            )
            for review in pending
        ]
        if scores:
            self._reviews.update_urgency_scores(scores, now)
        METRICS.record_urgency_batch(len(scores))
        logger.info("Recalculated urgency for %d pending reviews of user %s", len(scores), user_id)
        return len(scores)

    def repair_orphaned_completions(self, user_id: str) -> List[ReviewSchedule]:
        now = self._clock()
        return [
            self._completion.regenerate_next_review(orphan, user_id, now=now)
            for orphan in self._reviews.find_orphaned_completions(user_id)
        ]


class StudySessionService:
    """Logs study sessions and applies their side effects on the review schedule."""

    def __init__(
        self,
        sessions: StudySessionRepository,
        reviews: ReviewRepository,
        topics: TopicMasteryRepository,
        review_service: ReviewService,
        clock: Clock = utcnow,
    ) -> None:
        self._sessions = sessions
        self._reviews = reviews
        self._topics = topics
        self._review_service = review_service
        self._clock = clock

    def log_session(self, user_id: str, request: LogSessionRequest) -> LoggedSession:
        now = self._clock()
        is_first_time = self._sessions.count_by_topic(request.topic_id, user_id) == 0
        if is_first_time:
            session_type = SessionType.FIRST_TIME
        else:
            session_type = request.session_type or SessionType.PRACTICE

        logged = LoggedSession(
            session=StudySession(
                id=_new_id(),
                user_id=user_id,
                topic_id=request.topic_id,
                session_type=session_type,
                duration_minutes=request.duration_minutes,
                quality_rating=request.quality_rating,
                notes=request.notes,
                studied_at=request.studied_at or now,
            )
        )

        if session_type is SessionType.REVIEW:
            pending = self._reviews.find_pending_by_topic(request.topic_id, user_id)
            if pending is None:
                logger.info("Review session for topic %s has no pending review to complete", request.topic_id)
            else:
                logged.completion = self._review_service.completion.complete_and_schedule_next(
                    pending, request.result, user_id, now=now
                )

        self._sessions.save_session(logged.session)

        if is_first_time:
            if self._topics.get_topic_status(request.topic_id) is None:
                self._topics.update_mastery(request.topic_id, 0.0, TopicStatus.IN_PROGRESS)
            logged.first_review = self._review_service.schedule_first_review(user_id, request.topic_id)
        return logged


__all__ = [
    "LoggedSession",
    "ReviewCompletionResult",
    "ReviewCompletionService",
    "ReviewService",
    "StudySessionService",
    "resolve_settings",
]
