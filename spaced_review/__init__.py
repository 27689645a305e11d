"""Spaced repetition scheduling and scoring for topic reviews."""
from .algorithm import (
    MASTERED_THRESHOLD,
    MAX_INTERVAL_DAYS,
    calculate_next_interval,
    calculate_next_review_date,
    calculate_system_mastery,
    calculate_urgency_score,
    determine_topic_status,
)
from .domain import (
    CompletedReviewData,
    ReviewResult,
    ReviewSchedule,
    ReviewSettings,
    ReviewStatus,
    SessionType,
    TopicStatus,
    can_transition,
)
from .errors import (
    EntityNotFoundError,
    InvalidOperationError,
    InvalidReviewTransitionError,
    ReviewNotFoundError,
)
from .services import ReviewCompletionService, ReviewService, StudySessionService

__version__ = "0.1.0"
