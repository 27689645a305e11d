from datetime import datetime, timedelta

import pytest

from spaced_review.config import SchedulerConfig
from spaced_review.domain import ReviewSchedule
from spaced_review.main import build_container
from spaced_review.metrics import METRICS
from spaced_review.storage import InMemoryReviewStore

USER_ID = "user-123"
TOPIC_ID = "topic-456"


class FixedClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0, hours: int = 0) -> None:
        self.now += timedelta(days=days, hours=hours)


@pytest.fixture(autouse=True)
def reset_metrics():
    METRICS.reset()
    yield
    METRICS.reset()


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 1, 10, 10, 0))


@pytest.fixture
def store():
    return InMemoryReviewStore()


@pytest.fixture
def container(store, clock):
    return build_container(config=SchedulerConfig(), store=store, clock=clock)


@pytest.fixture
def review_service(container):
    return container.review_service


@pytest.fixture
def session_service(container):
    return container.session_service


@pytest.fixture
def make_pending_review(store):
    """Persist a pending review and return it."""

    def factory(scheduled_date, interval_days, review_number=1, review_id="review-1", topic_id=TOPIC_ID):
        review = ReviewSchedule.schedule_next(
            id=review_id,
            user_id=USER_ID,
            topic_id=topic_id,
            scheduled_date=scheduled_date,
            interval_days=interval_days,
            review_number=review_number,
            now=datetime(2025, 1, 1),
        )
        store.save(review)
        return review

    return factory
