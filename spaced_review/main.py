"""Service wiring for the spaced review core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import SchedulerConfig, configure_logging
from .domain import utcnow
from .services import Clock, ReviewService, StudySessionService
from .storage import InMemoryReviewStore


@dataclass
class ServiceContainer:
    config: SchedulerConfig
    store: InMemoryReviewStore
    review_service: ReviewService
    session_service: StudySessionService


def build_container(
    config: Optional[SchedulerConfig] = None,
    store: Optional[InMemoryReviewStore] = None,
    clock: Clock = utcnow,
) -> ServiceContainer:
    config = config or SchedulerConfig.from_env()
    configure_logging(config)

    store = store or InMemoryReviewStore()
    review_service = ReviewService(
        reviews=store,
        settings=store,
        topics=store,
        sessions=store,
        config=config,
        clock=clock,
    )
    session_service = StudySessionService(
        sessions=store, reviews=store, topics=store, review_service=review_service, clock=clock
    )
    return ServiceContainer(
        config=config,
        store=store,
        review_service=review_service,
        session_service=session_service,
    )


__all__ = ["ServiceContainer", "build_container"]
