"""Simple in-process metrics registry for service instrumentation."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field


INTERVAL_BUCKETS = (1, 7, 30, 90, 180, 365)


def _interval_bucket(interval_days: int) -> int:
    for bound in INTERVAL_BUCKETS:
        if interval_days <= bound:
            return bound
    return INTERVAL_BUCKETS[-1]


@dataclass
class MetricsRegistry:
    """Holds counters exposed by the review services."""

    completions: Counter = field(default_factory=Counter)
    interval_buckets: Counter = field(default_factory=Counter)
    topic_statuses: Counter = field(default_factory=Counter)
    skips: int = 0
    first_reviews_scheduled: int = 0
    urgency_batches: int = 0
    urgency_rows_updated: int = 0
    orphan_repairs: int = 0

    def record_completion(self, result: str, next_interval_days: int, topic_status: str) -> None:
        self.completions[result] += 1
        self.interval_buckets[_interval_bucket(next_interval_days)] += 1
        self.topic_statuses[topic_status] += 1

    def record_skip(self) -> None:
        self.skips += 1

    def record_first_review(self) -> None:
        self.first_reviews_scheduled += 1

    def record_urgency_batch(self, row_count: int) -> None:
        self.urgency_batches += 1
        self.urgency_rows_updated += row_count

    def record_orphan_repair(self) -> None:
        self.orphan_repairs += 1

    @property
    def success_rate(self) -> float:
        total = sum(self.completions.values())
        if total == 0:
            return 0.0
        return (self.completions["perfect"] + self.completions["good"]) / total

    def reset(self) -> None:
        self.__init__()


METRICS = MetricsRegistry()

__all__ = ["METRICS", "MetricsRegistry"]
