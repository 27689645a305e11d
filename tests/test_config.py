# tests/test_config.py
import logging

import pytest

from spaced_review.config import SchedulerConfig, configure_logging
from spaced_review.main import build_container


def test_defaults_when_environment_is_empty():
    config = SchedulerConfig.from_env({})
    assert config == SchedulerConfig(skip_delay_days=1, upcoming_limit=20, log_level="INFO")


def test_reads_prefixed_variables():
    config = SchedulerConfig.from_env(
        {
            "SPACED_REVIEW_SKIP_DELAY_DAYS": "2",
            "SPACED_REVIEW_UPCOMING_LIMIT": "5",
            "SPACED_REVIEW_LOG_LEVEL": "debug",
        }
    )
    assert config.skip_delay_days == 2
    assert config.upcoming_limit == 5
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize("name", ["SPACED_REVIEW_SKIP_DELAY_DAYS", "SPACED_REVIEW_UPCOMING_LIMIT"])
def test_rejects_non_positive_values(name):
    with pytest.raises(ValueError):
        SchedulerConfig.from_env({name: "0"})


def test_configure_logging_sets_package_level():
    configure_logging(SchedulerConfig(log_level="WARNING"))
    assert logging.getLogger("spaced_review").level == logging.WARNING
    configure_logging(SchedulerConfig())


def test_build_container_reads_environment(monkeypatch):
    monkeypatch.setenv("SPACED_REVIEW_UPCOMING_LIMIT", "3")
    container = build_container()
    assert container.config.upcoming_limit == 3
    assert container.review_service.get_upcoming_reviews("nobody") == []
