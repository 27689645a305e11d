"""Runtime configuration read from the environment."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional


ENV_PREFIX = "SPACED_REVIEW_"


@dataclass
class SchedulerConfig:
    """Tunables for the review services."""

    skip_delay_days: int = 1
    upcoming_limit: int = 20
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SchedulerConfig":
        env = os.environ if environ is None else environ
        defaults = cls()
        skip_delay_days = int(env.get(f"{ENV_PREFIX}SKIP_DELAY_DAYS", defaults.skip_delay_days))
        upcoming_limit = int(env.get(f"{ENV_PREFIX}UPCOMING_LIMIT", defaults.upcoming_limit))
        if skip_delay_days < 1:
            raise ValueError(f"{ENV_PREFIX}SKIP_DELAY_DAYS must be at least 1")
        if upcoming_limit < 1:
            raise ValueError(f"{ENV_PREFIX}UPCOMING_LIMIT must be at least 1")
        return cls(
            skip_delay_days=skip_delay_days,
            upcoming_limit=upcoming_limit,
            log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level).upper(),
        )


def configure_logging(config: SchedulerConfig) -> None:
    logging.getLogger("spaced_review").setLevel(config.log_level)


__all__ = ["ENV_PREFIX", "SchedulerConfig", "configure_logging"]
