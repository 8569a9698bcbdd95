"""Retry policy for eventually-consistent remote calls."""

from __future__ import annotations

import random
from collections.abc import Iterator

from pydantic import BaseModel, Field


class RetryPolicy(BaseModel):
    """Bounded exponential backoff with jitter.

    `budget` caps the total time spent waiting between attempts; managed
    cloud resources commonly need minutes to settle. `max_attempts` is an
    optional extra bound on the number of calls.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    initial_delay: float = Field(default=2.0, gt=0)
    max_delay: float = Field(default=30.0, gt=0)
    multiplier: float = Field(default=2.0, ge=1)
    jitter: float = Field(default=0.2, ge=0, le=1)
    budget: float = Field(default=600.0, ge=0)
    max_attempts: int | None = Field(default=None, ge=1)

    def delays(self) -> Iterator[float]:
        """Yield successive waits until the budget or attempt limit is spent."""
        delay = self.initial_delay
        waited = 0.0
        attempts = 1
        while self.max_attempts is None or attempts < self.max_attempts:
            wait = min(delay, self.max_delay)
            if self.jitter:
                wait += random.uniform(0, wait * self.jitter)
            if waited + wait > self.budget:
                return
            waited += wait
            attempts += 1
            yield wait
            delay *= self.multiplier
