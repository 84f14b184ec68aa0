# Copyright (c) Syntropy Systems
"""Pydantic models for distribution parameters, buckets and trials."""

from __future__ import annotations

from pydantic import AliasChoices, Field

from .base import TailbenchRecord


class DistributionConfig(TailbenchRecord):
    """Parameters of the main + tail mixture a trial samples from."""

    mean: float
    std_dev: float = Field(gt=0)
    tail_shift: float
    tail_probability: float = Field(ge=0, le=1)
    samples_per_trial: int = Field(ge=1)

    @property
    def tail_mean(self) -> float:
        """Mean of the shifted tail component."""
        return self.mean + self.tail_shift * self.std_dev


class Bucket(TailbenchRecord):
    """One histogram bin over ``[start, end)``."""

    start: float
    end: float
    expected: float
    observed: int = 0
    # Midpoint, used for sigma-distance display
    value: float

    @property
    def width(self) -> float:
        return self.end - self.start


class Trial(TailbenchRecord):
    """One batch of samples with its histogram and summary stats."""

    id: str
    parent_id: str = Field(
        validation_alias=AliasChoices(
            "parent_id",
            "parentId",
            "run_id",
            "runId",
            "target_version_id",
            "targetVersionId",
        ),
    )
    buckets: list[Bucket] = Field(default_factory=list)
    max_value: float
    timestamp: int
    sample_mean: float

    @property
    def observed_total(self) -> int:
        """Samples that landed inside the histogram domain."""
        return sum(bucket.observed for bucket in self.buckets)

    @property
    def expected_total(self) -> float:
        return sum(bucket.expected for bucket in self.buckets)

    @property
    def domain(self) -> tuple[float, float]:
        if not self.buckets:
            return (0.0, 1.0)
        return (self.buckets[0].start, self.buckets[-1].end)

    def dropped(self, samples_per_trial: int) -> int:
        """Count samples that fell outside the domain."""
        return samples_per_trial - self.observed_total
