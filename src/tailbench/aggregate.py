# Copyright (c) Syntropy Systems
"""Read-only aggregates the view layer renders."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, TypedDict

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tailbench.models.state import TargetVersion
    from tailbench.models.trial import Bucket, Trial
    from tailbench.store import Store

# Bucket bounds are grouped after rounding to this many decimals
BOUND_PRECISION = 9


class ChartRow(TypedDict):
    """One bar of the distribution chart."""

    value: float
    expected: float
    observed: int
    range: str
    sigma: str


class MaxValuePoint(TypedDict):
    """Marker for one trial's maximum, fading from oldest to newest."""

    x: float
    y: float
    opacity: float
    trial_id: str


@dataclass(frozen=True)
class TrialSummary:
    """Summary stats across a set of trials."""

    count: int
    mean_sample_mean: float | None
    max_value: float | None
    observed_total: int
    expected_total: float


@dataclass(frozen=True)
class VersionView:
    """A version with the trials of all its runs, oldest first."""

    version: TargetVersion
    trials: list[Trial]


def chart_rows(buckets: Sequence[Bucket], mean: float, std_dev: float) -> list[ChartRow]:
    """Display rows with the bucket range and its midpoint's sigma distance."""
    return [
        {
            "value": bucket.value,
            "expected": bucket.expected,
            "observed": bucket.observed,
            "range": f"{bucket.start:.1f} - {bucket.end:.1f}",
            "sigma": f"{(bucket.value - mean) / std_dev:.2f}",
        }
        for bucket in buckets
    ]


def max_value_points(trials: Sequence[Trial]) -> list[MaxValuePoint]:
    """One point per trial at its max value."""
    last = max(1, len(trials) - 1)
    return [
        {
            "x": trial.max_value,
            "y": 0.0,
            "opacity": 0.3 + 0.7 * (idx / last),
            "trial_id": trial.id,
        }
        for idx, trial in enumerate(trials)
    ]


def aggregate_buckets(trials: Sequence[Trial]) -> list[Bucket]:
    """Sum expected and observed counts across trials.

    Buckets with the same bounds are merged; the result is sorted by start.
    """
    merged: dict[tuple[float, float], Bucket] = {}
    for trial in trials:
        for bucket in trial.buckets:
            key = (round(bucket.start, BOUND_PRECISION), round(bucket.end, BOUND_PRECISION))
            existing = merged.get(key)
            if existing is None:
                merged[key] = bucket
            else:
                merged[key] = existing.model_copy(
                    update={
                        "expected": existing.expected + bucket.expected,
                        "observed": existing.observed + bucket.observed,
                    }
                )
    return sorted(merged.values(), key=lambda bucket: (bucket.start, bucket.end))


def summarize_trials(trials: Sequence[Trial]) -> TrialSummary:
    """Count, mean of sample means, overall max and histogram totals."""
    if not trials:
        return TrialSummary(
            count=0,
            mean_sample_mean=None,
            max_value=None,
            observed_total=0,
            expected_total=0.0,
        )
    return TrialSummary(
        count=len(trials),
        mean_sample_mean=sum(trial.sample_mean for trial in trials) / len(trials),
        max_value=max(trial.max_value for trial in trials),
        observed_total=sum(trial.observed_total for trial in trials),
        expected_total=sum(trial.expected_total for trial in trials),
    )


def version_view(store: Store, version_id: str) -> VersionView | None:
    """Project a version with its trials, as if the version owned them."""
    version = store.get_version(version_id)
    if version is None:
        return None
    return VersionView(version=version, trials=store.get_trials(version_id))
