# Copyright (c) Syntropy Systems
"""Histogram layout and expected mass for the main + tail mixture."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TypedDict

from tailbench.models.trial import Bucket, DistributionConfig

NUM_BUCKETS = 30

# Domain spans this many std devs below the mean, and this many above the tail mean
LOWER_SIGMAS = 4
UPPER_SIGMAS = 2

# Abramowitz and Stegun 7.1.26, max abs error 1.5e-7
_ERF_P = 0.3275911
_ERF_A = (0.254829592, -0.284496736, 1.421413741, -1.453152027, 1.061405429)


def erf(x: float) -> float:
    """Gauss error function via the Abramowitz-Stegun rational approximation."""
    if x == 0:
        return 0.0
    sign = 1.0 if x > 0 else -1.0
    x = abs(x)
    t = 1.0 / (1.0 + _ERF_P * x)
    a1, a2, a3, a4, a5 = _ERF_A
    poly = ((((a5 * t + a4) * t + a3) * t + a2) * t + a1) * t
    return sign * (1.0 - poly * math.exp(-x * x))


def normal_mass(start: float, end: float, mean: float, std_dev: float) -> float:
    """Probability mass of N(mean, std_dev) over ``[start, end)``."""
    scale = math.sqrt(2) * std_dev
    return (erf((end - mean) / scale) - erf((start - mean) / scale)) / 2


def mixture_mass(start: float, end: float, config: DistributionConfig) -> float:
    """Mass of the main + tail mixture over ``[start, end)``."""
    main = normal_mass(start, end, config.mean, config.std_dev)
    tail = normal_mass(start, end, config.tail_mean, config.std_dev)
    return (1 - config.tail_probability) * main + config.tail_probability * tail


@dataclass(frozen=True)
class BucketLayout:
    """Domain and empty buckets for one distribution config."""

    domain_min: float
    domain_max: float
    bucket_size: float
    buckets: tuple[Bucket, ...]

    @property
    def domain(self) -> tuple[float, float]:
        return (self.domain_min, self.domain_max)

    def bucket_index(self, value: float) -> int | None:
        """Index of the bucket holding ``value``, or None outside the domain."""
        index = math.floor((value - self.domain_min) / self.bucket_size)
        if 0 <= index < len(self.buckets):
            return index
        return None


def compute_layout(config: DistributionConfig) -> BucketLayout:
    """Split the domain into equal buckets with their expected counts."""
    domain_min = config.mean - LOWER_SIGMAS * config.std_dev
    domain_max = config.mean + (config.tail_shift + UPPER_SIGMAS) * config.std_dev
    bucket_size = (domain_max - domain_min) / NUM_BUCKETS

    buckets: list[Bucket] = []
    for i in range(NUM_BUCKETS):
        start = domain_min + i * bucket_size
        end = domain_min + (i + 1) * bucket_size
        expected = mixture_mass(start, end, config) * config.samples_per_trial
        buckets.append(
            Bucket(
                start=start,
                end=end,
                expected=expected,
                observed=0,
                value=(start + end) / 2,
            )
        )

    return BucketLayout(
        domain_min=domain_min,
        domain_max=domain_max,
        bucket_size=bucket_size,
        buckets=tuple(buckets),
    )


class SigmaLine(TypedDict):
    """Vertical reference line for the chart."""

    value: float
    label: str


def sigma_lines(mean: float, std_dev: float) -> list[SigmaLine]:
    """Reference lines at the mean and one and two std devs either side."""
    return [
        {"value": mean, "label": "μ"},
        {"value": mean - std_dev, "label": "-σ"},
        {"value": mean + std_dev, "label": "+σ"},
        {"value": mean - 2 * std_dev, "label": "-2σ"},
        {"value": mean + 2 * std_dev, "label": "+2σ"},
    ]


def detection_power(
    samples_per_trial: int,
    num_trials: int,
    tail_probability: float = 0.01,
) -> float:
    """Percent chance that at least one tail event was sampled.

    Each sample independently misses the tail with probability
    ``1 - tail_probability``.
    """
    if samples_per_trial < 0 or num_trials < 0:
        msg = "samples_per_trial and num_trials must be non-negative"
        raise ValueError(msg)
    miss_all = (1 - tail_probability) ** (samples_per_trial * num_trials)
    return (1 - miss_all) * 100
