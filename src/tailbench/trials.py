# Copyright (c) Syntropy Systems
"""Trial generation: sample the mixture, bin it, package the stats."""
from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Union

from pydantic import ValidationError
from typing_extensions import TypeAlias

from tailbench.distribution import compute_layout
from tailbench.errors import InvalidConfigurationError
from tailbench.ids import generate_id
from tailbench.models.trial import DistributionConfig, Trial
from tailbench.rng import make_generator, seed_from_id

if TYPE_CHECKING:
    from collections.abc import Callable

    from tailbench.store import Store

logger = logging.getLogger(__name__)

ConfigLike: TypeAlias = Union[DistributionConfig, Mapping[str, object]]

REQUIRED_FIELDS = {
    "mean": "mean",
    "std_dev": "stdDev",
    "tail_shift": "tailShift",
    "tail_probability": "tailProbability",
    "samples_per_trial": "samplesPerTrial",
}

# Override keys accepted in either spelling, mapped to Trial field names
_OVERRIDE_KEYS = {
    "parentId": "parent_id",
    "runId": "parent_id",
    "run_id": "parent_id",
    "targetVersionId": "parent_id",
    "target_version_id": "parent_id",
    "maxValue": "max_value",
    "sampleMean": "sample_mean",
}


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def coerce_config(config: ConfigLike) -> DistributionConfig:
    """Validate distribution parameters.

    Every parameter must be present and not None; nothing is defaulted.

    Raises:
        InvalidConfigurationError: on a missing or out-of-range parameter.

    """
    if isinstance(config, DistributionConfig):
        return config

    missing = [
        name
        for name, alias in REQUIRED_FIELDS.items()
        if config.get(name) is None and config.get(alias) is None
    ]
    if missing:
        msg = f"Missing distribution parameters: {', '.join(missing)}"
        raise InvalidConfigurationError(msg)

    try:
        return DistributionConfig.model_validate(dict(config))
    except ValidationError as e:
        msg = f"Invalid distribution parameters: {e}"
        raise InvalidConfigurationError(msg) from e


def draw_sample(rng: Callable[[], float], config: DistributionConfig) -> float:
    """Draw one value from the mixture with Box-Muller.

    Consumes three values from ``rng``: component choice, radius, angle.
    """
    u1 = rng()
    u2 = rng()
    component_mean = config.tail_mean if u1 < config.tail_probability else config.mean
    z = math.sqrt(-2 * math.log(u2)) * math.cos(2 * math.pi * rng())
    return component_mean + z * config.std_dev


def _as_str(value: object) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _normalize_overrides(overrides: Mapping[str, object] | None) -> dict[str, object]:
    if not overrides:
        return {}
    return {_OVERRIDE_KEYS.get(key, key): value for key, value in overrides.items()}


def generate_trial(
    config: ConfigLike,
    parent_id: str,
    overrides: Mapping[str, object] | None = None,
) -> Trial:
    """Generate one trial for a version or run.

    The samples are seeded from the trial id, so the same id and config
    always reproduce the same histogram. ``overrides`` (``id``,
    ``timestamp``, ``parent_id``/``runId`` ...) replace the generated
    values and are applied last.
    """
    dist = coerce_config(config)
    extra = _normalize_overrides(overrides)

    trial_id = _as_str(extra.get("id")) or generate_id()
    layout = compute_layout(dist)
    rng = make_generator(seed_from_id(trial_id))

    samples = [draw_sample(rng, dist) for _ in range(dist.samples_per_trial)]

    counts = [0] * len(layout.buckets)
    for value in samples:
        index = layout.bucket_index(value)
        if index is not None:
            counts[index] += 1

    fields: dict[str, object] = {
        "id": trial_id,
        "parent_id": parent_id,
        "buckets": [
            bucket.model_copy(update={"observed": count})
            for bucket, count in zip(layout.buckets, counts)
        ],
        "max_value": max(samples),
        "timestamp": now_ms(),
        "sample_mean": sum(samples) / len(samples),
    }
    fields.update(extra)
    return Trial.model_validate(fields)


class TrialRunner:
    """Generates trials for the store's current selection.

    ``is_running`` debounces overlapping requests; a second call while one
    is in flight returns None without generating anything.
    """

    def __init__(self, store: Store, config: ConfigLike) -> None:
        self.store = store
        self.config = coerce_config(config)
        self._guard = threading.Lock()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def run_trial(self, overrides: Mapping[str, object] | None = None) -> Trial | None:
        """Generate a trial for the current version/experiment and store it."""
        with self._guard:
            if self._running:
                logger.debug("Trial already running, ignoring request")
                return None
            self._running = True

        try:
            version = self.store.get_current_version()
            if version is None:
                logger.warning("No current version selected, cannot run trial")
                return None

            run = self.store.get_current_run()
            parent_id = run.id if run is not None else version.id
            trial = generate_trial(self.config, parent_id, overrides)
            _ = self.store.add_trial(parent_id, trial)
            stored = self.store.get_trial_by_id(trial.id)
            if stored is None:
                logger.error("Trial %s was not stored", trial.id)
            return stored
        finally:
            self._running = False
