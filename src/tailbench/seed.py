# Copyright (c) Syntropy Systems
"""Deterministic bootstrap dataset for demos and tests."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tailbench.ids import generate_id, generate_version_id
from tailbench.models.state import (
    Experiment,
    ExperimentParameters,
    ExperimentRun,
    InitialState,
    TargetVersion,
)
from tailbench.models.trial import DistributionConfig
from tailbench.rng import SeededRandom
from tailbench.trials import generate_trial

if TYPE_CHECKING:
    from collections.abc import Callable

DEFAULT_SEED = 12345

# February 8, 2024 00:00:00 UTC
BASE_TIMESTAMP = 1707350400000
HOUR_MS = 3_600_000
MINUTE_MS = 60_000
SECOND_MS = 1_000

VERSION_COUNT = 5
TRIALS_PER_RUN = 4
TAGGED_VERSION_INDEX = 2

BASE_CONFIG = DistributionConfig(
    mean=100,
    std_dev=10,
    tail_shift=3,
    tail_probability=0.01,
    samples_per_trial=20,
)


@dataclass(frozen=True)
class WorkloadProfile:
    """A seeded experiment and how it skews the distribution."""

    name: str
    description: str
    parameters: ExperimentParameters
    color: str
    mean_factor: float = 1.0
    std_dev_factor: float = 1.0
    tail_probability_factor: float = 1.0


WORKLOADS = (
    WorkloadProfile(
        name="idle",
        description="No background load; the system is otherwise quiet.",
        parameters=ExperimentParameters(
            cpu_threads=0, memory_pressure=0.0, io_rate=0.0, network_traffic=0.0
        ),
        color="#82ca9d",
    ),
    WorkloadProfile(
        name="medium",
        description="Moderate CPU and IO contention from background workers.",
        parameters=ExperimentParameters(
            cpu_threads=4, memory_pressure=0.4, io_rate=200.0, network_traffic=50.0
        ),
        color="#ffc658",
        mean_factor=1.05,
    ),
    WorkloadProfile(
        name="heavy",
        description="Saturated CPU, high memory pressure and sustained IO.",
        parameters=ExperimentParameters(
            cpu_threads=16, memory_pressure=0.85, io_rate=1000.0, network_traffic=400.0
        ),
        color="#ff7f50",
        mean_factor=1.10,
        std_dev_factor=1.25,
        tail_probability_factor=3.0,
    ),
)

# Workload names run against each version, by version index
VERSION_COVERAGE = (
    ("idle",),
    ("idle", "medium"),
    ("idle", "medium", "heavy"),
    ("idle", "heavy"),
    ("idle", "medium", "heavy"),
)


def workload_config(base: DistributionConfig, workload: WorkloadProfile) -> DistributionConfig:
    """Apply a workload's skew to a version's distribution."""
    return base.model_copy(
        update={
            "mean": base.mean * workload.mean_factor,
            "std_dev": base.std_dev * workload.std_dev_factor,
            "tail_probability": min(
                1.0, base.tail_probability * workload.tail_probability_factor
            ),
        }
    )


def _unique(draw: Callable[[], str], used: set[str]) -> str:
    value = draw()
    while value in used:
        value = draw()
    used.add(value)
    return value


def generate_initial_state(seed: int = DEFAULT_SEED) -> InitialState:
    """Build the bootstrap versions, experiments, runs and trials.

    Every id, timestamp and sample comes from the seeded stream or fixed
    constants, so equal seeds give equal states.
    """
    rng = SeededRandom(seed)
    used_ids: set[str] = set()

    experiments: list[Experiment] = []
    for workload in WORKLOADS:
        experiment_id = _unique(lambda: generate_id(rng=rng), used_ids)
        experiments.append(
            Experiment(
                id=experiment_id,
                name=workload.name,
                description=workload.description,
                parameters=workload.parameters,
                color=workload.color,
            )
        )
    by_name = {
        experiment.name: (experiment, workload)
        for experiment, workload in zip(experiments, WORKLOADS)
    }

    versions: list[TargetVersion] = []
    runs: list[ExperimentRun] = []

    for i in range(VERSION_COUNT):
        # Slightly vary parameters per version to simulate different builds
        version_config = BASE_CONFIG.model_copy(
            update={
                "mean": BASE_CONFIG.mean + rng.range(-5, 5),
                "std_dev": BASE_CONFIG.std_dev + rng.range(-2, 2),
            }
        )

        if i == TAGGED_VERSION_INDEX:
            patch = rng.range_int(1, 9)
            tag = f"1.0.{patch}"
            version_id = _unique(lambda: generate_version_id(tag, rng=rng), used_ids)
            name = f"v{tag}"
        else:
            version_id = _unique(lambda: generate_version_id(rng=rng), used_ids)
            name = f"Version {i + 1}"

        version_timestamp = BASE_TIMESTAMP + i * HOUR_MS
        versions.append(TargetVersion(id=version_id, name=name, timestamp=version_timestamp))

        for k, workload_name in enumerate(VERSION_COVERAGE[i]):
            experiment, workload = by_name[workload_name]
            run_id = _unique(lambda: f"run-{rng.range_int(10000, 99999)}", used_ids)
            run_timestamp = version_timestamp + k * MINUTE_MS
            run_config = workload_config(version_config, workload)

            trials = []
            for j in range(TRIALS_PER_RUN):
                trial_id = _unique(
                    lambda: f"trial-{rng.range_int(10000, 99999)}", used_ids
                )
                trials.append(
                    generate_trial(
                        run_config,
                        run_id,
                        {"id": trial_id, "timestamp": run_timestamp + j * SECOND_MS},
                    )
                )

            runs.append(
                ExperimentRun(
                    id=run_id,
                    version_id=version_id,
                    experiment_id=experiment.id,
                    trials=trials,
                    timestamp=run_timestamp,
                )
            )

    return InitialState(seed=seed, versions=versions, experiments=experiments, runs=runs)
