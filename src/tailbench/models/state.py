# Copyright (c) Syntropy Systems
"""Pydantic models for versions, experiments, runs and store state."""

from __future__ import annotations

from pydantic import Field

from .base import TailbenchBaseModel, TailbenchRecord
from .trial import Trial


class TargetVersion(TailbenchRecord):
    """A build or revision under test."""

    id: str
    name: str
    timestamp: int


class ExperimentParameters(TailbenchRecord):
    """Workload knobs of an experiment. All optional."""

    cpu_threads: int | None = None
    memory_pressure: float | None = None
    io_rate: float | None = None
    network_traffic: float | None = None


class Experiment(TailbenchRecord):
    """A named workload profile, independent of any version."""

    id: str
    name: str
    description: str = ""
    parameters: ExperimentParameters = Field(default_factory=ExperimentParameters)
    color: str = "#8884d8"


class ExperimentRun(TailbenchRecord):
    """The pairing of one version with one experiment. Owns its trials."""

    id: str
    version_id: str
    experiment_id: str
    trials: list[Trial] = Field(default_factory=list)
    timestamp: int


class DerivedState(TailbenchRecord):
    """Lookup indexes rebuilt from the base collections on every mutation."""

    version_map: dict[str, TargetVersion] = Field(default_factory=dict)
    experiment_map: dict[str, Experiment] = Field(default_factory=dict)
    run_map: dict[str, ExperimentRun] = Field(default_factory=dict)
    version_runs: dict[str, list[ExperimentRun]] = Field(default_factory=dict)
    experiment_runs: dict[str, list[ExperimentRun]] = Field(default_factory=dict)
    version_experiments: dict[str, list[str]] = Field(default_factory=dict)
    run_trials: dict[str, list[Trial]] = Field(default_factory=dict)


class StoreState(TailbenchRecord):
    """Full store snapshot: base collections, selection cursor and indexes."""

    versions: list[TargetVersion] = Field(default_factory=list)
    experiments: list[Experiment] = Field(default_factory=list)
    runs: list[ExperimentRun] = Field(default_factory=list)
    current_version_id: str | None = None
    current_experiment_id: str | None = None
    derived: DerivedState = Field(default_factory=DerivedState)


class InitialState(TailbenchBaseModel):
    """Seeded bootstrap dataset."""

    seed: int
    versions: list[TargetVersion] = Field(default_factory=list)
    experiments: list[Experiment] = Field(default_factory=list)
    runs: list[ExperimentRun] = Field(default_factory=list)
