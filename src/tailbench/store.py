# Copyright (c) Syntropy Systems
"""In-memory store of versions, experiments, runs and trials.

Every mutation is a pure function ``(state, ...) -> state`` that builds new
top-level collections and a freshly derived index set. Invalid references
are logged and return the prior state unchanged. ``Store`` owns the
current state and serializes mutations with a lock.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING, Callable, Union

from pydantic import BaseModel
from typing_extensions import TypeAlias

from tailbench.ids import generate_id, generate_version_id
from tailbench.models.state import (
    DerivedState,
    Experiment,
    ExperimentRun,
    InitialState,
    StoreState,
    TargetVersion,
)
from tailbench.trials import now_ms

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tailbench.models.trial import Trial

logger = logging.getLogger(__name__)

Clock: TypeAlias = Callable[[], int]
EntityData: TypeAlias = Union[Mapping[str, object], BaseModel, None]

IDLE_EXPERIMENT_NAME = "idle"

EXPERIMENT_COLORS = (
    "#8884d8",
    "#82ca9d",
    "#ffc658",
    "#ff7f50",
    "#a4de6c",
    "#d0ed57",
)


def _as_mapping(data: EntityData) -> dict[str, object]:
    if data is None:
        return {}
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def _field(data: Mapping[str, object], name: str, alias: str | None = None) -> object:
    """Read a field by snake_case or camelCase name. Falsy means unset."""
    value = data.get(name)
    if not value and alias is not None:
        value = data.get(alias)
    return value or None


# -- derived state ---------------------------------------------------------


def compute_derived_state(
    versions: Sequence[TargetVersion],
    experiments: Sequence[Experiment],
    runs: Sequence[ExperimentRun],
) -> DerivedState:
    """Build the lookup indexes from the base collections.

    Pure: the same collections always produce equal indexes.
    """
    version_map = {version.id: version for version in versions}
    experiment_map = {experiment.id: experiment for experiment in experiments}
    run_map: dict[str, ExperimentRun] = {}
    version_runs: dict[str, list[ExperimentRun]] = {v.id: [] for v in versions}
    experiment_runs: dict[str, list[ExperimentRun]] = {e.id: [] for e in experiments}
    version_experiments: dict[str, list[str]] = {v.id: [] for v in versions}
    run_trials: dict[str, list[Trial]] = {}

    for run in runs:
        run_map[run.id] = run
        version_runs.setdefault(run.version_id, []).append(run)
        experiment_runs.setdefault(run.experiment_id, []).append(run)
        reachable = version_experiments.setdefault(run.version_id, [])
        if run.experiment_id not in reachable:
            reachable.append(run.experiment_id)
        run_trials[run.id] = list(run.trials)

    return DerivedState(
        version_map=version_map,
        experiment_map=experiment_map,
        run_map=run_map,
        version_runs=version_runs,
        experiment_runs=experiment_runs,
        version_experiments=version_experiments,
        run_trials=run_trials,
    )


def build_state(
    versions: Sequence[TargetVersion],
    experiments: Sequence[Experiment],
    runs: Sequence[ExperimentRun],
    current_version_id: str | None,
    current_experiment_id: str | None,
) -> StoreState:
    """Assemble a state with freshly derived indexes."""
    return StoreState(
        versions=list(versions),
        experiments=list(experiments),
        runs=list(runs),
        current_version_id=current_version_id,
        current_experiment_id=current_experiment_id,
        derived=compute_derived_state(versions, experiments, runs),
    )


def empty_state() -> StoreState:
    """A store with nothing in it."""
    return build_state([], [], [], None, None)


# -- selection rules -------------------------------------------------------


def find_idle_experiment(experiments: Sequence[Experiment]) -> Experiment | None:
    """The experiment named "idle", case-insensitive."""
    for experiment in experiments:
        if experiment.name.lower() == IDLE_EXPERIMENT_NAME:
            return experiment
    return None


def default_experiment_id(
    derived: DerivedState,
    experiments: Sequence[Experiment],
    version_id: str | None,
    current_experiment_id: str | None = None,
) -> str | None:
    """Pick the experiment to select alongside ``version_id``.

    Keeps the current experiment if the version already has a run for it,
    else the first experiment the version has a run for, else "idle",
    else None.
    """
    if version_id is not None:
        reachable = derived.version_experiments.get(version_id, [])
        if current_experiment_id is not None and current_experiment_id in reachable:
            return current_experiment_id
        for experiment_id in reachable:
            if experiment_id in derived.experiment_map:
                return experiment_id

    idle = find_idle_experiment(experiments)
    return idle.id if idle is not None else None


def find_current_run(
    state: StoreState,
    version_id: str | None = None,
    experiment_id: str | None = None,
) -> ExperimentRun | None:
    """Most recent run for the version/experiment pair.

    Defaults to the current selection. Duplicate runs for one pair are
    allowed; the greatest timestamp wins and ties go to the later run.
    """
    version_id = version_id or state.current_version_id
    experiment_id = experiment_id or state.current_experiment_id
    if version_id is None or experiment_id is None:
        return None

    matches = [
        run
        for run in state.derived.version_runs.get(version_id, [])
        if run.experiment_id == experiment_id
    ]
    if not matches:
        return None
    _, latest = max(enumerate(matches), key=lambda item: (item[1].timestamp, item[0]))
    return latest


def _select_defaults(state: StoreState) -> StoreState:
    version_id = state.versions[0].id if state.versions else None
    experiment_id = default_experiment_id(state.derived, state.experiments, version_id)
    return state.model_copy(
        update={
            "current_version_id": version_id,
            "current_experiment_id": experiment_id,
        }
    )


# -- reducers --------------------------------------------------------------


def initialize(state: StoreState, data: InitialState) -> StoreState:
    """Bulk-load a dataset and select its first version."""
    _ = state
    new_state = _select_defaults(
        build_state(data.versions, data.experiments, data.runs, None, None)
    )
    logger.debug(
        "Initialized store: %d versions, %d experiments, %d runs",
        len(new_state.versions),
        len(new_state.experiments),
        len(new_state.runs),
    )
    return new_state


def reset_app(state: StoreState, data: InitialState) -> StoreState:
    """Replace every collection wholesale and re-derive the selection."""
    _ = state
    new_state = _select_defaults(
        build_state(data.versions, data.experiments, data.runs, None, None)
    )
    logger.info("Store reset with %d versions", len(new_state.versions))
    return new_state


def set_current_version(state: StoreState, version_id: str) -> StoreState:
    """Select a version and re-derive the experiment selection."""
    if version_id not in state.derived.version_map:
        logger.error("Version not found: %s", version_id)
        return state

    experiment_id = default_experiment_id(
        state.derived,
        state.experiments,
        version_id,
        state.current_experiment_id,
    )
    logger.debug("Current version set to %s (experiment %s)", version_id, experiment_id)
    return state.model_copy(
        update={
            "current_version_id": version_id,
            "current_experiment_id": experiment_id,
        }
    )


def set_current_experiment(state: StoreState, experiment_id: str) -> StoreState:
    """Select an experiment."""
    if experiment_id not in state.derived.experiment_map:
        logger.error("Experiment not found: %s", experiment_id)
        return state

    logger.debug("Current experiment set to %s", experiment_id)
    return state.model_copy(update={"current_experiment_id": experiment_id})


def add_version(
    state: StoreState,
    data: EntityData = None,
    *,
    clock: Clock = now_ms,
) -> StoreState:
    """Append a version and make it current.

    Unset fields default to a fresh short sha, ``"Version <n+1>"`` and now.
    """
    values = _as_mapping(data)
    version = TargetVersion.model_validate(
        {
            "id": _field(values, "id") or generate_version_id(),
            "name": _field(values, "name") or f"Version {len(state.versions) + 1}",
            "timestamp": _field(values, "timestamp") or clock(),
        }
    )
    if version.id in state.derived.version_map:
        logger.error("Version already exists: %s", version.id)
        return state

    versions = [*state.versions, version]
    derived = compute_derived_state(versions, state.experiments, state.runs)
    experiment_id = default_experiment_id(
        derived,
        state.experiments,
        version.id,
        state.current_experiment_id,
    )
    logger.debug("Added version %s (%s)", version.id, version.name)
    return StoreState(
        versions=versions,
        experiments=list(state.experiments),
        runs=list(state.runs),
        current_version_id=version.id,
        current_experiment_id=experiment_id,
        derived=derived,
    )


def add_experiment(state: StoreState, data: EntityData = None) -> StoreState:
    """Append an experiment.

    Selects it only when no experiment is selected and it is the default
    choice for the current version.
    """
    values = _as_mapping(data)
    count = len(state.experiments)
    values.update(
        id=_field(values, "id") or generate_id(),
        name=_field(values, "name") or f"Experiment {count + 1}",
        color=_field(values, "color") or EXPERIMENT_COLORS[count % len(EXPERIMENT_COLORS)],
    )
    experiment = Experiment.model_validate(values)
    if experiment.id in state.derived.experiment_map:
        logger.error("Experiment already exists: %s", experiment.id)
        return state

    experiments = [*state.experiments, experiment]
    derived = compute_derived_state(state.versions, experiments, state.runs)
    experiment_id = state.current_experiment_id
    if experiment_id is None:
        experiment_id = default_experiment_id(
            derived, experiments, state.current_version_id
        )
    logger.debug("Added experiment %s (%s)", experiment.id, experiment.name)
    return StoreState(
        versions=list(state.versions),
        experiments=experiments,
        runs=list(state.runs),
        current_version_id=state.current_version_id,
        current_experiment_id=experiment_id,
        derived=derived,
    )


def add_run(
    state: StoreState,
    data: EntityData,
    *,
    clock: Clock = now_ms,
) -> StoreState:
    """Append a run joining an existing version and experiment."""
    values = _as_mapping(data)
    version_id = _field(values, "version_id", "versionId")
    experiment_id = _field(values, "experiment_id", "experimentId")

    if version_id not in state.derived.version_map:
        logger.error("Cannot add run, version not found: %s", version_id)
        return state
    if experiment_id not in state.derived.experiment_map:
        logger.error("Cannot add run, experiment not found: %s", experiment_id)
        return state

    run = ExperimentRun.model_validate(
        {
            "id": _field(values, "id") or generate_id(),
            "version_id": version_id,
            "experiment_id": experiment_id,
            "trials": values.get("trials") or [],
            "timestamp": _field(values, "timestamp") or clock(),
        }
    )
    if run.id in state.derived.run_map:
        logger.error("Run already exists: %s", run.id)
        return state

    runs = [*state.runs, run]
    logger.debug(
        "Added run %s (version %s, experiment %s)",
        run.id,
        run.version_id,
        run.experiment_id,
    )
    return build_state(
        state.versions,
        state.experiments,
        runs,
        state.current_version_id,
        state.current_experiment_id,
    )


def _resolve_version_run(
    state: StoreState,
    version_id: str,
    clock: Clock,
) -> tuple[list[ExperimentRun], str] | None:
    """Find or create the run a version-addressed trial belongs to.

    Returns the (possibly extended) run list and the target run id.
    """
    runs = list(state.runs)
    is_current = version_id == state.current_version_id

    if is_current and state.current_experiment_id is not None:
        run = find_current_run(state)
        if run is not None:
            return runs, run.id
        experiment_id: str | None = state.current_experiment_id
    else:
        version_runs = state.derived.version_runs.get(version_id, [])
        if version_runs:
            _, latest = max(
                enumerate(version_runs),
                key=lambda item: (item[1].timestamp, item[0]),
            )
            return runs, latest.id
        experiment_id = default_experiment_id(
            state.derived, state.experiments, version_id
        )
        if experiment_id is None and state.experiments:
            experiment_id = state.experiments[0].id

    if experiment_id is None:
        return None

    run = ExperimentRun(
        id=generate_id(),
        version_id=version_id,
        experiment_id=experiment_id,
        timestamp=clock(),
    )
    logger.debug("Created run %s for version %s", run.id, version_id)
    runs.append(run)
    return runs, run.id


def add_trial(
    state: StoreState,
    parent_id: str,
    trial: Trial,
    *,
    clock: Clock = now_ms,
) -> StoreState:
    """Append a trial to a run, or to a version's current run.

    Addressing a version refreshes its timestamp and creates a run for it
    when it has none. The stored trial's ``parent_id`` is the run it lands in.
    """
    versions = list(state.versions)

    if parent_id in state.derived.run_map:
        runs = list(state.runs)
        target_run_id = parent_id
    elif parent_id in state.derived.version_map:
        resolved = _resolve_version_run(state, parent_id, clock)
        if resolved is None:
            logger.error("Cannot add trial, no experiment for version: %s", parent_id)
            return state
        runs, target_run_id = resolved
        versions = [
            version.model_copy(update={"timestamp": clock()})
            if version.id == parent_id
            else version
            for version in versions
        ]
    else:
        logger.error("Cannot add trial, parent not found: %s", parent_id)
        return state

    if trial.parent_id != target_run_id:
        trial = trial.model_copy(update={"parent_id": target_run_id})

    runs = [
        run.model_copy(update={"trials": [*run.trials, trial]})
        if run.id == target_run_id
        else run
        for run in runs
    ]
    logger.debug("Trial %s added to run %s", trial.id, target_run_id)
    return build_state(
        versions,
        state.experiments,
        runs,
        state.current_version_id,
        state.current_experiment_id,
    )


# -- store handle ----------------------------------------------------------


class Store:
    """Owned handle over the current ``StoreState``.

    Mutations run under a lock as one read-modify-write each; readers get
    whole immutable snapshots.
    """

    def __init__(
        self,
        state: StoreState | None = None,
        *,
        clock: Clock = now_ms,
    ) -> None:
        self._state = state if state is not None else empty_state()
        self._clock = clock
        self._lock = threading.Lock()

    @classmethod
    def from_seed(cls, seed: int, *, clock: Clock = now_ms) -> Store:
        """Create a store bootstrapped from the seeded initial state."""
        from tailbench.seed import generate_initial_state

        store = cls(clock=clock)
        _ = store.initialize(generate_initial_state(seed))
        return store

    @property
    def state(self) -> StoreState:
        return self._state

    # Mutations

    def initialize(self, data: InitialState) -> StoreState:
        with self._lock:
            self._state = initialize(self._state, data)
            return self._state

    def reset_app(self, data: InitialState) -> StoreState:
        with self._lock:
            self._state = reset_app(self._state, data)
            return self._state

    def set_current_version(self, version_id: str) -> StoreState:
        with self._lock:
            self._state = set_current_version(self._state, version_id)
            return self._state

    def set_current_experiment(self, experiment_id: str) -> StoreState:
        with self._lock:
            self._state = set_current_experiment(self._state, experiment_id)
            return self._state

    def add_version(self, data: EntityData = None) -> StoreState:
        with self._lock:
            self._state = add_version(self._state, data, clock=self._clock)
            return self._state

    def add_experiment(self, data: EntityData = None) -> StoreState:
        with self._lock:
            self._state = add_experiment(self._state, data)
            return self._state

    def add_run(self, data: EntityData) -> StoreState:
        with self._lock:
            self._state = add_run(self._state, data, clock=self._clock)
            return self._state

    def add_trial(self, parent_id: str, trial: Trial) -> StoreState:
        with self._lock:
            self._state = add_trial(self._state, parent_id, trial, clock=self._clock)
            return self._state

    # Selectors

    @property
    def versions(self) -> list[TargetVersion]:
        return list(self._state.versions)

    @property
    def experiments(self) -> list[Experiment]:
        return list(self._state.experiments)

    @property
    def runs(self) -> list[ExperimentRun]:
        return list(self._state.runs)

    def get_version(self, version_id: str) -> TargetVersion | None:
        return self._state.derived.version_map.get(version_id)

    def get_experiment(self, experiment_id: str) -> Experiment | None:
        return self._state.derived.experiment_map.get(experiment_id)

    def get_run(self, run_id: str) -> ExperimentRun | None:
        return self._state.derived.run_map.get(run_id)

    def get_runs_for_version(self, version_id: str) -> list[ExperimentRun]:
        return list(self._state.derived.version_runs.get(version_id, []))

    def get_runs_for_experiment(self, experiment_id: str) -> list[ExperimentRun]:
        return list(self._state.derived.experiment_runs.get(experiment_id, []))

    def get_experiments_for_version(self, version_id: str) -> list[Experiment]:
        derived = self._state.derived
        return [
            derived.experiment_map[experiment_id]
            for experiment_id in derived.version_experiments.get(version_id, [])
            if experiment_id in derived.experiment_map
        ]

    def get_trials(self, parent_id: str) -> list[Trial]:
        """Trials of a run, or of every run of a version.

        For a version the trials are merged across its runs and ordered by
        timestamp.
        """
        derived = self._state.derived
        if parent_id in derived.run_trials:
            return list(derived.run_trials[parent_id])
        trials = [
            trial
            for run in derived.version_runs.get(parent_id, [])
            for trial in derived.run_trials.get(run.id, [])
        ]
        return sorted(trials, key=lambda trial: trial.timestamp)

    def get_trial_by_id(self, trial_id: str) -> Trial | None:
        for trials in self._state.derived.run_trials.values():
            for trial in trials:
                if trial.id == trial_id:
                    return trial
        return None

    def get_current_version(self) -> TargetVersion | None:
        if self._state.current_version_id is None:
            return None
        return self.get_version(self._state.current_version_id)

    def get_current_experiment(self) -> Experiment | None:
        if self._state.current_experiment_id is None:
            return None
        return self.get_experiment(self._state.current_experiment_id)

    def get_current_run(self) -> ExperimentRun | None:
        return find_current_run(self._state)

    def get_current_trials(self) -> list[Trial]:
        run = self.get_current_run()
        if run is None:
            return []
        return self.get_trials(run.id)
