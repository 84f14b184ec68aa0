# Copyright (c) Syntropy Systems
"""Concurrency tests for the store and trial runner."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from tailbench.store import compute_derived_state
from tailbench.trials import TrialRunner, generate_trial

if TYPE_CHECKING:
    from tailbench.models.trial import DistributionConfig, Trial
    from tailbench.store import Store


class TestConcurrentTrials:
    """Test trials added from many threads."""

    def test_no_lost_updates(
        self, seeded_store: Store, base_config: DistributionConfig
    ) -> None:
        """Verify every trial added to one run is kept."""
        run_id = seeded_store.runs[0].id
        num_workers = 8
        per_worker = 10
        errors: list[str] = []
        lock = threading.Lock()

        def worker_loop(worker_id: int) -> None:
            for i in range(per_worker):
                try:
                    trial = generate_trial(
                        base_config, run_id, {"id": f"w{worker_id}-t{i}"}
                    )
                    _ = seeded_store.add_trial(run_id, trial)
                except Exception as e:  # noqa: BLE001
                    with lock:
                        errors.append(str(e))

        threads = [
            threading.Thread(target=worker_loop, args=(i,)) for i in range(num_workers)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert not errors, f"Errors occurred: {errors}"
        trials = seeded_store.get_trials(run_id)
        assert len(trials) == 4 + num_workers * per_worker
        assert len({t.id for t in trials}) == len(trials)

        state = seeded_store.state
        assert compute_derived_state(state.versions, state.experiments, state.runs) == state.derived

    def test_runner_from_threads(
        self, seeded_store: Store, base_config: DistributionConfig
    ) -> None:
        """Verify overlapping run_trial calls either store a trial or are skipped."""
        runner = TrialRunner(seeded_store, base_config)
        results: list[Trial | None] = []
        lock = threading.Lock()

        def worker_loop() -> None:
            for _ in range(5):
                trial = runner.run_trial()
                with lock:
                    results.append(trial)

        threads = [threading.Thread(target=worker_loop) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        stored = [trial for trial in results if trial is not None]
        assert len(results) == 20
        assert stored
        assert len(seeded_store.get_current_trials()) == 4 + len(stored)
        assert not runner.is_running
