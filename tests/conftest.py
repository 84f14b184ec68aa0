# Copyright (c) Syntropy Systems
"""Pytest fixtures for tailbench tests."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from tailbench.models.trial import DistributionConfig
from tailbench.seed import generate_initial_state
from tailbench.store import Store

# Store original cwd at module load time
_original_cwd = Path.cwd()


class FakeClock:
    """Millisecond clock that advances by one on every call."""

    def __init__(self, start: int = 1_800_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def tailbench_project(
    temp_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Create a temporary project with an empty .tailbench directory."""
    config_dir = temp_dir / ".tailbench"
    config_dir.mkdir()

    # Keep ~/.tailbench out of the picture
    monkeypatch.setenv("HOME", str(temp_dir))
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def clock() -> FakeClock:
    """Deterministic clock for store mutations."""
    return FakeClock()


@pytest.fixture
def base_config() -> DistributionConfig:
    """The default mixture: mean 100, sd 10, 1% tail at +3 sd, 20 samples."""
    return DistributionConfig(
        mean=100,
        std_dev=10,
        tail_shift=3,
        tail_probability=0.01,
        samples_per_trial=20,
    )


@pytest.fixture
def seeded_store(clock: FakeClock) -> Store:
    """Store initialized from the default seed."""
    store = Store(clock=clock)
    _ = store.initialize(generate_initial_state(12345))
    return store


@pytest.fixture
def empty_store(clock: FakeClock) -> Store:
    """Store with no entities."""
    return Store(clock=clock)
