# Copyright (c) Syntropy Systems
"""Tests for display aggregates."""

import pytest

from tailbench.aggregate import (
    aggregate_buckets,
    chart_rows,
    max_value_points,
    summarize_trials,
    version_view,
)
from tailbench.models.trial import DistributionConfig
from tailbench.store import Store
from tailbench.trials import generate_trial


class TestChartRows:
    """Tests for chart rows."""

    def test_rows(self, base_config: DistributionConfig) -> None:
        """Test range text and sigma distance."""
        trial = generate_trial(base_config, "v1", {"id": "x"})
        rows = chart_rows(trial.buckets, 100, 10)

        assert len(rows) == 30
        assert rows[0]["range"] == "60.0 - 63.0"
        # Midpoint 61.5 is 3.85 sd below the mean
        assert rows[0]["sigma"] == "-3.85"
        assert rows[0]["observed"] == trial.buckets[0].observed


class TestMaxValuePoints:
    """Tests for max value markers."""

    def test_opacity_ramp(self, base_config: DistributionConfig) -> None:
        """Test opacity goes from 0.3 to 1.0."""
        trials = [generate_trial(base_config, "v1", {"id": f"t{i}"}) for i in range(3)]
        points = max_value_points(trials)

        assert [p["trial_id"] for p in points] == ["t0", "t1", "t2"]
        assert points[0]["opacity"] == pytest.approx(0.3)
        assert points[1]["opacity"] == pytest.approx(0.65)
        assert points[2]["opacity"] == pytest.approx(1.0)
        assert points[0]["x"] == trials[0].max_value

    def test_single_trial(self, base_config: DistributionConfig) -> None:
        """Test a single trial gets the minimum opacity."""
        points = max_value_points([generate_trial(base_config, "v1", {"id": "t"})])
        assert points[0]["opacity"] == pytest.approx(0.3)

    def test_empty(self) -> None:
        """Test no trials gives no points."""
        assert max_value_points([]) == []


class TestAggregateBuckets:
    """Tests for summed histograms."""

    def test_same_layout_sums(self, base_config: DistributionConfig) -> None:
        """Test trials with one config merge bucket by bucket."""
        trials = [generate_trial(base_config, "v1", {"id": f"t{i}"}) for i in range(4)]
        merged = aggregate_buckets(trials)

        assert len(merged) == 30
        assert sum(b.observed for b in merged) == sum(t.observed_total for t in trials)
        assert merged[5].expected == pytest.approx(4 * trials[0].buckets[5].expected)

    def test_mixed_layouts(self, base_config: DistributionConfig) -> None:
        """Test trials with different configs keep separate buckets."""
        other = base_config.model_copy(update={"mean": 200})
        trials = [
            generate_trial(base_config, "v1", {"id": "a"}),
            generate_trial(other, "v1", {"id": "b"}),
        ]
        merged = aggregate_buckets(trials)
        assert len(merged) == 60
        assert [b.start for b in merged] == sorted(b.start for b in merged)

    def test_does_not_mutate_inputs(self, base_config: DistributionConfig) -> None:
        """Test merging leaves the trials untouched."""
        trial = generate_trial(base_config, "v1", {"id": "a"})
        before = trial.model_dump()
        _ = aggregate_buckets([trial, trial])
        assert trial.model_dump() == before


class TestSummaries:
    """Tests for trial summaries and version views."""

    def test_summary(self, base_config: DistributionConfig) -> None:
        """Test summary stats over trials."""
        trials = [generate_trial(base_config, "v1", {"id": f"t{i}"}) for i in range(3)]
        summary = summarize_trials(trials)

        assert summary.count == 3
        assert summary.max_value == max(t.max_value for t in trials)
        assert summary.mean_sample_mean == pytest.approx(
            sum(t.sample_mean for t in trials) / 3
        )
        assert summary.observed_total <= 60

    def test_empty_summary(self) -> None:
        """Test the summary of nothing."""
        summary = summarize_trials([])
        assert summary.count == 0
        assert summary.max_value is None

    def test_version_view(self, seeded_store: Store) -> None:
        """Test a version projected with all its runs' trials."""
        version = seeded_store.versions[2]
        view = version_view(seeded_store, version.id)

        assert view is not None
        assert view.version == version
        # Third seeded version runs three experiments, four trials each
        assert len(view.trials) == 12
        timestamps = [t.timestamp for t in view.trials]
        assert timestamps == sorted(timestamps)

    def test_version_view_unknown(self, seeded_store: Store) -> None:
        """Test an unknown version has no view."""
        assert version_view(seeded_store, "missing") is None
