# Copyright (c) Syntropy Systems
"""tailbench trial command."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tailbench.aggregate import chart_rows, summarize_trials
from tailbench.config import load_config
from tailbench.distribution import detection_power
from tailbench.errors import InvalidConfigurationError
from tailbench.store import Store
from tailbench.trials import TrialRunner, coerce_config

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tailbench.models.state import Experiment, TargetVersion

console = Console()

BAR_SCALE = 2


def resolve_entity(
    entities: Sequence[TargetVersion] | Sequence[Experiment],
    key: str,
) -> str | None:
    """Match an entity by exact id, else by case-insensitive name."""
    for entity in entities:
        if entity.id == key:
            return entity.id
    for entity in entities:
        if entity.name.lower() == key.lower():
            return entity.id
    return None


def trial(
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        "-s",
        help="Seed for the bootstrap dataset (default: from config)",
    ),
    version: Optional[str] = typer.Option(
        None,
        "--version",
        "-v",
        help="Version ID or name to run against (default: first version)",
    ),
    experiment: Optional[str] = typer.Option(
        None,
        "--experiment",
        "-e",
        help="Experiment ID or name to run under",
    ),
    samples: Optional[int] = typer.Option(
        None,
        "--samples",
        "-n",
        help="Samples per trial (default: from config)",
    ),
    std_dev: Optional[float] = typer.Option(
        None,
        "--std-dev",
        help="Standard deviation (default: from config)",
    ),
) -> None:
    """Run one trial and show its histogram.

    Example:
        tailbench trial --version v1.0.3 --experiment heavy --samples 200

    """
    config = load_config()
    store = Store.from_seed(seed if seed is not None else config.seed)

    params = config.distribution().model_dump()
    if samples is not None:
        params["samples_per_trial"] = samples
    if std_dev is not None:
        params["std_dev"] = std_dev
    try:
        dist = coerce_config(params)
    except InvalidConfigurationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if version is not None:
        version_id = resolve_entity(store.versions, version)
        if version_id is None:
            console.print(f"[red]Error:[/red] Version not found: {version}")
            raise typer.Exit(1)
        _ = store.set_current_version(version_id)

    if experiment is not None:
        experiment_id = resolve_entity(store.experiments, experiment)
        if experiment_id is None:
            console.print(f"[red]Error:[/red] Experiment not found: {experiment}")
            raise typer.Exit(1)
        _ = store.set_current_experiment(experiment_id)

    runner = TrialRunner(store, dist)
    new_trial = runner.run_trial()
    if new_trial is None:
        console.print("[red]Error:[/red] Trial could not be run")
        raise typer.Exit(1)

    current_version = store.get_current_version()
    current_experiment = store.get_current_experiment()
    run_trials = store.get_current_trials()

    console.print(f"\n[bold]Trial {new_trial.id}[/bold]")
    console.print(
        f"  [dim]version:[/dim] {current_version.name if current_version else '-'}"
    )
    console.print(
        f"  [dim]experiment:[/dim] {current_experiment.name if current_experiment else '-'}"
    )

    table = Table(show_header=True, header_style="bold")
    table.add_column("Range")
    table.add_column("σ", justify="right")
    table.add_column("Expected", justify="right")
    table.add_column("Observed", justify="right")
    table.add_column("")

    for row in chart_rows(new_trial.buckets, dist.mean, dist.std_dev):
        table.add_row(
            row["range"],
            row["sigma"],
            f"{row['expected']:.2f}",
            str(row["observed"]),
            "[cyan]" + "█" * (row["observed"] * BAR_SCALE) + "[/cyan]",
        )
    console.print(table)

    summary = summarize_trials(run_trials)
    console.print(f"  [dim]max value:[/dim] {new_trial.max_value:.2f}")
    console.print(f"  [dim]sample mean:[/dim] {new_trial.sample_mean:.2f}")
    console.print(
        f"  [dim]out of domain:[/dim] {new_trial.dropped(dist.samples_per_trial)}"
    )
    console.print(f"  [dim]trials in run:[/dim] {summary.count}")
    power = detection_power(dist.samples_per_trial, summary.count, dist.tail_probability)
    console.print(f"  [dim]detection power:[/dim] {power:.1f}%")
