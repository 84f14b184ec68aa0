# Copyright (c) Syntropy Systems
"""tailbench state command."""
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from tailbench.config import load_config
from tailbench.store import Store

console = Console()


def state(
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        "-s",
        help="Seed for the bootstrap dataset (default: from config)",
    ),
) -> None:
    """Show the seeded versions, experiments and runs."""
    config = load_config()
    store = Store.from_seed(seed if seed is not None else config.seed)

    current_version = store.get_current_version()
    current_experiment = store.get_current_experiment()

    version_table = Table(title="Versions", show_header=True, header_style="bold")
    version_table.add_column("ID", style="dim")
    version_table.add_column("Name")
    version_table.add_column("Runs", justify="right")
    version_table.add_column("Trials", justify="right")

    for version in store.versions:
        marker = "[green]*[/green] " if version == current_version else ""
        version_table.add_row(
            version.id,
            f"{marker}{version.name}",
            str(len(store.get_runs_for_version(version.id))),
            str(len(store.get_trials(version.id))),
        )
    console.print(version_table)

    experiment_table = Table(title="Experiments", show_header=True, header_style="bold")
    experiment_table.add_column("ID", style="dim")
    experiment_table.add_column("Name")
    experiment_table.add_column("Description")
    experiment_table.add_column("Runs", justify="right")

    for experiment in store.experiments:
        marker = "[green]*[/green] " if experiment == current_experiment else ""
        experiment_table.add_row(
            experiment.id,
            f"{marker}{experiment.name}",
            experiment.description or "-",
            str(len(store.get_runs_for_experiment(experiment.id))),
        )
    console.print(experiment_table)

    current_run = store.get_current_run()
    console.print(
        f"\n[dim]current version:[/dim] {current_version.name if current_version else '-'}"
    )
    console.print(
        "[dim]current experiment:[/dim] "
        f"{current_experiment.name if current_experiment else '-'}"
    )
    console.print(f"[dim]current run:[/dim] {current_run.id if current_run else '-'}")
