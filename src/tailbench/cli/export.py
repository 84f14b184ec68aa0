# Copyright (c) Syntropy Systems
"""Export command - dump the seeded dataset as JSON."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from tailbench.config import load_config
from tailbench.seed import generate_initial_state

console = Console()


def export(
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        "-s",
        help="Seed for the bootstrap dataset (default: from config)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file (default: stdout)",
    ),
) -> None:
    """Export the seeded versions, experiments, runs and trials as JSON.

    Keys are camelCase, as the view layer consumes them.
    """
    config = load_config()
    initial = generate_initial_state(seed if seed is not None else config.seed)
    payload = initial.model_dump_json(by_alias=True, indent=2)

    if output is None:
        typer.echo(payload)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    _ = output.write_text(payload)
    console.print(f"[green]Exported[/green] {len(initial.versions)} versions to {output}")
