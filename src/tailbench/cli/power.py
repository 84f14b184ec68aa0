# Copyright (c) Syntropy Systems
"""tailbench power command."""

import typer
from rich.console import Console

from tailbench.distribution import detection_power

console = Console()


def power(
    samples: int = typer.Option(20, "--samples", "-n", help="Samples per trial"),
    trials: int = typer.Option(1, "--trials", "-t", help="Number of trials"),
    tail_probability: float = typer.Option(
        0.01,
        "--tail-probability",
        "-p",
        help="Probability that one sample comes from the tail",
    ),
) -> None:
    """Chance of seeing at least one tail event.

    Example:
        tailbench power --samples 20 --trials 10

    """
    if samples < 0 or trials < 0:
        console.print("[red]Error:[/red] samples and trials must be non-negative")
        raise typer.Exit(1)
    if not 0 <= tail_probability <= 1:
        console.print("[red]Error:[/red] tail probability must be between 0 and 1")
        raise typer.Exit(1)

    percent = detection_power(samples, trials, tail_probability)
    console.print(
        f"Detection power: [bold]{percent:.1f}%[/bold] "
        f"({samples} samples x {trials} trials, p={tail_probability})"
    )
