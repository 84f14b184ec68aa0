# Copyright (c) Syntropy Systems
"""Main CLI entry point for tailbench."""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from tailbench.cli.export import export
from tailbench.cli.power import power
from tailbench.cli.state import state
from tailbench.cli.trial import trial
from tailbench.cli.versions import versions
from tailbench.config import load_config

app = typer.Typer(
    name="tailbench",
    help=(
        "Tail-latency trial simulation. Sample a bimodal distribution, "
        "bucket it, compare observed against expected."
    ),
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    ),
) -> None:
    """Configure logging before any command runs."""
    level_name = (log_level or load_config().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


# Register commands
_ = app.command()(state)
_ = app.command()(trial)
_ = app.command(name="export")(export)
_ = app.command()(power)
_ = app.command()(versions)


if __name__ == "__main__":
    app()
