# Copyright (c) Syntropy Systems
"""tailbench versions command."""

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tailbench.errors import InvalidVersionTagError
from tailbench.ids import generate_version_id, parse_version_id, sort_version_ids

console = Console()


def versions(
    version_ids: Optional[list[str]] = typer.Argument(
        None,
        help="Version IDs (<sha> or <sha>@<tag>) to sort by tag",
    ),
    new: Optional[str] = typer.Option(
        None,
        "--new",
        help="Generate a new version ID with this tag (x.y or x.y.z)",
    ),
) -> None:
    """Sort version IDs by tag, or generate a new one.

    Example:
        tailbench versions 3fa9c1e@1.10 7be2d04@1.2 a01f9b3

    """
    if new is not None:
        try:
            console.print(generate_version_id(new))
        except InvalidVersionTagError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1) from e
        return

    if not version_ids:
        console.print("[red]Error:[/red] No version IDs provided")
        raise typer.Exit(1)

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim")
    table.add_column("SHA")
    table.add_column("Tag")

    for idx, version_id in enumerate(sort_version_ids(version_ids), 1):
        parts = parse_version_id(version_id)
        table.add_row(str(idx), parts.sha, parts.tag or "-")

    console.print(table)
