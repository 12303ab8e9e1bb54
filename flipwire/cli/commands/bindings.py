"""``flipwire bindings`` — list the records of a bindings file."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from flipwire.config import config
from flipwire.core.declarations import ConfigurationIntegrityError, read_binding_records

console = Console()


def bindings_cmd(
    path: Path = typer.Option(
        None, "--path", "-p", help="Bindings file (defaults to FLIPWIRE_BINDINGS_PATH)."
    ),
) -> None:
    """Show every binding record without importing the classes it names."""
    bindings_path = path or config.bindings_path
    if not bindings_path.exists():
        console.print(f"[dim]No bindings file at {bindings_path}.[/dim]")
        return

    try:
        records = read_binding_records(bindings_path)
    except ConfigurationIntegrityError as exc:
        console.print(f"[red]Bindings error:[/red] {exc}")
        raise typer.Exit(code=1)

    if not records:
        console.print("[dim]No bindings declared.[/dim]")
        return

    table = Table(title=f"Bindings ({bindings_path})")
    table.add_column("Source", style="cyan")
    table.add_column("Alternate", style="green")
    table.add_column("Enabled", justify="center")

    for record in records:
        enabled = "[green]Yes[/green]" if record.enabled else "[red]No[/red]"
        table.add_row(record.source, record.alternate, enabled)

    console.print(table)
