"""``flipwire check`` — validate the bindings file.

Imports every class named by an enabled binding and checks that each
alternate has a compatible method for every public method of its source.
Exits with code 1 when anything is wrong.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from flipwire.config import config
from flipwire.core.binding_guard import binding_report
from flipwire.core.declarations import BindingTable, ConfigurationIntegrityError

console = Console()


def check_cmd(
    path: Path = typer.Option(
        None, "--path", "-p", help="Bindings file (defaults to FLIPWIRE_BINDINGS_PATH)."
    ),
    loose: bool = typer.Option(
        False, "--loose", help="Match methods by name and arity only."
    ),
) -> None:
    """Validate every enabled binding and report incompatible alternates."""
    bindings_path = path or config.bindings_path
    try:
        table = BindingTable.load(bindings_path)
    except ConfigurationIntegrityError as exc:
        console.print(f"[red]Bindings error:[/red] {exc}")
        raise typer.Exit(code=1)

    match_types = config.match_parameter_types and not loose
    findings = binding_report(table.list_bindings(), match_parameter_types=match_types)
    if not findings:
        console.print(f"[dim]No enabled bindings in {bindings_path}.[/dim]")
        return

    result = Table(title="Binding check")
    result.add_column("Source", style="cyan")
    result.add_column("Alternate", style="green")
    result.add_column("Methods", justify="right")
    result.add_column("Status")

    for finding in findings:
        if finding.self_reference:
            status = "[dim]self[/dim]"
        elif finding.ok:
            status = "[green]OK[/green]"
        else:
            status = "[red]missing: " + ", ".join(finding.missing_methods) + "[/red]"
        result.add_row(
            finding.source, finding.alternate, str(len(finding.checked_methods)), status
        )

    console.print(result)

    failed = [f for f in findings if not f.ok]
    if failed:
        for finding in failed:
            console.print(
                f"{finding.alternate} cannot stand in for {finding.source}: "
                + ", ".join(finding.missing_methods)
            )
        console.print(f"[red]{len(failed)} binding(s) incompatible.[/red]")
        raise typer.Exit(code=1)
    console.print("[green]All bindings compatible.[/green]")
