"""Main Typer application — imports and registers all CLI commands.

Entry point: ``flipwire`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from flipwire import __version__
from flipwire.cli.commands.bindings import bindings_cmd
from flipwire.cli.commands.check import check_cmd
from flipwire.config import config

app = typer.Typer(
    name="flipwire",
    help="flipwire: flip component calls to declared alternate implementations.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _configure(
    log_level: str = typer.Option(
        None, "--log-level", help="Override FLIPWIRE_LOG_LEVEL for this invocation."
    ),
) -> None:
    """Install Rich logging before any command runs."""
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="bindings", help="List explicit bindings from a bindings file.")(bindings_cmd)
app.command(name="check", help="Validate that every alternate can stand in for its source.")(check_cmd)


@app.command(name="version", help="Show the flipwire version.")
def version_cmd() -> None:
    Console().print(f"flipwire [bold]{__version__}[/bold]")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
