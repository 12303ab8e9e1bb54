"""flipwire CLI — Typer-based operator tooling.

Provides the ``flipwire`` command with subcommands for listing and
validating explicit bindings.  All output uses Rich.
"""
