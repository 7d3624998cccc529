"""soloconf CLI — Typer-based command-line interface.

Provides the ``soloconf`` command with subcommands for creating, showing,
validating and recording commands against a deployment's remote config.

All output uses Rich for formatted terminal display.
"""
