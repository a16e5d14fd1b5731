"""buildsift CLI — Typer-based command-line interface.

Provides the ``buildsift`` command with subcommands for parsing captured
build output, monitoring a live build, and choosing a rebuild strategy.

Human-facing output uses Rich; machine-facing output is plain JSON.
"""
