"""Subcommand implementations, registered in ``buildsift.cli.app``."""
