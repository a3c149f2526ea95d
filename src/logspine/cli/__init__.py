"""logspine CLI - list possible paths and parse log files from the shell."""

from logspine.cli.app import app, main

__all__ = ["app", "main"]
