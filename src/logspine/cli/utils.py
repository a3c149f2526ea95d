"""
CLI utility helpers — dissector loading and output formatting.
"""

from __future__ import annotations

import importlib
import json
from collections.abc import Iterable
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from logspine.core.identifiers import split_identifier
from logspine.framework.dissector import Dissector

console = Console()
err_console = Console(stderr=True)


# ── Dissector loading ────────────────────────────────────────────────────


def load_dissector(reference: str) -> Dissector:
    """Instantiate a dissector from ``package.module:ClassName``."""
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter(f"Expected 'module:Class', got {reference!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"Cannot import {module_name!r}: {exc}") from exc

    factory = getattr(module, attr, None)
    if factory is None:
        raise typer.BadParameter(f"{module_name!r} has no attribute {attr!r}")

    dissector = factory()
    if not isinstance(dissector, Dissector):
        raise typer.BadParameter(f"{reference!r} did not produce a Dissector")
    return dissector


def load_dissectors(references: Iterable[str]) -> list[Dissector]:
    return [load_dissector(reference) for reference in references]


# ── Output helpers ───────────────────────────────────────────────────────


def output_paths(paths: list[str], *, as_json: bool = False, title: str = "") -> None:
    """Render a list of ``type:path`` identifiers."""
    if as_json:
        console.print_json(json.dumps(paths))
        return

    if not paths:
        console.print("[dim]No paths[/dim]")
        return

    table = Table(title=title or None)
    table.add_column("Type", style="cyan")
    table.add_column("Path")
    for identifier in paths:
        type_, path = split_identifier(identifier)
        table.add_row(type_, path)
    console.print(table)


def output_record(values: dict[str, Any]) -> None:
    """One parsed line as a JSON object on stdout."""
    typer.echo(json.dumps(values, default=str, sort_keys=True))


def fail(message: str, code: int = 1) -> None:
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    raise typer.Exit(code=code)
