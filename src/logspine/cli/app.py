"""
Root Typer application for the logspine CLI.

Commands:
    logspine paths -d mypkg.dissectors:ApacheLogLine -r APACHELOGLINE
    logspine parse -d ... -r APACHELOGLINE -f IP:connection.client.host access.log
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import typer
from typer import Typer

from logspine import __version__
from logspine.cli.utils import err_console, fail, load_dissectors, output_paths, output_record
from logspine.core.errors import ConfigError, DissectionError, LogSpineError, MissingDissectorsError
from logspine.core.logging import configure_logging
from logspine.core.settings import get_settings
from logspine.framework.parser import Parser

app = Typer(
    name="logspine",
    help="logspine — demand-driven field extraction from log lines.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"logspine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOGSPINE_LOG_LEVEL."),
) -> None:
    """logspine CLI — inspect dissectors and extract fields."""
    settings = get_settings()
    configure_logging(level=log_level or settings.log_level, json_format=settings.json_logs)


def _build_parser(dissector_refs: list[str], root_type: str) -> Parser:
    parser = Parser(root_type)
    for dissector in load_dissectors(dissector_refs):
        parser.add_dissector(dissector)
    return parser


@app.command("paths")
def list_paths(
    dissectors: list[str] = typer.Option(..., "--dissector", "-d", help="Dissector as module:Class (repeatable)."),
    root_type: str = typer.Option(..., "--root-type", "-r", help="Type of the raw input line."),
    max_depth: int | None = typer.Option(None, "--max-depth", min=0, help="Recursion bound."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List every field the dissectors could produce."""
    parser = _build_parser(dissectors, root_type)
    paths = parser.get_possible_paths(max_depth)
    output_paths(paths, as_json=json_out, title=f"Paths from {root_type}")


@app.command("parse")
def parse_lines(
    dissectors: list[str] = typer.Option(..., "--dissector", "-d", help="Dissector as module:Class (repeatable)."),
    root_type: str = typer.Option(..., "--root-type", "-r", help="Type of the raw input line."),
    fields: list[str] = typer.Option(..., "--field", "-f", help="Field to extract as type:path (repeatable)."),
    input_file: Path | None = typer.Argument(None, exists=True, dir_okay=False, help="Input file; stdin if omitted."),
    keep_going: bool = typer.Option(False, "--keep-going", help="Report bad lines and continue."),
) -> None:
    """Extract the requested fields from every input line as JSON objects."""
    parser = _build_parser(dissectors, root_type)

    current: dict[str, Any] = {}

    def collect(name: str, value: Any) -> None:
        current[name] = value

    try:
        parser.add_target(collect, fields)
        parser.compile()
    except (ConfigError, MissingDissectorsError) as exc:
        fail(str(exc), code=2)

    failures = 0
    stream = input_file.open(encoding="utf-8") if input_file else sys.stdin
    try:
        for number, line in enumerate(stream, start=1):
            line = line.rstrip("\n")
            if not line:
                continue
            current.clear()
            try:
                parser.parse(line)
            except DissectionError as exc:
                if not keep_going:
                    fail(f"line {number}: {exc}")
                failures += 1
                err_console.print(f"[yellow]line {number}[/yellow]: {exc}")
                continue
            output_record(dict(current))
    except LogSpineError as exc:
        fail(str(exc))
    finally:
        if input_file:
            stream.close()

    if failures:
        raise typer.Exit(code=1)
