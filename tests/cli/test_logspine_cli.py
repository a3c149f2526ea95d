"""Tests for logspine.cli — command smoke tests via CliRunner.

Dissectors are loaded from a small module written to a temporary directory,
the same way users point the CLI at their own dissector classes.
"""

from __future__ import annotations

import json
import textwrap

import pytest
import typer
from typer.testing import CliRunner

from logspine import __version__
from logspine.cli.app import app
from logspine.cli.utils import load_dissector

runner = CliRunner()

DISSECTORS = textwrap.dedent(
    """
    from logspine.testing import KeyValueDissector


    class LineSplitter(KeyValueDissector):
        def __init__(self):
            super().__init__("LINE", "STRING", keys=["a", "b"])


    def not_a_dissector():
        return object()
    """
)

SPLITTER = "cli_test_dissectors:LineSplitter"


@pytest.fixture(autouse=True)
def dissector_module(tmp_path, monkeypatch):
    (tmp_path / "cli_test_dissectors.py").write_text(DISSECTORS)
    monkeypatch.syspath_prepend(str(tmp_path))


def json_lines(output):
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


def invoke(*args, **kwargs):
    return runner.invoke(app, ["--log-level", "ERROR", *args], **kwargs)


# ─── Loading ─────────────────────────────────────────────────────────────


class TestLoadDissector:
    def test_load(self):
        dissector = load_dissector(SPLITTER)
        assert dissector.get_possible_output() == ["STRING:a", "STRING:b"]

    @pytest.mark.parametrize(
        "spec",
        [
            "no_colon",
            "missing_module_xyz:Thing",
            "cli_test_dissectors:Missing",
            "cli_test_dissectors:not_a_dissector",
        ],
    )
    def test_bad_specs(self, spec):
        with pytest.raises(typer.BadParameter):
            load_dissector(spec)


# ─── Top level ───────────────────────────────────────────────────────────


class TestTopLevel:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


# ─── paths ───────────────────────────────────────────────────────────────


class TestPathsCommand:
    def test_json(self):
        result = invoke("paths", "-d", SPLITTER, "-r", "LINE", "--json")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == ["STRING:a", "STRING:b"]

    def test_table(self):
        result = invoke("paths", "-d", SPLITTER, "-r", "LINE")
        assert result.exit_code == 0, result.output
        assert "STRING" in result.stdout

    def test_no_paths(self):
        result = invoke("paths", "-d", SPLITTER, "-r", "OTHER")
        assert result.exit_code == 0
        assert "No paths" in result.stdout

    def test_bad_dissector(self):
        result = invoke("paths", "-d", "no_colon", "-r", "LINE")
        assert result.exit_code == 2


# ─── parse ───────────────────────────────────────────────────────────────


class TestParseCommand:
    def test_file_input(self, tmp_path):
        log = tmp_path / "access.log"
        log.write_text("a=1;b=2\n\na=3\n")

        result = invoke("parse", "-d", SPLITTER, "-r", "LINE", "-f", "STRING:a", "-f", "STRING:b", str(log))

        assert result.exit_code == 0, result.output
        assert json_lines(result.stdout) == [{"a": "1", "b": "2"}, {"a": "3"}]

    def test_stdin_input(self):
        result = invoke("parse", "-d", SPLITTER, "-r", "LINE", "-f", "STRING:b", input="a=1;b=9\n")

        assert result.exit_code == 0, result.output
        assert json_lines(result.stdout) == [{"b": "9"}]

    def test_missing_field(self):
        result = invoke("parse", "-d", SPLITTER, "-r", "LINE", "-f", "STRING:zz", input="a=1\n")
        assert result.exit_code == 2

    def test_field_without_type(self):
        result = invoke("parse", "-d", SPLITTER, "-r", "LINE", "-f", "a", input="a=1\n")

        assert result.exit_code == 2
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_bad_line_stops(self):
        result = invoke("parse", "-d", SPLITTER, "-r", "LINE", "-f", "STRING:a", input="garbage\na=1\n")

        assert result.exit_code == 1
        assert json_lines(result.stdout) == []

    def test_keep_going(self):
        result = invoke(
            "parse", "-d", SPLITTER, "-r", "LINE", "-f", "STRING:a", "--keep-going",
            input="garbage\na=1\n",
        )

        assert result.exit_code == 1
        assert json_lines(result.stdout) == [{"a": "1"}]
