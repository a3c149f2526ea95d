"""Test Harness — utilities for testing parsers and dissectors.

Manifesto:
Testing a parser needs a few dissectors whose behaviour is obvious, and a
target that simply remembers what it received. This module provides both so
test code stays short.

ARCHITECTURE
────────────
::

    Test doubles:
      KeyValueDissector     → splits "a=1;b=2" into named fields
      TargetCollector       → target callback that records (name, value)

    Factories:
      make_parser(root_type, dissectors, fields) → (Parser, TargetCollector)

Example::

    from logspine.testing import KeyValueDissector, make_parser

    def test_simple_split():
        parser, collected = make_parser(
            "LINE",
            [KeyValueDissector("LINE", "STRING", keys=["a", "b"])],
            ["STRING:a"],
        )
        parser.parse("a=1;b=2")
        assert collected.values == [("a", "1")]

Tags:
    logspine, testing, harness, test-doubles

Doc-Types:
    api-reference
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any

from logspine.core.errors import DissectionFailure
from logspine.core.identifiers import WILDCARD
from logspine.core.settings import LogSpineSettings
from logspine.framework.dissector import Dissector, kind_of
from logspine.framework.parsable import Parsable
from logspine.framework.parser import Parser

# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class KeyValueDissector(Dissector):
    """Splits ``key=value`` pairs separated by ``;``.

    Parameters
    ----------
    input_type
        Type of the value to split.
    output_type
        Type given to every produced value.
    keys
        Keys it can produce. ``None`` makes it a wildcard dissector
        (``output_type:*``) that can produce any key.
    selective
        Only emit the keys it was told to produce at compile time.

    ``calls`` and ``resets`` are shared between the template and every
    instance made from it, so tests can observe bound copies.
    """

    def __init__(
        self,
        input_type: str,
        output_type: str = "STRING",
        keys: Iterable[str] | None = None,
        *,
        pair_separator: str = ";",
        value_separator: str = "=",
        selective: bool = True,
    ) -> None:
        self._input_type = input_type
        self._output_type = output_type
        self._keys = None if keys is None else list(keys)
        self._pair_separator = pair_separator
        self._value_separator = value_separator
        self._selective = selective
        self._requested: set[str] = set()
        self.calls: list[str] = []
        self.resets: list[str] = []
        self.prepared: list[tuple[str, str]] = []

    @property
    def kind(self) -> str:
        return f"{kind_of(type(self))}[{self._input_type}->{self._output_type}]"

    def get_input_type(self) -> str:
        return self._input_type

    def get_possible_output(self) -> list[str]:
        if self._keys is None:
            return [f"{self._output_type}:{WILDCARD}"]
        return [f"{self._output_type}:{key}" for key in self._keys]

    def new_instance(self) -> KeyValueDissector:
        instance = copy.copy(self)
        instance._requested = set()
        return instance

    def prepare_for_dissect(self, input_name: str, output_name: str) -> None:
        self.prepared.append((input_name, output_name))
        prefix = input_name + "."
        relative = output_name[len(prefix):] if output_name.startswith(prefix) else output_name
        self._requested.add(relative.split(".", 1)[0])

    def prepare_for_run(self) -> None:
        self.resets.append(self.kind)

    @property
    def requested(self) -> set[str]:
        return set(self._requested)

    def dissect(self, parsable: Parsable, input_name: str) -> None:
        parsed_field = parsable.get_parsable_field(self._input_type, input_name)
        if parsed_field is None:
            raise DissectionFailure(f"No {self._input_type} value named {input_name!r}")
        self.calls.append(input_name)

        for pair in str(parsed_field.value).split(self._pair_separator):
            if not pair:
                continue
            key, sep, value = pair.partition(self._value_separator)
            if not sep:
                raise DissectionFailure(f"Malformed pair {pair!r} in {input_name}")
            if self._selective and WILDCARD not in self._requested and key not in self._requested:
                continue
            parsable.add_dissection(input_name, self._output_type, key, value)


class TargetCollector:
    """Target callback that records every ``(name, value)`` it receives."""

    def __init__(self) -> None:
        self.values: list[tuple[str, Any]] = []

    def __call__(self, name: str, value: Any) -> None:
        self.values.append((name, value))

    def as_dict(self) -> dict[str, Any]:
        """Last value per name."""
        return dict(self.values)

    def names(self) -> list[str]:
        return [name for name, _ in self.values]


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_parser(
    root_type: str,
    dissectors: Iterable[Dissector],
    fields: Iterable[str],
    *,
    settings: LogSpineSettings | None = None,
) -> tuple[Parser, TargetCollector]:
    """Parser with the given dissectors and one collector bound to every field."""
    parser = Parser(root_type, settings=settings or LogSpineSettings())
    for dissector in dissectors:
        parser.add_dissector(dissector)
    collector = TargetCollector()
    parser.add_target(collector, list(fields))
    return parser, collector


__all__ = ["KeyValueDissector", "TargetCollector", "make_parser"]
