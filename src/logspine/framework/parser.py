"""
Parser - the public entry point tying registry, compiler and engine together.

Usage:
    parser = Parser("APACHELOGLINE", record_class=AccessRecord)
    parser.add_dissector(ApacheLogLineDissector())
    parser.add_dissector(HttpFirstLineDissector())
    parser.add_target("set_host", ["IP:connection.client.host"])
    parser.add_target(lambda name, value: print(name, value), ["STRING:request.firstline.uri"])

    record = parser.parse(line)

The plan is compiled on first use and reused for every later parse call.
After compilation the set of dissectors is frozen; adding a target or
changing the root type throws the plan away and it is rebuilt on next use.

Thread-safety: a Parser and its compiled plan are NOT safe for concurrent
parse calls unless every dissector is stateless. Use one Parser per thread.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterable
from typing import Any

from logspine.core.errors import ConfigError, MissingDissectorsError, ParserNotUsableError
from logspine.core.identifiers import make_identifier
from logspine.core.logging import get_logger
from logspine.core.settings import LogSpineSettings, get_settings
from logspine.framework.compiler import CompiledPlan, PlanCompiler, missing_fields
from logspine.framework.dissector import Dissector
from logspine.framework.engine import ExecutionEngine
from logspine.framework.parsable import Parsable
from logspine.framework.paths import PathEnumerator
from logspine.framework.registry import DissectorRegistry
from logspine.framework.targets import TargetBindingTable

_parser_ids = itertools.count(1)


class Parser:
    """Extracts the requested fields from raw input values.

    Args:
        root_type: Type of the raw input value (e.g. ``APACHELOGLINE``)
        record_class: Class instantiated (without arguments) by ``parse(value)``;
            also the class that method-name targets are looked up on
        settings: Explicit settings; defaults to the process-wide settings
        logger: structlog-compatible logger; defaults to one bound to this parser
    """

    def __init__(
        self,
        root_type: str | None = None,
        record_class: type | None = None,
        *,
        settings: LogSpineSettings | None = None,
        logger: Any = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._root_type = root_type
        self._root_name = self._settings.root_name
        self._record_class = record_class
        self._log = logger or get_logger(__name__).bind(parser_id=next(_parser_ids), root_type=root_type)

        self._registry = DissectorRegistry(logger=self._log)
        self._targets = TargetBindingTable(record_class=record_class, logger=self._log)
        self._compiler = PlanCompiler(logger=self._log)
        self._engine = ExecutionEngine(logger=self._log)
        self._plan: CompiledPlan | None = None

    # ── Configuration ────────────────────────────────────────────

    @property
    def root_type(self) -> str | None:
        return self._root_type

    @property
    def root_identifier(self) -> str | None:
        if self._root_type is None:
            return None
        return make_identifier(self._root_type, self._root_name)

    @property
    def registry(self) -> DissectorRegistry:
        return self._registry

    def set_root_type(self, root_type: str) -> None:
        """Change the type of the raw input; discards any compiled plan."""
        self._invalidate()
        self._root_type = root_type
        self._log = self._log.bind(root_type=root_type)
        for component in (self._registry, self._targets, self._compiler, self._engine):
            component.logger = self._log

    def add_dissector(self, dissector: Dissector) -> Parser:
        """Make a dissector available. Raises once the plan has been compiled."""
        self._registry.register(dissector)
        return self

    def drop_dissector(self, kind: str | type[Dissector]) -> Parser:
        """Remove every dissector of a kind. Raises once the plan has been compiled."""
        self._registry.deregister(kind)
        return self

    def add_target(self, callback: Callable[..., Any] | str, fields: Iterable[str] | str) -> Parser:
        """Deliver the values of ``fields`` to ``callback``.

        ``callback`` is a callable or the name of a method on the record
        class, accepting ``(value)`` or ``(name, value)``. Every callback is
        validated here, before anything is registered.
        """
        if isinstance(fields, str):
            fields = [fields]
        fields = [self._targets.check_identifier(field_id) for field_id in fields]
        self._targets.make_target(callback)
        for field_id in fields:
            self._targets.register(field_id, callback)
        self._invalidate()
        return self

    def _invalidate(self) -> None:
        if self._plan is not None:
            self._log.debug("parser.plan_invalidated")
        self._plan = None
        self._registry.unlock()

    # ── Introspection ────────────────────────────────────────────

    def get_needed(self) -> set[str]:
        """Every identifier a target was registered for."""
        return set(self._targets.needed)

    def get_useful_intermediate_fields(self) -> set[str] | None:
        """Paths that feed at least one dissector; None before compilation."""
        if self._plan is None:
            return None
        return set(self._plan.useful_intermediate_fields)

    def get_missing_fields(self) -> set[str]:
        """Requested identifiers that no chain of dissectors can produce."""
        if self._plan is None:
            try:
                self.compile()
            except MissingDissectorsError as exc:
                return set(exc.missing)
        return missing_fields(self.get_needed(), self._plan.located)

    def get_possible_paths(self, max_depth: int | None = None) -> list[str]:
        """Every field the registered dissectors could produce from the root."""
        if self._root_type is None:
            raise ConfigError("Parser has no root type")
        depth = self._settings.max_path_depth if max_depth is None else max_depth
        return PathEnumerator().enumerate(self._registry, self._root_type, depth)

    @property
    def plan(self) -> CompiledPlan | None:
        return self._plan

    @property
    def usable(self) -> bool:
        return self._plan is not None and self._plan.usable

    # ── Compilation & parsing ────────────────────────────────────

    def compile(self) -> CompiledPlan:
        """Compile the plan if that has not happened yet.

        Raises:
            MissingDissectorsError: The first time compilation fails.
            ParserNotUsableError: On later calls after a failed compilation.
        """
        if self._plan is not None:
            if not self._plan.usable:
                raise ParserNotUsableError("missing dissectors for " + " ".join(sorted(self._plan.missing)))
            return self._plan

        if self._root_type is None:
            raise ConfigError("Parser has no root type")

        try:
            self._plan = self._compiler.compile(
                self._registry,
                self._root_type,
                self._targets.needed,
                root_name=self._root_name,
            )
        except MissingDissectorsError as exc:
            self._plan = exc.plan
            raise
        return self._plan

    def create_parsable(self, record: Any = None) -> Parsable:
        return Parsable(self._targets, record, root_name=self._root_name)

    def parse(self, value: Any, record: Any = None) -> Any:
        """Parse ``value`` and return the record the targets were called on.

        Without ``record`` a new ``record_class()`` is created (or no record
        at all when the parser has no record class).
        """
        plan = self.compile()
        if record is None and self._record_class is not None:
            record = self._record_class()

        parsable = self.create_parsable(record)
        parsable.set_root_dissection(self._root_type, value)
        self._engine.execute(plan, parsable, reset=self._settings.reset_each_parse)
        return parsable.record

    def parse_parsable(self, parsable: Parsable) -> Parsable:
        """Run the plan over an already seeded Parsable."""
        plan = self.compile()
        return self._engine.execute(plan, parsable, reset=self._settings.reset_each_parse)

    def __repr__(self) -> str:
        state = "compiled" if self._plan is not None else "open"
        return f"Parser(root_type={self._root_type!r}, targets={len(self._targets)}, {state})"


__all__ = ["Parser"]
