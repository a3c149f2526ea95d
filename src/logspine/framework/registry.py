"""Dissector registry: the catalog the plan compiler searches.

Manifesto:
    The registry is a flat list of ``(input type, output type, output name,
    dissector)`` entries. It knows nothing about what will be requested; it
    only records what every registered dissector could produce.

    Entries keep their registration order. When two dissectors can produce
    the same field, the one registered first wins, so the compiled plan is
    the same on every run.

Tags:
    logspine, framework, registry, dissector-discovery, lookup

Doc-Types:
    api-reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from logspine.core.errors import CannotChangeDissectorsAfterCompilationError, InvalidDissectorError
from logspine.core.identifiers import WILDCARD, split_identifier
from logspine.core.logging import get_logger
from logspine.framework.dissector import Dissector, kind_of


@dataclass(frozen=True, eq=False)
class CatalogEntry:
    """One producible output of one registered dissector."""

    input_type: str
    output_type: str
    name: str
    dissector: Dissector

    @property
    def is_wildcard(self) -> bool:
        return self.name == WILDCARD

    @property
    def kind(self) -> str:
        return self.dissector.kind

    @property
    def output(self) -> str:
        return f"{self.output_type}:{self.name}"


class DissectorRegistry:
    """Ordered catalog of dissector outputs.

    Example:
        registry = DissectorRegistry()
        registry.register(HttpFirstLineDissector())
        registry.entries_for("HTTP.FIRSTLINE")
    """

    def __init__(self, logger: Any = None) -> None:
        self._entries: list[CatalogEntry] = []
        self._dissectors: list[Dissector] = []
        self._locked = False
        self._log = logger or get_logger(__name__)

    @property
    def logger(self) -> Any:
        return self._log

    @logger.setter
    def logger(self, logger: Any) -> None:
        self._log = logger

    # ── Mutation ─────────────────────────────────────────────────

    def register(self, dissector: Dissector) -> None:
        """Add every possible output of ``dissector`` to the catalog.

        A dissector that cannot produce anything is ignored.
        """
        if self._locked:
            raise CannotChangeDissectorsAfterCompilationError("add")

        input_type = dissector.get_input_type()
        outputs = dissector.get_possible_output()
        if not outputs:
            self._log.debug("registry.ignored_no_outputs", dissector=dissector.kind)
            return

        entries = []
        for output in outputs:
            try:
                output_type, name = split_identifier(output)
            except ValueError as exc:
                raise InvalidDissectorError(dissector.kind, f"output {output!r} has no type") from exc
            entries.append(CatalogEntry(input_type, output_type, name, dissector))

        self._entries.extend(entries)
        self._dissectors.append(dissector)
        self._log.debug(
            "registry.registered",
            dissector=dissector.kind,
            input_type=input_type,
            outputs=len(entries),
        )

    def deregister(self, kind: str | type[Dissector]) -> int:
        """Remove every entry and instance of a dissector kind (or class).

        Returns:
            Number of dissector instances removed.
        """
        if self._locked:
            raise CannotChangeDissectorsAfterCompilationError("remove")

        def matches(dissector: Dissector) -> bool:
            if isinstance(kind, str):
                return dissector.kind == kind
            return type(dissector) is kind or dissector.kind == kind_of(kind)

        self._entries = [e for e in self._entries if not matches(e.dissector)]
        before = len(self._dissectors)
        self._dissectors = [d for d in self._dissectors if not matches(d)]
        removed = before - len(self._dissectors)
        self._log.debug("registry.deregistered", kind=str(kind), removed=removed)
        return removed

    # ── Locking ──────────────────────────────────────────────────

    def lock(self) -> None:
        """Reject any further mutation (called when a plan is compiled)."""
        self._locked = True

    def unlock(self) -> None:
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    # ── Lookup ───────────────────────────────────────────────────

    @property
    def entries(self) -> tuple[CatalogEntry, ...]:
        return tuple(self._entries)

    @property
    def dissectors(self) -> tuple[Dissector, ...]:
        return tuple(self._dissectors)

    def entries_for(self, input_type: str) -> list[CatalogEntry]:
        """Entries consuming ``input_type``, in registration order."""
        return [e for e in self._entries if e.input_type == input_type]

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"DissectorRegistry(dissectors={len(self._dissectors)}, entries={len(self._entries)})"


__all__ = ["CatalogEntry", "DissectorRegistry"]
