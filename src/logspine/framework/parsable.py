"""Per-parse value store.

A ``Parsable`` lives for exactly one parse call. It holds every field value
found so far, tracks which of them still have to be dissected, and forwards
values the consumer asked for to the target table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from logspine.core.identifiers import WILDCARD, child_path, make_identifier, parent_path

if TYPE_CHECKING:
    from logspine.framework.targets import TargetBindingTable


@dataclass(frozen=True)
class ParsedField:
    """One known value: ``type``, full dotted ``name`` and ``value``."""

    type: str
    name: str
    value: Any

    @property
    def id(self) -> str:
        return make_identifier(self.type, self.name)

    def __str__(self) -> str:
        return f"{self.id} = {self.value!r}"


class Parsable:
    """Runtime value store for one parse call.

    Every known identifier is either pending (known but not yet dissected)
    or parsed. An identifier is queued at most once, so it is dissected at
    most once per parse call.
    """

    def __init__(self, targets: TargetBindingTable, record: Any = None, root_name: str = "rootinputline") -> None:
        self._targets = targets
        self._record = record
        self._root_name = root_name
        self._fields: dict[str, ParsedField] = {}
        self._pending: dict[str, ParsedField] = {}
        self._parsed: set[str] = set()

    @property
    def record(self) -> Any:
        return self._record

    @property
    def root_name(self) -> str:
        return self._root_name

    def set_root_dissection(self, type_: str, value: Any) -> ParsedField:
        """Seed the store with the raw input."""
        return self._add(ParsedField(type_, self._root_name, value))

    def add_dissection(self, base: str, type_: str, name: str, value: Any) -> ParsedField:
        """Add a value found while dissecting ``base``.

        Args:
            base: Name of the field that was dissected (the dissector's input)
            type_: Type of the new value
            name: Name relative to ``base``; empty means ``base`` itself
            value: The value
        """
        if base == self._root_name:
            complete_name = name or base
        else:
            complete_name = child_path(base, name)
        return self._add(ParsedField(type_, complete_name, value))

    def _add(self, parsed_field: ParsedField) -> ParsedField:
        field_id = parsed_field.id
        if field_id not in self._fields:
            self._fields[field_id] = parsed_field
            self._pending[field_id] = parsed_field
        self._route(parsed_field)
        return parsed_field

    def _route(self, parsed_field: ParsedField) -> None:
        """Deliver the value to every target that asked for it."""
        needed = self._targets.needed
        field_id = parsed_field.id

        if field_id in needed:
            self._targets.store(self._record, field_id, parsed_field.name, parsed_field.value)

        parent = parent_path(parsed_field.name)
        if parent:
            wildcard_key = make_identifier(parsed_field.type, child_path(parent, WILDCARD))
            if wildcard_key in needed and wildcard_key != field_id:
                self._targets.store(self._record, wildcard_key, parsed_field.name, parsed_field.value)

        any_key = make_identifier(parsed_field.type, WILDCARD)
        if any_key in needed and any_key != field_id:
            self._targets.store(self._record, any_key, parsed_field.name, parsed_field.value)

    # ── Worklist ─────────────────────────────────────────────────

    def get_to_be_parsed(self) -> list[ParsedField]:
        """Snapshot of the fields still waiting to be dissected."""
        return list(self._pending.values())

    def set_as_parsed(self, parsed_field: ParsedField) -> None:
        self._pending.pop(parsed_field.id, None)
        self._parsed.add(parsed_field.id)

    def is_parsed(self, identifier: str) -> bool:
        return identifier in self._parsed

    # ── Lookup ───────────────────────────────────────────────────

    def get_parsable_field(self, type_: str, name: str) -> ParsedField | None:
        return self._fields.get(make_identifier(type_, name))

    def get_value(self, type_: str, name: str, default: Any = None) -> Any:
        parsed_field = self.get_parsable_field(type_, name)
        return default if parsed_field is None else parsed_field.value

    @property
    def fields(self) -> dict[str, ParsedField]:
        return dict(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Parsable(fields={len(self._fields)}, pending={len(self._pending)})"


__all__ = ["Parsable", "ParsedField"]
