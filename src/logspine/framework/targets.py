"""Target binding table: where requested values are delivered.

A target is either a callable or the name of a method on the record class.
It must accept exactly ``(value)`` or ``(name, value)``; anything else is
rejected when the target is added, never at parse time.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from logspine.core.errors import (
    ConfigError,
    FatalErrorDuringCallOfSetterMethod,
    InvalidFieldIdentifierError,
    InvalidFieldMethodSignatureError,
    describe_callback,
)
from logspine.core.identifiers import split_identifier
from logspine.core.logging import get_logger

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def positional_arity(func: Callable[..., Any], skip_self: bool = False) -> int | None:
    """Number of positional parameters ``func`` must be called with.

    Returns None when the signature cannot be called with a plain positional
    argument list (``*args``, required keyword-only arguments) or cannot be
    inspected at all.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return None

    params = list(signature.parameters.values())
    if skip_self and params:
        params = params[1:]

    count = 0
    for param in params:
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind == inspect.Parameter.KEYWORD_ONLY and param.default is inspect.Parameter.empty:
            return None
        if param.kind in _POSITIONAL:
            count += 1
    return count


@dataclass(frozen=True)
class Target:
    """A validated consumer of one requested identifier."""

    callback: Callable[..., Any] | str
    takes_name: bool

    @property
    def is_method(self) -> bool:
        return isinstance(self.callback, str)

    def resolve(self, record: Any) -> Callable[..., Any]:
        if isinstance(self.callback, str):
            return getattr(record, self.callback)
        return self.callback

    def __str__(self) -> str:
        return describe_callback(self.callback)


class TargetBindingTable:
    """Maps requested identifiers to the targets that receive their values.

    Example:
        table = TargetBindingTable()
        table.register("IP:connection.client.host", lambda value: hosts.append(value))
        table.store(None, "IP:connection.client.host", "connection.client.host", "127.0.0.1")
    """

    def __init__(self, record_class: type | None = None, logger: Any = None) -> None:
        self._record_class = record_class
        self._targets: dict[str, list[Target]] = {}
        self._log = logger or get_logger(__name__)

    @property
    def logger(self) -> Any:
        return self._log

    @logger.setter
    def logger(self, logger: Any) -> None:
        self._log = logger

    @property
    def record_class(self) -> type | None:
        return self._record_class

    # ── Registration ─────────────────────────────────────────────

    def make_target(self, callback: Callable[..., Any] | str) -> Target:
        """Validate ``callback`` and wrap it as a Target."""
        if isinstance(callback, str):
            if self._record_class is None:
                raise ConfigError(f"Method target {callback!r} needs a record class")
            method = getattr(self._record_class, callback, None)
            if method is None or not callable(method):
                raise InvalidFieldMethodSignatureError(f"{self._record_class.__qualname__}.{callback}")
            is_static = isinstance(inspect.getattr_static(self._record_class, callback), (staticmethod, classmethod))
            arity = positional_arity(method, skip_self=not is_static)
        elif callable(callback):
            arity = positional_arity(callback)
        else:
            raise InvalidFieldMethodSignatureError(callback)

        if arity not in (1, 2):
            raise InvalidFieldMethodSignatureError(callback, arity)
        return Target(callback, takes_name=arity == 2)

    def check_identifier(self, identifier: str) -> str:
        """Reject anything that is not a ``type:path`` identifier."""
        if not isinstance(identifier, str):
            raise InvalidFieldIdentifierError(repr(identifier))
        try:
            type_, path = split_identifier(identifier)
        except ValueError as exc:
            raise InvalidFieldIdentifierError(identifier) from exc
        if not type_ or not path:
            raise InvalidFieldIdentifierError(identifier)
        return identifier

    def register(self, identifier: str, callback: Callable[..., Any] | str) -> Target:
        """Add a consumer for a literal requested identifier."""
        self.check_identifier(identifier)
        target = self.make_target(callback)
        targets = self._targets.setdefault(identifier, [])
        if target not in targets:
            targets.append(target)
        return target

    # ── Lookup ───────────────────────────────────────────────────

    @property
    def needed(self) -> frozenset[str]:
        return frozenset(self._targets)

    def targets_for(self, identifier: str) -> list[Target]:
        return list(self._targets.get(identifier, ()))

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._targets

    def __len__(self) -> int:
        return len(self._targets)

    # ── Delivery ─────────────────────────────────────────────────

    def store(self, record: Any, identifier: str, name: str, value: Any) -> Any:
        """Deliver ``value`` to every target of ``identifier``.

        Raises:
            FatalErrorDuringCallOfSetterMethod: If a target raises. Values
                already delivered to other targets are kept.
        """
        targets = self._targets.get(identifier)
        if not targets:
            self._log.warning("targets.no_consumer", identifier=identifier, name=name)
            return record

        for target in targets:
            try:
                callback = target.resolve(record)
                if target.takes_name:
                    callback(name, value)
                else:
                    callback(value)
            except Exception as exc:
                raise FatalErrorDuringCallOfSetterMethod(identifier, name, value, target.callback, exc) from exc
        return record


__all__ = ["Target", "TargetBindingTable", "positional_arity"]
