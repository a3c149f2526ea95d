"""
Structured error types for logspine.

Every failure the parser can raise is a ``LogSpineError``. Errors carry a
category for routing, an ``ErrorContext`` with the identifiers involved, and
the chained underlying exception when one exists.

Manifesto:
    - **Typed Error Hierarchy:** Configuration, compilation and dissection
      failures are distinct kinds, so callers can react to each separately.
    - **Fail Loud, Fail Early:** Configuration errors surface at the call that
      caused them, never deferred to the first parse.
    - **Rich Context:** Errors carry the identifier, name and value that were
      being processed.
    - **Error Chaining:** The original exception is preserved as ``cause``.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       LogSpineError                           │
        │               (category, context, cause)                      │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  ConfigError                CompilationError                  │
        │  (CONFIG)                   (COMPILATION)                     │
        │     │                          │                              │
        │  CannotChangeDissectors…    MissingDissectorsError            │
        │  InvalidFieldMethodSig…     ParserNotUsableError              │
        │  InvalidDissectorError                                        │
        │  InvalidFieldIdentifierError                                  │
        │                                                               │
        │  DissectionError                                              │
        │  (DISSECTION)                                                 │
        │     │                                                         │
        │  DissectionFailure                                            │
        │  FatalErrorDuringCallOfSetterMethod                           │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = MissingDissectorsError({"IP:connection.client.host"})
    >>> error.missing
    ['IP:connection.client.host']
    >>> error.category.value
    'COMPILATION'

Tags:
    error-handling, exception-hierarchy, error-context, logspine-core

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONFIG = "CONFIG"              # Registry or target mutation, bad signatures
    COMPILATION = "COMPILATION"    # Requested fields cannot be produced
    DISSECTION = "DISSECTION"      # Failure while running a parse call
    INTERNAL = "INTERNAL"          # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        identifier: The ``type:path`` identifier being processed
        name: The dotted field name (path without type)
        value: The value being processed
        dissector: Kind of the dissector involved
        callback: Description of the consumer callback involved
        metadata: Additional key-value pairs
    """

    identifier: str | None = None
    name: str | None = None
    value: Any = None
    dissector: str | None = None
    callback: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["identifier", "name", "value", "dissector", "callback"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class LogSpineError(Exception):
    """
    Base exception for all logspine errors.

    Subclasses set ``default_category`` so callers never have to pass one.

    Examples:
        >>> error = LogSpineError("Something broke").with_context(identifier="STRING:a")
        >>> error.context.identifier
        'STRING:a'
        >>> error.to_dict()["category"]
        'INTERNAL'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> LogSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise DissectionFailure("Bad timestamp").with_context(
                identifier="TIME.STAMP:request.receive.time",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(LogSpineError):
    """Parser was configured in a way that can never work."""

    default_category = ErrorCategory.CONFIG


class CannotChangeDissectorsAfterCompilationError(ConfigError):
    """Raised when the dissector catalog is mutated after the plan was compiled."""

    def __init__(self, operation: str = "modify"):
        self.operation = operation
        super().__init__(f"Cannot {operation} dissectors after the parse plan has been compiled")


class InvalidFieldMethodSignatureError(ConfigError):
    """Raised when a target callback accepts neither ``(value)`` nor ``(name, value)``."""

    def __init__(self, callback: Any, parameter_count: int | None = None):
        self.callback = callback
        self.parameter_count = parameter_count
        described = describe_callback(callback)
        detail = "" if parameter_count is None else f" (takes {parameter_count} parameters)"
        super().__init__(
            f"Invalid target signature for {described}{detail}: "
            "a target must accept (value) or (name, value)",
            context=ErrorContext(callback=described),
        )


class InvalidFieldIdentifierError(ConfigError):
    """Raised when a requested field is not a ``type:path`` identifier."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(
            f"Invalid field {identifier!r}: expected type:path",
            context=ErrorContext(identifier=identifier),
        )


class InvalidDissectorError(ConfigError):
    """Raised when a dissector declares something the registry cannot interpret."""

    def __init__(self, dissector: str, message: str):
        self.dissector = dissector
        super().__init__(
            f"Invalid dissector {dissector}: {message}",
            context=ErrorContext(dissector=dissector),
        )


# =============================================================================
# COMPILATION ERRORS
# =============================================================================


class CompilationError(LogSpineError):
    """Requested fields could not be turned into a usable parse plan."""

    default_category = ErrorCategory.COMPILATION


class MissingDissectorsError(CompilationError):
    """Raised when one or more requested fields have no producing chain from the root."""

    def __init__(self, missing: Iterable[str], plan: Any = None):
        self.missing = sorted(missing)
        self.plan = plan
        super().__init__(
            "No dissectors can produce: " + " ".join(self.missing),
            context=ErrorContext(metadata={"missing": self.missing}),
        )


class ParserNotUsableError(CompilationError):
    """Raised when parsing is attempted with a plan that failed to compile."""

    def __init__(self, reason: str = "the parse plan did not compile"):
        super().__init__(f"Parser is not usable: {reason}")


# =============================================================================
# DISSECTION ERRORS
# =============================================================================


class DissectionError(LogSpineError):
    """Failure during a single parse call. Does not affect the compiled plan."""

    default_category = ErrorCategory.DISSECTION


class DissectionFailure(DissectionError):
    """Raised by a dissector that cannot make sense of its input value."""


class FatalErrorDuringCallOfSetterMethod(DissectionError):
    """Raised when a consumer callback raises while receiving a value."""

    def __init__(
        self,
        identifier: str,
        name: str,
        value: Any,
        callback: Any,
        cause: BaseException,
    ):
        self.identifier = identifier
        self.name = name
        self.value = value
        self.callback = describe_callback(callback)
        super().__init__(
            f'{cause!r} when calling "{self.callback}" for '
            f'key = "{identifier}" name = "{name}" value = "{value}"',
            context=ErrorContext(
                identifier=identifier,
                name=name,
                value=value,
                callback=self.callback,
            ),
            cause=cause,
        )


def describe_callback(callback: Any) -> str:
    """Human readable identity of a target callback."""
    if isinstance(callback, str):
        return callback
    qualname = getattr(callback, "__qualname__", None)
    if qualname is None:
        return repr(callback)
    module = getattr(callback, "__module__", None)
    return f"{module}.{qualname}" if module else qualname


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "LogSpineError",
    "ConfigError",
    "CannotChangeDissectorsAfterCompilationError",
    "InvalidFieldMethodSignatureError",
    "InvalidFieldIdentifierError",
    "InvalidDissectorError",
    "CompilationError",
    "MissingDissectorsError",
    "ParserNotUsableError",
    "DissectionError",
    "DissectionFailure",
    "FatalErrorDuringCallOfSetterMethod",
    "describe_callback",
]
