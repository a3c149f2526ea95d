"""Helpers for ``type:path`` identifiers.

An identifier addresses one value in the hierarchy rooted at the raw input:
``IP:connection.client.host`` is the value of type ``IP`` found at path
``connection.client.host``. The type is everything before the first ``:``.

A path ending in ``*`` is a wildcard request: ``STRING:request.query.*``
matches any direct child of ``request.query``, ``STRING:*`` matches any value
of type ``STRING``.
"""

from __future__ import annotations

WILDCARD = "*"
SEPARATOR = ":"
PATH_SEPARATOR = "."


def split_identifier(identifier: str) -> tuple[str, str]:
    """Split ``type:path`` into ``(type, path)``.

    Raises:
        ValueError: If the identifier has no ``:``.
    """
    type_, sep, path = identifier.partition(SEPARATOR)
    if not sep:
        raise ValueError(f"Identifier without a type: {identifier!r}")
    return type_, path


def make_identifier(type_: str, path: str) -> str:
    return f"{type_}{SEPARATOR}{path}"


def child_path(parent: str, name: str) -> str:
    """Path of ``name`` below ``parent``; an empty name addresses the parent itself."""
    if not name:
        return parent
    if not parent:
        return name
    return f"{parent}{PATH_SEPARATOR}{name}"


def path_prefixes(path: str) -> list[str]:
    """Every prefix path of ``path``, shortest first.

    >>> path_prefixes("request.firstline.uri")
    ['request', 'request.firstline', 'request.firstline.uri']
    """
    prefixes = []
    parts = path.split(PATH_SEPARATOR)
    for end in range(1, len(parts) + 1):
        prefixes.append(PATH_SEPARATOR.join(parts[:end]))
    return prefixes


def is_wildcard(identifier: str) -> bool:
    return identifier.endswith(WILDCARD)


def wildcard_parent(identifier: str) -> str | None:
    """For ``type:parent.*`` return ``type:parent``; for ``type:*`` return None."""
    suffix = PATH_SEPARATOR + WILDCARD
    if identifier.endswith(suffix):
        return identifier[: -len(suffix)]
    return None


def parent_path(path: str) -> str:
    """The path one level up; the empty string for a top level path."""
    head, _, _ = path.rpartition(PATH_SEPARATOR)
    return head


__all__ = [
    "PATH_SEPARATOR",
    "SEPARATOR",
    "WILDCARD",
    "child_path",
    "is_wildcard",
    "make_identifier",
    "parent_path",
    "path_prefixes",
    "split_identifier",
    "wildcard_parent",
]
