"""Path enumerator: every field a set of dissectors could ever produce.

This is an introspection aid for people writing parser configurations. It
walks the declared outputs of every registered dissector starting at the
root type, ignoring what is requested, and never instantiates or prepares a
dissector. Wildcard outputs are listed literally (``STRING:request.query.*``).
"""

from __future__ import annotations

from logspine.core.identifiers import child_path, make_identifier
from logspine.core.settings import DEFAULT_MAX_PATH_DEPTH
from logspine.framework.registry import DissectorRegistry


class PathEnumerator:
    """Lists ``type:path`` identifiers reachable from a root type.

    Example:
        PathEnumerator().enumerate(registry, "APACHELOGLINE", max_depth=3)
        # ['IP:connection.client.host', 'HTTP.FIRSTLINE:request.firstline', ...]
    """

    def enumerate(
        self,
        registry: DissectorRegistry,
        root_type: str,
        max_depth: int = DEFAULT_MAX_PATH_DEPTH,
    ) -> list[str]:
        """Every identifier reachable from ``root_type`` within ``max_depth`` levels."""
        path_nodes = self._path_nodes(registry)
        paths: list[str] = []
        self._find_additional_paths(path_nodes, paths, "", root_type, max_depth)
        return paths

    def _path_nodes(self, registry: DissectorRegistry) -> dict[str, list[tuple[str, str]]]:
        """Input type → distinct ``(output type, name)`` pairs, in registration order."""
        nodes: dict[str, list[tuple[str, str]]] = {}
        for entry in registry.entries:
            outputs = nodes.setdefault(entry.input_type, [])
            pair = (entry.output_type, entry.name)
            if pair not in outputs:
                outputs.append(pair)
        return nodes

    def _find_additional_paths(
        self,
        path_nodes: dict[str, list[tuple[str, str]]],
        paths: list[str],
        base: str,
        base_type: str,
        max_depth: int,
    ) -> None:
        """Add all child paths of ``base`` (which is already in the result)."""
        if max_depth <= 0:
            return

        for child_type, child_name in path_nodes.get(base_type, ()):
            child_base = child_path(base, child_name)
            paths.append(make_identifier(child_type, child_base))
            self._find_additional_paths(path_nodes, paths, child_base, child_type, max_depth - 1)


__all__ = ["PathEnumerator"]
