"""
Plan Compiler - turns requested fields and a dissector catalog into a plan.

This is the core planning logic:
1. Expand every requested field (and the root) into all of its prefix paths
2. Explore from the root, binding a dissector wherever it leads towards one
   of those paths
3. Tell every bound dissector to prepare for a run
4. Verify every requested field was reached

Design Principles:
- Demand driven: a dissector is only bound where it leads to a requested field
- Deterministic: catalog order decides which dissector produces a field
- No execution (that's for the ExecutionEngine)
- Clear error messages listing every missing field
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from logspine.core.errors import MissingDissectorsError
from logspine.core.identifiers import WILDCARD, make_identifier, path_prefixes, split_identifier, wildcard_parent
from logspine.core.logging import get_logger
from logspine.core.settings import DEFAULT_ROOT_NAME
from logspine.framework.dissector import Dissector
from logspine.framework.registry import CatalogEntry, DissectorRegistry


@dataclass(eq=False)
class BoundPhase:
    """A dissector instance bound to one input field of the plan.

    Attributes:
        input_type: Type of the field that triggers this phase
        input_name: Path of the field that triggers this phase
        output_type: Output type of the catalog entry that created the phase
        instance: The dissector instance (fresh copy of the registered one)
        outputs: Every ``type:path`` this instance was told to deliver
    """

    input_type: str
    input_name: str
    output_type: str
    instance: Dissector
    outputs: list[str] = field(default_factory=list)

    @property
    def kind(self) -> str:
        return self.instance.kind

    @property
    def input_identifier(self) -> str:
        return make_identifier(self.input_type, self.input_name)

    def __repr__(self) -> str:
        return f"BoundPhase({self.input_identifier} -> {self.kind}, outputs={self.outputs})"


@dataclass(frozen=True)
class CompiledPlan:
    """The result of compilation: which phases run when a field becomes known.

    Attributes:
        root_identifier: ``rootType:rootName``
        phases: Input identifier → bound phases, in binding order
        useful_intermediate_fields: Paths that feed at least one phase
        located: Every identifier reachable from the root
        missing: Requested identifiers that could not be reached
    """

    root_identifier: str
    phases: Mapping[str, tuple[BoundPhase, ...]]
    useful_intermediate_fields: frozenset[str]
    located: frozenset[str]
    missing: frozenset[str]

    @property
    def usable(self) -> bool:
        return not self.missing

    def phases_for(self, identifier: str) -> tuple[BoundPhase, ...]:
        return self.phases.get(identifier, ())

    def all_phases(self) -> list[BoundPhase]:
        """Every distinct bound phase, in binding order."""
        return [phase for phases in self.phases.values() for phase in phases]

    def topology(self) -> dict[str, list[str]]:
        """Input identifier → dissector kinds; compares plans structurally."""
        return {identifier: sorted(p.kind for p in phases) for identifier, phases in self.phases.items()}


def missing_fields(needed: Iterable[str], located: set[str] | frozenset[str]) -> set[str]:
    """Requested identifiers that were not located.

    ``type:parent.*`` counts as found when ``type:parent`` was located;
    ``type:*`` always counts as found.
    """
    missing = set()
    for target in needed:
        if target in located:
            continue
        parent = wildcard_parent(target)
        if parent is not None:
            if parent not in located:
                missing.add(target)
        elif split_identifier(target)[1] != WILDCARD:
            missing.add(target)
    return missing


class _Exploration:
    """Mutable state of a single compile run."""

    def __init__(self, possible: set[str]) -> None:
        self.possible = possible
        self.phases: dict[str, list[BoundPhase]] = {}
        self.useful: set[str] = set()
        self.located: set[str] = set()
        self.scheduled: set[str] = set()


class PlanCompiler:
    """
    Compiles a dissector catalog and a set of requested fields into a CompiledPlan.

    Stateless between calls: every compile() builds a fresh plan with fresh
    dissector instances.

    Example:
        compiler = PlanCompiler()
        plan = compiler.compile(
            registry,
            root_type="APACHELOGLINE",
            needed={"IP:connection.client.host"},
        )
        plan.phases_for("APACHELOGLINE:rootinputline")
    """

    def __init__(self, logger: Any = None) -> None:
        self._log = logger or get_logger(__name__)

    @property
    def logger(self) -> Any:
        return self._log

    @logger.setter
    def logger(self, logger: Any) -> None:
        self._log = logger

    def compile(
        self,
        registry: DissectorRegistry,
        root_type: str,
        needed: Iterable[str],
        root_name: str = DEFAULT_ROOT_NAME,
    ) -> CompiledPlan:
        """
        Build the plan and verify that every requested field is reachable.

        The registry is locked even when compilation fails, so a failed
        parser stays failed.

        Raises:
            MissingDissectorsError: If some requested field cannot be produced.
                The unusable plan is available as ``error.plan``.
        """
        needed = set(needed)
        root_id = make_identifier(root_type, root_name)

        self._log.debug("plan_compiler.start", root=root_id, needed=sorted(needed))

        # Step 1: Acquire all potentially useful subtargets
        state = _Exploration(self._possible_subtargets(needed | {root_id}))

        # Step 2: From the root explore all possibly useful trees
        self._explore(registry, state, root_type, root_name, is_root=True)

        # Step 3: Inform all dissectors to prepare for the run
        for phases in state.phases.values():
            for phase in phases:
                phase.instance.prepare_for_run()

        # Step 4: Verify that every requested field can be found
        missing = missing_fields(needed, state.located)

        plan = CompiledPlan(
            root_identifier=root_id,
            phases=MappingProxyType({key: tuple(value) for key, value in state.phases.items()}),
            useful_intermediate_fields=frozenset(state.useful),
            located=frozenset(state.located),
            missing=frozenset(missing),
        )
        registry.lock()

        if missing:
            self._log.error("plan_compiler.missing_dissectors", root=root_id, missing=sorted(missing))
            raise MissingDissectorsError(missing, plan=plan)

        self._log.info(
            "plan_compiler.compiled",
            root=root_id,
            needed=len(needed),
            inputs=len(plan.phases),
            phases=len(plan.all_phases()),
        )
        return plan

    def _possible_subtargets(self, needed: set[str]) -> set[str]:
        """Every prefix path of every needed identifier."""
        possible: set[str] = set()
        for need in needed:
            _, path = split_identifier(need)
            possible.update(path_prefixes(path))
        return possible

    def _explore(
        self,
        registry: DissectorRegistry,
        state: _Exploration,
        sub_root_type: str,
        sub_root_name: str,
        is_root: bool,
    ) -> None:
        sub_root_id = make_identifier(sub_root_type, sub_root_name)

        # Reaching this point means there is a chain of dissectors to get here.
        state.located.add(sub_root_id)

        for entry in registry.entries_for(sub_root_type):
            for candidate in self._candidates(entry, state.possible, sub_root_name, is_root):
                output_id = make_identifier(entry.output_type, candidate)
                if candidate not in state.possible or output_id in state.scheduled:
                    continue
                state.scheduled.add(output_id)

                phase = self._bind(state, entry, sub_root_type, sub_root_name)

                self._log.debug(
                    "plan_compiler.informing",
                    input=sub_root_id,
                    dissector=entry.kind,
                    output=output_id,
                )
                phase.instance.prepare_for_dissect(sub_root_name, candidate)
                phase.outputs.append(output_id)

                # Recurse from this point down
                self._explore(registry, state, entry.output_type, candidate, is_root=False)

    def _candidates(
        self,
        entry: CatalogEntry,
        possible: set[str],
        sub_root_name: str,
        is_root: bool,
    ) -> list[str]:
        if entry.is_wildcard:
            # Any wanted path below this one; it may have more '.' in the rest.
            prefix = sub_root_name + "."
            return sorted(p for p in possible if p.startswith(prefix))
        if is_root:
            return [entry.name]
        return [sub_root_name + "." + entry.name]

    def _bind(
        self,
        state: _Exploration,
        entry: CatalogEntry,
        sub_root_type: str,
        sub_root_name: str,
    ) -> BoundPhase:
        """Find or create the phase for this dissector kind at this input."""
        sub_root_id = make_identifier(sub_root_type, sub_root_name)
        phases = state.phases.get(sub_root_id)
        if phases is None:
            phases = state.phases[sub_root_id] = []
            state.useful.add(sub_root_name)

        for phase in phases:
            if phase.kind == entry.kind:
                return phase

        phase = BoundPhase(
            input_type=sub_root_type,
            input_name=sub_root_name,
            output_type=entry.output_type,
            instance=entry.dissector.new_instance(),
        )
        phases.append(phase)
        return phase


__all__ = ["BoundPhase", "CompiledPlan", "PlanCompiler", "missing_fields"]
