"""Execution engine: runs a compiled plan against one input value.

The order of work is not precomputed. Each round takes every field that is
known but not yet dissected, marks it parsed, and runs the phases bound to
it. Whatever those phases produce forms the next round. The loop ends when
no field is pending.
"""

from __future__ import annotations

from typing import Any

from logspine.core.errors import DissectionFailure, LogSpineError, ParserNotUsableError
from logspine.core.logging import get_logger
from logspine.framework.compiler import CompiledPlan
from logspine.framework.parsable import Parsable


class ExecutionEngine:
    """Breadth-first worklist over a compiled plan.

    Example:
        engine = ExecutionEngine()
        parsable = Parsable(targets, record)
        parsable.set_root_dissection("APACHELOGLINE", line)
        engine.execute(plan, parsable)
    """

    def __init__(self, logger: Any = None) -> None:
        self._log = logger or get_logger(__name__)

    @property
    def logger(self) -> Any:
        return self._log

    @logger.setter
    def logger(self, logger: Any) -> None:
        self._log = logger

    def execute(self, plan: CompiledPlan | None, parsable: Parsable, *, reset: bool = True) -> Parsable:
        """Dissect everything reachable from the fields already in ``parsable``.

        Args:
            plan: A successfully compiled plan
            parsable: Store seeded with the root value
            reset: Call ``prepare_for_run`` on every bound dissector first

        Raises:
            ParserNotUsableError: If the plan is missing or failed to compile.
                Nothing is executed in that case.
            DissectionFailure: If a dissector fails on its input.
            FatalErrorDuringCallOfSetterMethod: If a target callback fails.
        """
        if plan is None:
            raise ParserNotUsableError("no parse plan has been compiled")
        if not plan.usable:
            raise ParserNotUsableError("missing dissectors for " + " ".join(sorted(plan.missing)))

        if reset:
            for phase in plan.all_phases():
                phase.instance.prepare_for_run()

        rounds = 0
        to_be_parsed = parsable.get_to_be_parsed()
        while to_be_parsed:
            rounds += 1
            for parsed_field in to_be_parsed:
                parsable.set_as_parsed(parsed_field)
                phases = plan.phases_for(parsed_field.id)
                if not phases:
                    self._log.debug("engine.no_dissectors", identifier=parsed_field.id)
                    continue
                for phase in phases:
                    self._log.debug("engine.dissect", identifier=parsed_field.id, dissector=phase.kind)
                    try:
                        phase.instance.dissect(parsable, parsed_field.name)
                    except LogSpineError:
                        raise
                    except Exception as exc:
                        raise DissectionFailure(
                            f"{phase.kind} failed on {parsed_field.id}: {exc}",
                            cause=exc,
                        ).with_context(
                            identifier=parsed_field.id,
                            name=parsed_field.name,
                            value=parsed_field.value,
                            dissector=phase.kind,
                        ) from exc
            to_be_parsed = parsable.get_to_be_parsed()

        self._log.debug("engine.done", rounds=rounds, fields=len(parsable))
        return parsable


__all__ = ["ExecutionEngine"]
