"""
logspine framework - demand-driven dissection of text records.

This module provides:
- Dissector base class and registry
- Plan compiler and execution engine
- Per-parse value store and target bindings
- The Parser that ties them together
"""

from logspine.framework.compiler import BoundPhase, CompiledPlan, PlanCompiler
from logspine.framework.dissector import Dissector
from logspine.framework.engine import ExecutionEngine
from logspine.framework.parsable import Parsable, ParsedField
from logspine.framework.parser import Parser
from logspine.framework.paths import PathEnumerator
from logspine.framework.registry import CatalogEntry, DissectorRegistry
from logspine.framework.targets import TargetBindingTable

__all__ = [
    # Dissectors
    "Dissector",
    "DissectorRegistry",
    "CatalogEntry",
    # Planning
    "PlanCompiler",
    "CompiledPlan",
    "BoundPhase",
    # Execution
    "ExecutionEngine",
    "Parsable",
    "ParsedField",
    "TargetBindingTable",
    # Entry points
    "Parser",
    "PathEnumerator",
]
