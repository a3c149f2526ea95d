"""Base dissector interface.

A dissector takes the value of one field and produces zero or more named,
typed child fields. Dissectors declare up front what they consume
(``get_input_type``) and what they could produce (``get_possible_output``);
the parser uses these declarations to decide which dissectors to run and
tells each instance exactly which outputs it must deliver.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from logspine.framework.parsable import Parsable


def kind_of(cls: type) -> str:
    """Default identity token for a dissector class."""
    return f"{cls.__module__}.{cls.__qualname__}"


class Dissector(ABC):
    """Base class for all dissectors.

    Lifecycle of an instance inside a compiled plan:

    1. ``new_instance()`` is called on the registered template.
    2. ``prepare_for_dissect(input_name, output_name)`` once per output it serves.
    3. ``prepare_for_run()`` once after compilation and, by default, before
       every parse call.
    4. ``dissect(parsable, input_name)`` whenever the input value is known.
    """

    @property
    def kind(self) -> str:
        """Identity token used to share one instance per input field.

        Two dissectors with the same kind bound to the same input field are
        served by a single instance. Override when one class is registered
        several times with different configurations.
        """
        return kind_of(type(self))

    @abstractmethod
    def get_input_type(self) -> str:
        """The type of value this dissector consumes."""
        ...

    @abstractmethod
    def get_possible_output(self) -> list[str]:
        """Every ``type:name`` this dissector can produce; ``type:*`` for any name."""
        ...

    @abstractmethod
    def dissect(self, parsable: Parsable, input_name: str) -> None:
        """Read the value of ``input_name`` from ``parsable`` and add the outputs."""
        ...

    def new_instance(self) -> Dissector:
        """Fresh copy of this dissector to be bound into a plan."""
        return copy.deepcopy(self)

    def prepare_for_dissect(self, input_name: str, output_name: str) -> None:  # noqa: B027
        """Told at compile time that ``output_name`` is wanted from ``input_name``."""
        pass

    def prepare_for_run(self) -> None:  # noqa: B027
        """Reset any per-run state."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(input_type={self.get_input_type()!r})"


__all__ = ["Dissector", "kind_of"]
