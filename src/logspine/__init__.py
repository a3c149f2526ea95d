"""
logspine - demand-driven field extraction from log lines.

Declare the fields you want, register the dissectors that know how to pick
values apart, and logspine works out which dissectors have to run:

    from logspine import Parser

    parser = Parser("APACHELOGLINE")
    parser.add_dissector(ApacheLogLineDissector())
    parser.add_target(lambda value: print(value), ["IP:connection.client.host"])
    parser.parse(line)
"""

__version__ = "0.1.0"

from logspine.core.errors import (  # noqa: E402
    DissectionFailure,
    LogSpineError,
    MissingDissectorsError,
)
from logspine.framework.dissector import Dissector  # noqa: E402
from logspine.framework.parsable import Parsable  # noqa: E402
from logspine.framework.parser import Parser  # noqa: E402

__all__ = [
    "__version__",
    "Dissector",
    "DissectionFailure",
    "LogSpineError",
    "MissingDissectorsError",
    "Parsable",
    "Parser",
]
