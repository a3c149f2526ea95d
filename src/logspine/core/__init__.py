"""
logspine.core - primitives shared by every part of logspine.

- errors: typed error hierarchy
- identifiers: ``type:path`` helpers
- logging: structlog configuration
- settings: pydantic-settings configuration
"""

from logspine.core.errors import (
    CannotChangeDissectorsAfterCompilationError,
    CompilationError,
    ConfigError,
    DissectionError,
    DissectionFailure,
    ErrorCategory,
    ErrorContext,
    FatalErrorDuringCallOfSetterMethod,
    InvalidDissectorError,
    InvalidFieldIdentifierError,
    InvalidFieldMethodSignatureError,
    LogSpineError,
    MissingDissectorsError,
    ParserNotUsableError,
)
from logspine.core.logging import configure_logging, get_logger
from logspine.core.settings import LogSpineSettings, get_settings

__all__ = [
    # Errors
    "LogSpineError",
    "ErrorCategory",
    "ErrorContext",
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
    # Logging
    "configure_logging",
    "get_logger",
    # Settings
    "LogSpineSettings",
    "get_settings",
]
