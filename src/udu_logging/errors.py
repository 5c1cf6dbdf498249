"""
Error types for udu-logging.

The dispatch path never raises into the caller. Problems found while routing a
log call are classified by ``DiagnosticKind`` and turned into a warning-level
diagnostic record instead. The exceptions below only surface from the
non-dispatch surfaces (severity lookup, settings validation), plus
``MessageAssemblyError`` which the router catches itself.

Architecture:
    ::

        UduLoggingError
        ├── UnknownSeverityError   (also a ValueError)
        ├── ConfigurationError     (also a ValueError)
        └── MessageAssemblyError   (internal to LogRouter.dispatch)

Guardrails:
    ❌ DON'T: Let any of these escape a LoggerInstance severity method
    ✅ DO: Reroute to the warning diagnostic and keep the caller running
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class DiagnosticKind(str, Enum):
    """Why a log call was rerouted to the warning diagnostic."""

    MALFORMED_SOURCE_IDENTITY = "malformed_source_identity"
    NON_STRING_MESSAGE = "non_string_message"
    UNKNOWN_SEVERITY = "unknown_severity"


class UduLoggingError(Exception):
    """Base class for all udu-logging errors."""


class UnknownSeverityError(UduLoggingError, ValueError):
    """A severity name is neither one of the eight levels nor an alias."""

    def __init__(self, name: Any):
        self.name = name
        super().__init__(f"Unknown severity: {name!r}")


class ConfigurationError(UduLoggingError, ValueError):
    """A settings value cannot be used to build the logging pipeline."""


class MessageAssemblyError(UduLoggingError):
    """A message fragment could not be rendered to a display string."""

    def __init__(self, index: int, cause: BaseException):
        self.index = index
        self.cause = cause
        super().__init__(
            f"Cannot render message fragment #{index}: {type(cause).__name__}: {cause}"
        )


__all__ = [
    "DiagnosticKind",
    "UduLoggingError",
    "UnknownSeverityError",
    "ConfigurationError",
    "MessageAssemblyError",
]
