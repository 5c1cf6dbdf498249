"""
udu-logging - structured logging facade.

Per-caller logger instances bind a fixed ``source`` identity, enforce the eight
syslog severities, and route every call through one shared dispatcher that
merges and allow-lists metadata before it reaches the sink.

Usage:
    from udu_logging import Meta, create_instance

    log = create_instance("lib/udu-multipod.py", {"organization": "acme"})
    log.info("pod started", Meta(request="udu-query-55fjf93"))
"""

from udu_logging.config import LoggingSettings, build_sink, configure_logging
from udu_logging.errors import (
    ConfigurationError,
    DiagnosticKind,
    MessageAssemblyError,
    UduLoggingError,
    UnknownSeverityError,
)
from udu_logging.instance import (
    LoggerInstance,
    build_identity,
    configure,
    create_instance,
    get_router,
    get_settings,
    reset_router,
)
from udu_logging.policy import (
    ALLOWED_META_KEYS,
    UNKNOWN_CALLEE,
    Meta,
    is_malformed,
    merge_and_validate,
)
from udu_logging.redirect import ConsoleRedirect, redirect_console
from udu_logging.router import LogRouter
from udu_logging.severity import Severity
from udu_logging.sinks import ConsoleSink, LogRecord, LogseneSink, MemorySink, MultiSink, Sink

__version__ = "0.1.0"

__all__ = [
    # Factory
    "create_instance",
    "LoggerInstance",
    "build_identity",
    "configure",
    "get_router",
    "get_settings",
    "reset_router",
    # Dispatch
    "LogRouter",
    "Severity",
    "Meta",
    "ALLOWED_META_KEYS",
    "UNKNOWN_CALLEE",
    "merge_and_validate",
    "is_malformed",
    # Sinks
    "Sink",
    "LogRecord",
    "ConsoleSink",
    "LogseneSink",
    "MultiSink",
    "MemorySink",
    # Configuration
    "LoggingSettings",
    "build_sink",
    "configure_logging",
    # Console redirect
    "ConsoleRedirect",
    "redirect_console",
    # Errors
    "UduLoggingError",
    "UnknownSeverityError",
    "ConfigurationError",
    "MessageAssemblyError",
    "DiagnosticKind",
]
