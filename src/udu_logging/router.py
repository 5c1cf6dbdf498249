"""
LogRouter - the single process-wide dispatcher.

Every ``LoggerInstance`` delegates to one shared router. A dispatch call turns
``(severity, identity, *args)`` into exactly one sink write:

    - the requested severity, when the call site is well formed, or
    - one ``warning`` diagnostic ("BAD LOG, CANNOT FIND SOURCE. ...") when the
      source is missing/``unknown_callee``, the message cannot be rendered, or
      the severity name is unknown.

Never both, and never an exception back to the caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from udu_logging.errors import DiagnosticKind, MessageAssemblyError, UnknownSeverityError
from udu_logging.policy import (
    assemble_message,
    bad_log_message,
    build_global_meta,
    filter_allowed,
    is_malformed,
    merge_and_validate,
    split_trailing_meta,
)
from udu_logging.severity import Severity
from udu_logging.sinks import Sink

logger = structlog.get_logger(__name__)

UNRENDERABLE_MESSAGE = "<unrenderable message>"


class LogRouter:
    """Dispatches log calls to a sink.

    Args:
        sink: Transport receiving finished records
        global_meta: Process-wide metadata; computed from the host name if None
    """

    def __init__(self, sink: Sink, global_meta: Mapping[str, Any] | None = None):
        self.sink = sink
        self._global_meta = dict(global_meta) if global_meta is not None else build_global_meta()

    @property
    def global_meta(self) -> dict[str, Any]:
        return dict(self._global_meta)

    def dispatch(self, severity: Severity | str, identity: Mapping[str, Any], *args: Any) -> None:
        fragments, call_meta = split_trailing_meta(args)

        diagnostic: DiagnosticKind | None = None
        try:
            message = assemble_message(fragments)
        except MessageAssemblyError:
            message = UNRENDERABLE_MESSAGE
            diagnostic = DiagnosticKind.NON_STRING_MESSAGE

        try:
            metadata = merge_and_validate(call_meta, identity, self._global_meta)
        except Exception as e:
            # Nesting too deep to merge: keep the identity, drop the call meta
            logger.warning("metadata_merge_failed", source=identity.get("source"), error=repr(e))
            metadata = {**filter_allowed(identity), **self._global_meta}

        try:
            level = Severity.from_name(severity)
        except UnknownSeverityError:
            level = Severity.WARNING
            diagnostic = diagnostic or DiagnosticKind.UNKNOWN_SEVERITY

        if diagnostic is None and is_malformed(metadata):
            diagnostic = DiagnosticKind.MALFORMED_SOURCE_IDENTITY

        if diagnostic is not None:
            self._write(Severity.WARNING, bad_log_message(message), metadata)
            return

        self._write(level, message, metadata)

    def _write(self, severity: Severity, message: str, metadata: dict[str, Any]) -> None:
        try:
            self.sink.write(severity, message, metadata)
        except Exception as e:
            logger.error("sink_write_failed", sink=type(self.sink).__name__, error=str(e))


__all__ = ["LogRouter", "UNRENDERABLE_MESSAGE"]
