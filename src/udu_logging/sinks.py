"""
Sinks - transports that receive finished (severity, message, metadata) records.

The router hands every record to exactly one ``Sink``. Sinks own everything
the core does not: level thresholds, console rendering, remote export.

Sinks:
    - **ConsoleSink:** structlog pipeline writing one line per record
      (console text or ECS-style JSON)
    - **LogseneSink:** Elasticsearch bulk export to Logsene over httpx
    - **MultiSink:** fan-out to several transports, isolating failures
    - **MemorySink:** keeps ``LogRecord`` objects in a list (tests, tooling)

Contract:
    ``write()`` must not raise back into the core. Transport failures are
    reported on the library's own structlog logger and dropped; delivery is
    not guaranteed.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal, Protocol, TextIO, runtime_checkable

import httpx
import structlog
from rich.console import Console
from rich.text import Text
from structlog.types import EventDict, Processor, WrappedLogger

from udu_logging.severity import Severity

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LogRecord:
    """One dispatched log entry. Exists only for the duration of a write."""

    severity: Severity
    message: str
    metadata: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class Sink(Protocol):
    """Anything that accepts finished records."""

    def write(self, severity: Severity, message: str, metadata: dict[str, Any]) -> None: ...


# ── Processors ───────────────────────────────────────────────────────────


def filter_by_severity(threshold: Severity) -> Processor:
    """Drop events less severe than ``threshold``."""

    def _filter(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        if not threshold.allows(event_dict["severity"]):
            raise structlog.DropEvent
        return event_dict

    return _filter


def _ecs_fields(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Flatten a record into ECS-compatible field names."""
    out: EventDict = {}
    if "timestamp" in event_dict:
        out["@timestamp"] = event_dict["timestamp"]
    out["log.level"] = event_dict["severity"].value
    out["message"] = event_dict["event"]
    out.update(event_dict.get("meta") or {})
    return out


class ConsoleLineRenderer:
    """Render ``[timestamp] Tag: message`` with an optional metadata line.

    The level tag is styled with rich when ``colors`` is on.
    """

    def __init__(self, display_meta: bool = False, colors: bool = True):
        self.display_meta = display_meta
        self.colors = colors
        self._console = Console(force_terminal=True, color_system="256", no_color=False, highlight=False)

    def _tag(self, severity: Severity) -> str:
        if not self.colors:
            return severity.tag
        with self._console.capture() as capture:
            self._console.print(Text(severity.tag, style=severity.style), end="")
        return capture.get()

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        line = ""
        if "timestamp" in event_dict:
            line += f"[{event_dict['timestamp']}] "
        line += f"{self._tag(event_dict['severity'])}: {event_dict.get('event', '')}"
        meta = event_dict.get("meta")
        if self.display_meta and meta:
            line += "\n\tMeta: " + json.dumps(meta, default=str)
        return line


# ── Sinks ────────────────────────────────────────────────────────────────


class ConsoleSink:
    """Writes records to a text stream through a structlog processor chain."""

    def __init__(
        self,
        level: Severity | str = Severity.DEBUG,
        format: Literal["console", "json"] = "console",
        display_meta: bool = False,
        display_timestamp: bool = False,
        colors: bool | None = None,
        stream: TextIO | None = None,
    ):
        self.level = Severity.from_name(level)
        self.format = format
        self.stream = stream if stream is not None else sys.stdout
        if colors is None:
            colors = self.stream.isatty()

        processors: list[Processor] = [filter_by_severity(self.level)]
        if format == "json":
            processors += [
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                _ecs_fields,
                structlog.processors.JSONRenderer(default=str),
            ]
        else:
            if display_timestamp:
                processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
            processors.append(ConsoleLineRenderer(display_meta=display_meta, colors=colors))

        # WriteLogger writes to the stream directly, so a redirected print()
        # never sees console output.
        self._log = structlog.wrap_logger(
            structlog.WriteLogger(file=self.stream),
            processors=processors,
            wrapper_class=structlog.BoundLogger,
            context_class=dict,
        )

    def write(self, severity: Severity, message: str, metadata: dict[str, Any]) -> None:
        self._log.msg(message, severity=severity, meta=metadata)


class LogseneSink:
    """Ships records to Logsene through its Elasticsearch-compatible bulk API.

    One request per record; failures are logged and the record is dropped.
    """

    def __init__(
        self,
        token: str,
        url: str = "https://logsene-receiver.sematext.com",
        doc_type: str = "test_logs",
        level: Severity | str = Severity.DEBUG,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.token = token
        self.doc_type = doc_type
        self.level = Severity.from_name(level)
        self._client = httpx.Client(base_url=url, timeout=timeout, transport=transport)

    def _bulk_body(self, severity: Severity, message: str, metadata: dict[str, Any]) -> str:
        action = {"index": {"_index": self.token, "_type": self.doc_type}}
        document = {
            "@timestamp": datetime.now(UTC).isoformat(),
            "severity": severity.value,
            "message": message,
            **metadata,
        }
        return json.dumps(action) + "\n" + json.dumps(document, default=str) + "\n"

    def write(self, severity: Severity, message: str, metadata: dict[str, Any]) -> None:
        if not self.level.allows(severity):
            return
        try:
            response = self._client.post(
                "/_bulk",
                content=self._bulk_body(severity, message, metadata),
                headers={"Content-Type": "application/x-ndjson"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("logsene_export_failed", error=str(e), severity=severity.value)

    def close(self) -> None:
        self._client.close()


class MultiSink:
    """Fans each record out to several sinks; one failing sink does not stop the rest."""

    def __init__(self, sinks: Iterable[Sink]):
        self.sinks: list[Sink] = list(sinks)

    def add(self, sink: Sink) -> None:
        self.sinks.append(sink)

    def write(self, severity: Severity, message: str, metadata: dict[str, Any]) -> None:
        for sink in self.sinks:
            try:
                sink.write(severity, message, dict(metadata))
            except Exception as e:
                logger.error("sink_write_failed", sink=type(sink).__name__, error=str(e))


class MemorySink:
    """Keeps every record in ``records``."""

    def __init__(self) -> None:
        self.records: list[LogRecord] = []

    def write(self, severity: Severity, message: str, metadata: dict[str, Any]) -> None:
        self.records.append(LogRecord(severity, message, dict(metadata)))

    @property
    def last(self) -> LogRecord | None:
        return self.records[-1] if self.records else None

    def clear(self) -> None:
        self.records.clear()


__all__ = [
    "LogRecord",
    "Sink",
    "filter_by_severity",
    "ConsoleLineRenderer",
    "ConsoleSink",
    "LogseneSink",
    "MultiSink",
    "MemorySink",
]
