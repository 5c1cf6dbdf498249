"""
Configuration for udu-logging.

Settings are read from the environment (and a ``.env`` file) with
pydantic-settings. They only affect the sinks: what the console shows and
whether records are exported. They never change how metadata is merged.

Environment:
    LOG_LEVEL               lowest level shown on the console (default: debug)
    LOG_FORMAT              console | json (default: console)
    DISPLAY_META            show metadata under each console line
    DISPLAY_TIMESTAMP       prefix console lines with an ISO timestamp
    EXPORT_LOGS             export to every remote transport
    EXPORT_LOGS_TO_LOGSENE  export to Logsene
    LOGSENE_TOKEN           Logsene app token (the bulk index name)
    LOGSENE_URL             Logsene receiver base URL
    LOGSENE_TYPE            document type for exported records
    THIS_POD_NAME           hostname reported in every record
    THIS_CODE_REPOSITORY    default codeRepository for logger identities

This module must not depend on any application config: applications log
while loading their own configuration.

udu-logging reports its own problems (sink failures, invalid settings) through
structlog. Until an application calls ``configure_logging()`` those go through
structlog's defaults, which print to stdout.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Literal, TextIO

import structlog
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from udu_logging.errors import ConfigurationError
from udu_logging.policy import DEFAULT_CODE_REPOSITORY
from udu_logging.severity import Severity
from udu_logging.sinks import ConsoleSink, LogseneSink, MultiSink, Sink


class LoggingSettings(BaseSettings):
    """Sink-side knobs for udu-logging."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ── Console ──────────────────────────────────────────────────
    log_level: Severity = Field(default=Severity.DEBUG, validation_alias="LOG_LEVEL")
    log_format: Literal["console", "json"] = Field(default="console", validation_alias="LOG_FORMAT")
    display_meta: bool = Field(default=False, validation_alias="DISPLAY_META")
    display_timestamp: bool = Field(default=False, validation_alias="DISPLAY_TIMESTAMP")

    # ── Export ───────────────────────────────────────────────────
    export_logs: bool = Field(default=False, validation_alias="EXPORT_LOGS")
    export_to_logsene: bool = Field(default=False, validation_alias="EXPORT_LOGS_TO_LOGSENE")
    logsene_token: str | None = Field(default=None, validation_alias="LOGSENE_TOKEN")
    logsene_url: str = Field(
        default="https://logsene-receiver.sematext.com", validation_alias="LOGSENE_URL"
    )
    logsene_type: str = Field(default="test_logs", validation_alias="LOGSENE_TYPE")

    # ── Identity defaults ────────────────────────────────────────
    pod_name: str | None = Field(default=None, validation_alias="THIS_POD_NAME")
    code_repository: str = Field(
        default=DEFAULT_CODE_REPOSITORY, validation_alias="THIS_CODE_REPOSITORY"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _resolve_level(cls, value: Any) -> Severity:
        return Severity.from_name(value)

    @field_validator("log_format", mode="before")
    @classmethod
    def _lower_format(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _export_everywhere(self) -> "LoggingSettings":
        if self.export_logs:
            self.export_to_logsene = True
        return self


def build_sink(settings: LoggingSettings, stream: TextIO | None = None) -> Sink:
    """Build the transport chain described by ``settings``.

    Raises:
        ConfigurationError: Logsene export is on but no token is set
    """
    console = ConsoleSink(
        level=settings.log_level,
        format=settings.log_format,
        display_meta=settings.display_meta,
        display_timestamp=settings.display_timestamp,
        stream=stream,
    )
    if not settings.export_to_logsene:
        return console

    if not settings.logsene_token:
        raise ConfigurationError("EXPORT_LOGS_TO_LOGSENE is on but LOGSENE_TOKEN is not set")
    logsene = LogseneSink(
        token=settings.logsene_token,
        url=settings.logsene_url,
        doc_type=settings.logsene_type,
        level=settings.log_level,
    )
    return MultiSink([console, logsene])


# Track if the library's own logger has been configured
_configured = False


def _stderr_logger(*args: Any) -> structlog.WriteLogger:
    # Resolved per call so a swapped sys.stderr (tests, CLI runners) is honoured
    return structlog.WriteLogger(file=sys.stderr)


def configure_logging(level: str = "WARNING", json_format: bool | None = None, force: bool = False) -> None:
    """Configure structlog for udu-logging's own diagnostics.

    Diagnostics (sink failures, export errors) go to stderr so they never mix
    with application records on stdout.

    Args:
        level: stdlib level name for diagnostics
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    if json_format is None:
        json_format = not sys.stderr.isatty()

    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.WARNING)
        ),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
    _configured = True


def is_configured() -> bool:
    return _configured


__all__ = ["LoggingSettings", "build_sink", "configure_logging", "is_configured"]
