"""
Logger instances - lightweight facades bound to a caller identity.

``create_instance()`` never builds a new dispatcher. Every instance holds an
immutable identity plus a reference to the one shared ``LogRouter``.

Examples:
    >>> from udu_logging import Meta, create_instance
    >>> log = create_instance(
    ...     "terrorist_db/edu.umd.terrorism.py",
    ...     {"codeRepository": "uduinc/n-apps", "n-app": "edu.umd.terrorism.js"},
    ... )
    >>> log.warning("yoyo test warn", Meta(user="bruce", request="udu-query-1337kewl"))
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import structlog
from pydantic import ValidationError

from udu_logging.config import LoggingSettings, build_sink
from udu_logging.errors import ConfigurationError
from udu_logging.policy import UNKNOWN_CALLEE, build_global_meta, deep_merge
from udu_logging.router import LogRouter
from udu_logging.severity import Severity
from udu_logging.sinks import ConsoleSink, MultiSink, Sink

logger = structlog.get_logger(__name__)

LIBRARY_SOURCE = "udu_logging"

_router: LogRouter | None = None
_settings: LoggingSettings | None = None
_router_lock = threading.Lock()


def _build_router(settings: LoggingSettings, sink: Sink | None = None) -> LogRouter:
    router = LogRouter(
        sink if sink is not None else build_sink(settings),
        global_meta=build_global_meta(settings.pod_name),
    )
    if isinstance(router.sink, MultiSink) and settings.export_to_logsene:
        router.dispatch(
            Severity.NOTICE,
            {"source": LIBRARY_SOURCE, "codeRepository": settings.code_repository},
            "[uduLogger] Now exporting logs to Logsene",
        )
    return router


def _load_settings() -> LoggingSettings:
    try:
        return LoggingSettings()
    except ValidationError as e:
        logger.error("logging_settings_invalid", error=str(e), fallback="defaults")
        return LoggingSettings.model_construct()


def _console_only(settings: LoggingSettings) -> ConsoleSink:
    return ConsoleSink(
        level=settings.log_level,
        format=settings.log_format,
        display_meta=settings.display_meta,
        display_timestamp=settings.display_timestamp,
    )


def get_settings() -> LoggingSettings:
    """Settings the shared router was built from (loaded on first use).

    Invalid environment values are reported and replaced by the defaults.
    """
    global _settings
    with _router_lock:
        if _settings is None:
            _settings = _load_settings()
        return _settings


def get_router() -> LogRouter:
    """Return the process-wide router, building it from settings on first use.

    A transport that cannot be built (e.g. Logsene export without a token) is
    reported and the router falls back to the console alone.
    """
    global _router
    settings = get_settings()
    with _router_lock:
        if _router is None:
            try:
                _router = _build_router(settings)
            except ConfigurationError as e:
                logger.error("logging_export_disabled", error=str(e))
                _router = _build_router(settings, _console_only(settings))
        return _router


def configure(
    sink: Sink | None = None,
    settings: LoggingSettings | None = None,
) -> LogRouter:
    """Replace the process-wide router.

    Instances created before this call keep the router they were bound to.

    Args:
        sink: Transport to use; built from ``settings`` if None
        settings: Settings to use; loaded from the environment if None
    """
    global _router, _settings
    settings = settings if settings is not None else _load_settings()
    router = _build_router(settings, sink)
    with _router_lock:
        _settings = settings
        _router = router
    return router


def reset_router() -> None:
    """Forget the process-wide router and settings (tests)."""
    global _router, _settings
    with _router_lock:
        _router = None
        _settings = None


def build_identity(
    source: Any = None,
    scoped_meta: Any = None,
    code_repository: str | None = None,
) -> Mapping[str, Any]:
    """Compute the read-only identity of a logger instance."""
    source = source if isinstance(source, str) else UNKNOWN_CALLEE
    scoped_meta = scoped_meta if isinstance(scoped_meta, Mapping) else {}
    identity = deep_merge(scoped_meta, {"source": source})
    if not identity.get("codeRepository"):
        identity["codeRepository"] = code_repository or get_settings().code_repository
    return MappingProxyType(identity)


class LoggerInstance:
    """Severity methods pre-bound to one identity and the shared router.

    Each method takes message fragments and an optional trailing ``Meta``.
    """

    __slots__ = ("_identity", "_router")

    def __init__(self, identity: Mapping[str, Any], router: LogRouter):
        self._identity = MappingProxyType(deep_merge({}, identity))
        self._router = router

    @property
    def identity(self) -> Mapping[str, Any]:
        return self._identity

    @property
    def source(self) -> str:
        return self._identity["source"]

    @property
    def router(self) -> LogRouter:
        return self._router

    def log(self, severity: Severity | str, *args: Any) -> None:
        """Log at a severity given by name or ``Severity``."""
        self._router.dispatch(severity, self._identity, *args)

    def emergency(self, *args: Any) -> None:
        self._router.dispatch(Severity.EMERGENCY, self._identity, *args)

    def alert(self, *args: Any) -> None:
        self._router.dispatch(Severity.ALERT, self._identity, *args)

    def critical(self, *args: Any) -> None:
        self._router.dispatch(Severity.CRITICAL, self._identity, *args)

    def error(self, *args: Any) -> None:
        self._router.dispatch(Severity.ERROR, self._identity, *args)

    def warning(self, *args: Any) -> None:
        self._router.dispatch(Severity.WARNING, self._identity, *args)

    def notice(self, *args: Any) -> None:
        self._router.dispatch(Severity.NOTICE, self._identity, *args)

    def info(self, *args: Any) -> None:
        self._router.dispatch(Severity.INFO, self._identity, *args)

    def debug(self, *args: Any) -> None:
        self._router.dispatch(Severity.DEBUG, self._identity, *args)

    # syslog short names
    emerg = emergency
    crit = critical

    def __repr__(self) -> str:
        return f"LoggerInstance(source={self.source!r})"


def create_instance(
    source: Any = None,
    scoped_meta: Any = None,
    *,
    router: LogRouter | None = None,
) -> LoggerInstance:
    """Create a logger bound to ``source`` and ``scoped_meta``.

    Args:
        source: Call-site identity, e.g. ``"lib/udu-multipod.py"``;
            ``unknown_callee`` when missing or not a string
        scoped_meta: Metadata attached to every record of this instance;
            ignored unless it is a mapping
        router: Router to bind to; the process-wide one if None
    """
    router = router if router is not None else get_router()
    return LoggerInstance(build_identity(source, scoped_meta), router)


__all__ = [
    "LoggerInstance",
    "create_instance",
    "build_identity",
    "get_router",
    "get_settings",
    "configure",
    "reset_router",
    "LIBRARY_SOURCE",
]
