"""
Severity table - the fixed RFC 5424 (syslog) level set.

Levels, most to least severe:
    0: emergency - One or more systems are unusable.
    1: alert     - A person must take an action immediately.
    2: critical  - Severe problems or brief outages.
    3: error     - Error events are likely to cause problems.
    4: warning   - Warning events might cause problems.
    5: notice    - Normal but significant events (start up, shut down, config).
    6: info      - Routine information, ongoing status or performance.
    7: debug     - Debug or trace information.

Application code should rarely go above ``error``. ``emergency`` and ``alert``
are for infrastructure problems only.

Adding or removing a level is a schema change, not a runtime operation.
"""

from __future__ import annotations

from enum import Enum

from udu_logging.errors import UnknownSeverityError


class Severity(str, Enum):
    """The eight syslog severities, in order."""

    EMERGENCY = "emergency"
    ALERT = "alert"
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    NOTICE = "notice"
    INFO = "info"
    DEBUG = "debug"

    @property
    def code(self) -> int:
        """Syslog numeric code (0 = emergency, 7 = debug)."""
        return _CODES[self]

    @property
    def tag(self) -> str:
        """Console label for this level."""
        return _TAGS[self][0]

    @property
    def style(self) -> str:
        """rich style applied to the console label."""
        return _TAGS[self][1]

    def allows(self, other: "Severity") -> bool:
        """True if ``other`` passes a threshold set at this level."""
        return other.code <= self.code

    @classmethod
    def from_name(cls, name: "str | Severity") -> "Severity":
        """Resolve a level name or alias (``emerg``, ``crit``)."""
        if isinstance(name, Severity):
            return name
        if not isinstance(name, str):
            raise UnknownSeverityError(name)
        normalized = name.strip().lower()
        if normalized in ALIASES:
            return ALIASES[normalized]
        try:
            return cls(normalized)
        except ValueError as exc:
            raise UnknownSeverityError(name) from exc


_CODES = {level: code for code, level in enumerate(Severity)}

_TAGS = {
    Severity.EMERGENCY: ("EMERGENCY", "bold color(220) on color(160)"),
    Severity.ALERT: ("ALERT", "bold color(161) on color(170)"),
    Severity.CRITICAL: ("CRITICAL", "bold color(124) on color(208)"),
    Severity.ERROR: ("ERROR", "red"),
    Severity.WARNING: ("Warning", "color(208)"),
    Severity.NOTICE: ("Notice", "yellow"),
    Severity.INFO: ("Info", "blue"),
    Severity.DEBUG: ("Debug", "white"),
}

# Short syslog names dispatch to the same level
ALIASES: dict[str, Severity] = {
    "emerg": Severity.EMERGENCY,
    "crit": Severity.CRITICAL,
}


__all__ = ["Severity", "ALIASES"]
