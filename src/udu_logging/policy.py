"""
Metadata policy - merge, allow-list and validation rules.

Every record that reaches a sink carries metadata built from three layers:

    call-site ``Meta``  <  instance identity  <  global meta

Identity wins over call-site values (except the ``source: "n-app"``
special case), the merged result is filtered to the allow-list, and the
process-wide global meta (``hostname``) is merged last with the highest
precedence.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │ log.error("bad thing", Meta(user="bruce"))                    │
        └──────────────────────────────────────────────────────────────┘
                 │ split_trailing_meta         │ assemble_message
                 ▼                             ▼
        call_meta = {"user": "bruce"}     "bad thing"
                 │
                 ▼ merge_and_validate(call_meta, identity, global_meta)
        1. deep_merge(copy(call_meta), identity)
        2. restore source="n-app" when the call asked for it
        3. keep ALLOWED_META_KEYS only
        4. deep_merge(..., global_meta)
                 │
                 ▼ is_malformed?  yes -> warning "BAD LOG, CANNOT FIND SOURCE."
                                  no  -> original severity

Guardrails:
    ❌ DON'T: Treat a plain dict as metadata (it is a loggable object)
    ✅ DO: Wrap metadata in ``Meta`` and pass it as the last argument

    ❌ DON'T: Mutate the caller's dicts or an instance identity
    ✅ DO: Merge onto fresh copies
"""

from __future__ import annotations

import copy
import socket
from collections.abc import Iterable, Mapping
from typing import Any

from rich.pretty import pretty_repr

from udu_logging.errors import MessageAssemblyError

# Metadata keys allowed to reach a sink
ALLOWED_META_KEYS: frozenset[str] = frozenset(
    {
        "codeRepository",  # Ex: uduinc/core, uduinc/n-apps
        "n-app",  # Ex: edu.umd.terrorism.js
        "organization",
        "request",  # Ex: udu-query-55fjf93
        "user",
        "source",  # REQUIRED. Ex: lib/udu-multipod.py
    }
)

UNKNOWN_CALLEE = "unknown_callee"
N_APP_SOURCE = "n-app"
DEFAULT_CODE_REPOSITORY = "uduinc/core"
BAD_LOG_PREFIX = "BAD LOG, CANNOT FIND SOURCE."

# Nesting depth for structured dumps of non-primitive fragments
DUMP_MAX_DEPTH = 4

_PRIMITIVES = (bool, int, float, complex, bytes, type(None))


class Meta(dict):
    """Metadata for a single log call.

    Pass it as the last positional argument of a severity method::

        log.warning("quota exceeded", Meta(user="bruce", request="udu-query-1337"))

    Keys that are not Python identifiers go through the mapping form::

        Meta({"n-app": "edu.umd.terrorism.js"})
    """

    def __repr__(self) -> str:
        return f"Meta({dict.__repr__(self)})"


def _copy_value(value: Any) -> Any:
    try:
        return copy.deepcopy(value)
    except Exception:
        # Uncopyable values (locks, sockets, broken __deepcopy__, nesting past
        # the recursion limit) are shared, not dropped
        return value


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new dict with ``override`` recursively merged over ``base``.

    Nested mappings are merged key by key; any other value in ``override``
    replaces the one in ``base``. Neither input is modified.
    """
    result = {key: _copy_value(value) for key, value in base.items()}
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = _copy_value(value)
    return result


def filter_allowed(meta: Mapping[str, Any]) -> dict[str, Any]:
    """Shallow copy of ``meta`` holding only allow-listed top-level keys."""
    return {key: value for key, value in meta.items() if key in ALLOWED_META_KEYS}


def merge_and_validate(
    call_meta: Mapping[str, Any] | None,
    identity: Mapping[str, Any],
    global_meta: Mapping[str, Any],
) -> dict[str, Any]:
    """Build the metadata actually sent to the sink.

    Args:
        call_meta: Per-call metadata, or None when the call passed none
        identity: The calling instance's identity
        global_meta: Process-wide metadata (hostname)

    Returns:
        A fresh dict holding only allow-listed keys plus the global meta keys.
    """
    call_meta = call_meta or {}
    # Filtering top-level keys first gives the same result as filtering
    # after the merge, and never copies values that would be dropped.
    merged = deep_merge(filter_allowed(call_meta), filter_allowed(identity))
    if call_meta.get("source") == N_APP_SOURCE:
        merged["source"] = N_APP_SOURCE
    return deep_merge(merged, global_meta)


def is_malformed(meta: Mapping[str, Any]) -> bool:
    """True when the record cannot be traced back to a call site."""
    source = meta.get("source")
    return source is None or source == UNKNOWN_CALLEE


def bad_log_message(message: str) -> str:
    return f"{BAD_LOG_PREFIX} \n\tLog: {message}"


def render_fragment(fragment: Any) -> str:
    """Render one positional argument for the log message."""
    if isinstance(fragment, str):
        return fragment
    if isinstance(fragment, _PRIMITIVES):
        return str(fragment)
    return pretty_repr(fragment, max_depth=DUMP_MAX_DEPTH)


def assemble_message(fragments: Iterable[Any]) -> str:
    """Join rendered fragments with a single space.

    Raises:
        MessageAssemblyError: a fragment's ``__str__``/``__repr__`` failed
    """
    parts = []
    for index, fragment in enumerate(fragments):
        try:
            parts.append(render_fragment(fragment))
        except Exception as exc:
            raise MessageAssemblyError(index, exc) from exc
    return " ".join(parts)


def split_trailing_meta(args: tuple[Any, ...]) -> tuple[tuple[Any, ...], Meta | None]:
    """Separate message fragments from a trailing ``Meta`` argument."""
    if args and isinstance(args[-1], Meta):
        return args[:-1], args[-1]
    return args, None


def build_global_meta(pod_name: str | None = None) -> dict[str, Any]:
    """Process-wide metadata merged into every record."""
    return {"hostname": pod_name or socket.gethostname()}


__all__ = [
    "ALLOWED_META_KEYS",
    "UNKNOWN_CALLEE",
    "N_APP_SOURCE",
    "DEFAULT_CODE_REPOSITORY",
    "BAD_LOG_PREFIX",
    "DUMP_MAX_DEPTH",
    "Meta",
    "deep_merge",
    "filter_allowed",
    "merge_and_validate",
    "is_malformed",
    "bad_log_message",
    "render_fragment",
    "assemble_message",
    "split_trailing_meta",
    "build_global_meta",
]
