"""
Opt-in redirection of ``print()`` and ``warnings`` through a logger instance.

Nothing in udu-logging installs this by itself. An application that wants
stray prints and warnings to carry its identity wires it at its entry point::

    log = create_instance("bin/worker.py")
    with redirect_console(log):
        run_worker()

or, for the lifetime of the process::

    redirect_console(log).install()

``print()`` calls without ``file=`` (or with ``file=sys.stdout``) go to the
instance's ``debug`` handler; ``warnings.warn`` goes to ``warning``. Prints to
other files, and prints made while a redirected call is already being
dispatched, use the original ``print``.

A redirected ``print`` becomes one whole record: ``end`` and ``flush`` are
ignored, so ``print("x", end="")`` still logs a complete ``debug`` line.
"""

from __future__ import annotations

import builtins
import sys
import threading
import warnings
from typing import Any

from udu_logging.instance import LoggerInstance


class ConsoleRedirect:
    """Swaps ``builtins.print`` and ``warnings.showwarning`` while installed."""

    def __init__(self, instance: LoggerInstance):
        self.instance = instance
        self._original_print: Any = None
        self._original_showwarning: Any = None
        self._local = threading.local()

    @property
    def installed(self) -> bool:
        return self._original_print is not None

    def _print(self, *args: Any, sep: str | None = " ", end: str | None = "\n", file: Any = None, flush: bool = False) -> None:
        if (file is not None and file is not sys.stdout) or getattr(self._local, "active", False):
            self._original_print(*args, sep=sep, end=end, file=file, flush=flush)
            return
        self._local.active = True
        try:
            if sep in (None, " "):
                self.instance.debug(*args)
            else:
                self.instance.debug(sep.join(str(arg) for arg in args))
        finally:
            self._local.active = False

    def _showwarning(
        self,
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: Any = None,
        line: str | None = None,
    ) -> None:
        self.instance.warning(f"{category.__name__}: {message} ({filename}:{lineno})")

    def install(self) -> "ConsoleRedirect":
        if self.installed:
            return self
        self._original_print = builtins.print
        self._original_showwarning = warnings.showwarning
        builtins.print = self._print
        warnings.showwarning = self._showwarning
        return self

    def uninstall(self) -> None:
        if not self.installed:
            return
        builtins.print = self._original_print
        warnings.showwarning = self._original_showwarning
        self._original_print = None
        self._original_showwarning = None

    def __enter__(self) -> "ConsoleRedirect":
        return self.install()

    def __exit__(self, *args: Any) -> None:
        self.uninstall()


def redirect_console(instance: LoggerInstance) -> ConsoleRedirect:
    """Build a redirect for ``instance``; use as a context manager or call ``install()``."""
    return ConsoleRedirect(instance)


__all__ = ["ConsoleRedirect", "redirect_console"]
