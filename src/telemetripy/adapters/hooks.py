"""Process-level last-resort exception hooks.

These hooks only observe: after logging, the previously installed hook is
always called, so the interpreter's own handling (printing the traceback,
terminating) is unchanged.
"""

import asyncio
import sys
import threading
from typing import Any

from telemetripy.core.logs import LogEmitter


class ExceptionHooks:
    """Installed hook set; uninstall() restores what was there before."""

    def __init__(self, emitter: LogEmitter) -> None:
        self.emitter = emitter
        self._prev_excepthook = sys.excepthook
        self._prev_threading_hook = threading.excepthook
        self._loops: list[tuple[asyncio.AbstractEventLoop, Any]] = []
        self.installed = False

    def _excepthook(self, exc_type, exc_value, exc_tb) -> None:
        if exc_value is not None and not issubclass(exc_type, KeyboardInterrupt):
            self.emitter.log_exception(exc_value)
        self._prev_excepthook(exc_type, exc_value, exc_tb)

    def _threading_hook(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_value is not None and not issubclass(args.exc_type, SystemExit):
            self.emitter.log_exception(args.exc_value)
        self._prev_threading_hook(args)

    def install(self) -> "ExceptionHooks":
        if not self.installed:
            sys.excepthook = self._excepthook
            threading.excepthook = self._threading_hook
            self.installed = True
        return self

    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Report exceptions of tasks that were never awaited on `loop`."""
        previous = loop.get_exception_handler()

        def handler(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
            reason = context.get("exception") or context.get("message")
            self.emitter.log_rejection(reason)
            if previous is not None:
                previous(loop, context)
            else:
                loop.default_exception_handler(context)

        loop.set_exception_handler(handler)
        self._loops.append((loop, previous))

    def uninstall(self) -> None:
        if self.installed:
            sys.excepthook = self._prev_excepthook
            threading.excepthook = self._prev_threading_hook
            self.installed = False
        for loop, previous in self._loops:
            if not loop.is_closed():
                loop.set_exception_handler(previous)
        self._loops.clear()


def install_exception_hooks(emitter: LogEmitter) -> ExceptionHooks:
    """Route uncaught exceptions in the main thread and worker threads to `emitter`."""
    return ExceptionHooks(emitter).install()
