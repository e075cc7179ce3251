"""Python logging handler adapter for telemetripy.

This adapter bridges Python's standard library logging module to the
LogEmitter, so application log records are shipped to the log backend
alongside the pipeline's own events.
"""

import logging
import traceback
from typing import Any

from telemetripy.core.logs import LogEmitter
from telemetripy.core.models import LogLevel

# Records from these namespaces are the pipeline's own diagnostics or
# come from the HTTP client delivering the pushes
_IGNORED_LOGGERS = frozenset({"telemetripy", "httpx", "httpcore"})

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


# Default attributes to extract from LogRecord
_DEFAULT_INCLUDE_ATTRS = ["module", "funcName", "lineno"]


def _level_for_record(levelno: int) -> LogLevel:
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    return "info"


class TelemetryLogHandler(logging.Handler):
    """Logging handler that ships log records through a LogEmitter.

    Example:
        ```python
        from telemetripy import Telemetry, TelemetryLogHandler

        telemetry = Telemetry(settings)
        logging.getLogger("app").addHandler(TelemetryLogHandler(telemetry.emitter))
        ```
    """

    def __init__(
        self,
        emitter: LogEmitter,
        type_: str = "log",
        include_attrs: list[str] | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        """Initialize the handler with a log emitter.

        Args:
            emitter: Emitter used to ship records.
            type_: Stream type label for bridged records (default: "log").
            include_attrs: List of LogRecord attributes to include. Defaults to
                ["module", "funcName", "lineno"].
            level: Minimum record level handled.
        """
        super().__init__(level)
        self._emitter = emitter
        self._type = type_
        self._include_attrs = include_attrs or _DEFAULT_INCLUDE_ATTRS

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a log record to the log backend.

        Args:
            record: The log record to emit.
        """
        if record.name.split(".")[0] in _IGNORED_LOGGERS:
            return
        try:
            self._emitter.emit(
                _level_for_record(record.levelno), self._type, self._build_data(record)
            )
        except Exception:
            self.handleError(record)

    def _build_data(self, record: logging.LogRecord) -> dict[str, Any]:
        # Map of attribute names to their values from LogRecord
        attr_mapping: dict[str, str | int | float | bool] = {
            "module": record.module,
            "funcName": record.funcName or "",
            "lineno": record.lineno,
            "pathname": record.pathname,
        }

        data: dict[str, Any] = {
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(
            {key: attr_mapping[key] for key in self._include_attrs if key in attr_mapping}
        )

        # Add any extra attributes passed via logging call
        for key, value in record.__dict__.items():
            if key not in _STANDARD_LOGRECORD_ATTRS and isinstance(
                value, (str, int, float, bool)
            ):
                data[key] = value

        # Extract exception info if present
        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            if exc_type is not None:
                data["exc_type"] = exc_type.__name__
            if exc_value is not None:
                data["exc_message"] = str(exc_value)
            if exc_tb is not None:
                data["exc_traceback"] = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )
        return data
