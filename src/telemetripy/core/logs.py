"""Structured log emission to the log push backend."""

import logging
import traceback
from typing import Any

from telemetripy.config import TelemetrySettings
from telemetripy.core.encoding.loki import build_log_push, now_nanos
from telemetripy.core.models import LogEvent, LogLevel, PushJob
from telemetripy.core.ports import PushDispatcherPort
from telemetripy.core.redaction import sanitize, stringify

logger = logging.getLogger(__name__)

DOCS_PREFIX = "/api/docs"
API_PREFIX = "/api/"


def status_to_level(status_code: int) -> LogLevel:
    """Map an HTTP status code to a log level.

    - >= 500 → "error"
    - >= 400 → "warn"
    - otherwise → "info"
    """
    if status_code >= 500:
        return "error"
    if status_code >= 400:
        return "warn"
    return "info"


def should_log_http(path: str, status_code: int) -> bool:
    """Decide whether an HTTP exchange is logged.

    Documentation pages are never logged, and 404s are only logged for
    paths under the API prefix.
    """
    if path.startswith(DOCS_PREFIX):
        return False
    if status_code == 404 and not path.startswith(API_PREFIX):
        return False
    return True


class LogEmitter:
    """Builds, redacts and ships structured log events.

    Every entry point funnels into emit(), which never raises: failures are
    written to the diagnostic logger and the event is dropped.
    """

    def __init__(
        self, dispatcher: PushDispatcherPort, settings: TelemetrySettings
    ) -> None:
        """Initialize the emitter.

        Args:
            dispatcher: Delivery port for outbound pushes.
            settings: Provides the log endpoint, credentials and component.
        """
        self._dispatcher = dispatcher
        self._settings = settings

    def build_event(self, level: LogLevel, type_: str, data: Any) -> LogEvent:
        """Create a LogEvent with labels, timestamp and sanitized payload."""
        labels = {
            "component": self._settings.component,
            "level": level,
            "type": type_,
        }
        return LogEvent(
            timestamp=now_nanos(),
            level=level,
            type=type_,
            labels=labels,
            payload=sanitize(data),
        )

    def _build_job(self, event: LogEvent) -> PushJob:
        cfg = self._settings.logging
        return PushJob(
            url=cfg.url,
            body=build_log_push(event),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {cfg.user_id}:{cfg.api_key}",
            },
            description=f"{event.type} log",
            report_rejections=not self._settings.test_mode,
        )

    def emit(self, level: LogLevel, type_: str, data: Any) -> None:
        """Ship one log event to the log backend.

        Args:
            level: "info", "warn" or "error".
            type_: Free-form tag used as a stream label.
            data: Structured payload; unserializable data is replaced by a
                placeholder string.
        """
        try:
            event = self.build_event(level, type_, data)
            self._dispatcher.submit(self._build_job(event))
        except Exception:
            logger.exception("Failed to emit %s log", type_)

    def http_logger(
        self,
        method: str,
        path: str,
        status_code: int,
        authorized: bool,
        request_body: Any = None,
        response_body: Any = None,
    ) -> bool:
        """Log one request/response exchange.

        Args:
            method: HTTP method.
            path: Full original path, including the query string.
            status_code: Response status code.
            authorized: Whether an Authorization header was present.
            request_body: Decoded request body.
            response_body: Decoded response body.

        Returns:
            True if an event was emitted, False if the exchange was skipped.
        """
        if not should_log_http(path, status_code):
            return False
        data = {
            "method": method,
            "path": path,
            "statusCode": status_code,
            "authorized": authorized,
            "reqBody": sanitize(request_body),
            "resBody": sanitize(response_body),
        }
        self.emit(status_to_level(status_code), "http", data)
        return True

    def db_logger(self, query: str) -> None:
        self.emit("info", "database", {"query": query})

    def factory_logger(
        self, request_body: Any, response_body: Any, success: bool = True
    ) -> None:
        """Log a call to the external order factory."""
        data = {
            "requestBody": sanitize(request_body),
            "responseBody": sanitize(response_body),
        }
        self.emit("info" if success else "error", "factory", data)

    def log_exception(self, exc: BaseException) -> None:
        """Log an uncaught exception with its formatted traceback."""
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self.emit("error", "exception", {"message": str(exc), "stack": stack})

    def log_rejection(self, reason: Any) -> None:
        """Log an async failure nobody awaited."""
        if isinstance(reason, BaseException):
            reason = f"{type(reason).__name__}: {reason}"
        self.emit("error", "promiseRejection", {"reason": stringify(reason)})
