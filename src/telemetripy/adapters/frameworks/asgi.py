"""ASGI middleware feeding HTTP exchanges into the telemetry pipeline.

This adapter is framework-agnostic and works with any ASGI server
(uvicorn, hypercorn, daphne) or framework built on ASGI (FastAPI,
Starlette).
"""

import json
import logging
import time
from collections.abc import Callable, Coroutine
from typing import Any

from telemetripy.core.logs import LogEmitter
from telemetripy.core.metrics import MetricAggregator
from telemetripy.core.redaction import redact

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

LATENCY_METRIC = "latency_service_endpoint"

DEFAULT_MAX_BODY_BYTES = 64 * 1024


def _full_path(scope: Scope) -> str:
    """Rebuild the original request target: root path, path and query string."""
    path = scope.get("root_path", "") + scope.get("path", "")
    query_string = scope.get("query_string", b"")
    if query_string:
        path += "?" + query_string.decode("latin-1")
    return path


def _has_header(scope: Scope, header_name: str) -> bool:
    """Check for a header in ASGI scope headers (case-insensitive)."""
    header_bytes = header_name.lower().encode()
    headers: list[tuple[bytes, bytes]] = scope.get("headers", [])
    return any(name.lower() == header_bytes for name, _ in headers)


def _decode_body(body: bytes) -> Any:
    """Decode a captured body: JSON when possible, text otherwise, None if empty.

    Text bodies are redacted before they get embedded as JSON strings.
    """
    if not body:
        return None
    text = body.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return redact(text)


class _BodyCapture:
    """Accumulates up to `limit` bytes of a message body."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.chunks: list[bytes] = []
        self.size = 0

    def add(self, chunk: bytes) -> None:
        if self.size < self.limit:
            self.chunks.append(chunk[: self.limit - self.size])
        self.size += len(chunk)

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)

    def decoded(self) -> Any:
        """Decoded body, or a size marker if the body exceeded the limit."""
        if self.size > self.limit:
            return f"[truncated {self.size} bytes]"
        return _decode_body(self.body)


class TelemetryMiddleware:
    """ASGI middleware that logs and counts every HTTP exchange.

    For each request it measures latency, pushes it as a
    ``latency_service_endpoint`` sum, counts the request per verb, and
    hands the exchange to LogEmitter.http_logger().
    """

    def __init__(
        self,
        app: ASGIApp,
        emitter: LogEmitter,
        aggregator: MetricAggregator,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    ) -> None:
        """Initialize the middleware with a wrapped app and pipeline components.

        Args:
            app: The ASGI application to wrap.
            emitter: Log emitter for request logs.
            aggregator: Metric aggregator for request counts and latency.
            max_body_bytes: Request/response bytes kept for the log payload.
        """
        self.app = app
        self.emitter = emitter
        self.aggregator = aggregator
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI callable interface that processes requests through the wrapped app."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        request_body = _BodyCapture(self.max_body_bytes)
        response_body = _BodyCapture(self.max_body_bytes)
        captured: dict[str, Any] = {"status": None, "exception": None}

        async def wrapped_receive() -> dict[str, Any]:
            message = await receive()
            if message["type"] == "http.request":
                request_body.add(message.get("body", b""))
            return message

        async def wrapped_send(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                captured["status"] = message["status"]
            elif message["type"] == "http.response.body":
                response_body.add(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, wrapped_receive, wrapped_send)
        except Exception as e:
            captured["exception"] = e
            captured["status"] = 500

        latency_ms = round((time.perf_counter() - start_time) * 1000)
        try:
            self._record_observability(
                scope,
                captured["status"] or 500,
                latency_ms,
                request_body.decoded(),
                response_body.decoded(),
            )
        except Exception:
            logger.exception("Failed to record telemetry for %s", scope.get("path"))
        if captured["exception"] is not None:
            raise captured["exception"]

    def _record_observability(
        self,
        scope: Scope,
        status_code: int,
        latency_ms: int,
        request_body: Any,
        response_body: Any,
    ) -> None:
        """Push latency, count the request and log the exchange."""
        method = scope.get("method", "GET")
        self.aggregator.push_metric(LATENCY_METRIC, latency_ms, "sum", "ms")
        self.aggregator.record_http_request(method)
        self.emitter.http_logger(
            method=method,
            path=_full_path(scope),
            status_code=status_code,
            authorized=_has_header(scope, "authorization"),
            request_body=request_body,
            response_body=response_body,
        )
