"""Process metrics state and the metric push path."""

import logging
import threading

from telemetripy.config import TelemetrySettings
from telemetripy.core.encoding.otlp import build_metric_envelope
from telemetripy.core.models import (
    TRACKED_METHODS,
    MetricKind,
    MetricsSnapshot,
    PushJob,
)
from telemetripy.core.ports import PushDispatcherPort

logger = logging.getLogger(__name__)


class MetricAggregator:
    """Counters and gauges shared by all request handlers.

    One instance is constructed at process start and handed to every
    component that records or reads metrics. All mutations take a single
    lock; reads go through snapshot().
    """

    def __init__(
        self, dispatcher: PushDispatcherPort, settings: TelemetrySettings
    ) -> None:
        self._dispatcher = dispatcher
        self._settings = settings
        self._lock = threading.Lock()
        self._http_requests: dict[str, int] = {"total": 0}
        self._http_requests.update(dict.fromkeys(TRACKED_METHODS, 0))
        self._active_users: set[str] = set()
        self._auth_success = 0
        self._auth_failure = 0
        self._pizzas_sold = 0
        self._pizza_failures = 0
        self._revenue = 0.0
        self._latency_sum = 0.0
        self._latency_count = 0

    def record_http_request(self, method: str) -> None:
        """Count one request; per-verb counts only for the tracked verbs."""
        method = method.upper()
        with self._lock:
            self._http_requests["total"] += 1
            if method in TRACKED_METHODS:
                self._http_requests[method] += 1

    def record_auth_attempt(self, success: bool, user_id: str) -> None:
        """Record an authentication outcome.

        A success marks the user active. A failure removes the user from
        the active set; callers use this both for failed logins and for
        logouts, so the failure counter also counts logouts.

        Args:
            success: Whether the attempt succeeded.
            user_id: Identifier of the user.
        """
        with self._lock:
            if success:
                self._auth_success += 1
                self._active_users.add(user_id)
            else:
                self._auth_failure += 1
                self._active_users.discard(user_id)

    def record_pizza_purchase(
        self, success: bool, latency_ms: float, price: float
    ) -> None:
        """Record an order; latency and revenue count only on success."""
        with self._lock:
            if success:
                self._pizzas_sold += 1
                self._revenue += price
                self._latency_sum += latency_ms
                self._latency_count += 1
            else:
                self._pizza_failures += 1

    def snapshot(self) -> MetricsSnapshot:
        """Return a consistent copy of the current state."""
        with self._lock:
            return MetricsSnapshot(
                http_requests=dict(self._http_requests),
                active_users=frozenset(self._active_users),
                auth_success=self._auth_success,
                auth_failure=self._auth_failure,
                pizzas_sold=self._pizzas_sold,
                pizza_failures=self._pizza_failures,
                revenue=self._revenue,
                latency_sum=self._latency_sum,
                latency_count=self._latency_count,
            )

    def push_metric(
        self, name: str, value: float, kind: MetricKind, unit: str
    ) -> None:
        """Ship one data point to the metrics backend.

        Args:
            name: Metric name (e.g., "http_total_requests")
            value: Data point value
            kind: "sum" for cumulative counters, "gauge" otherwise
            unit: Unit string (e.g., "1", "ms", "%")
        """
        try:
            cfg = self._settings.metrics
            job = PushJob(
                url=cfg.url,
                body=build_metric_envelope(name, value, kind, unit),
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {cfg.api_key}",
                },
                description=name,
            )
            self._dispatcher.submit(job)
        except Exception:
            logger.exception("Failed to push metric %s", name)
