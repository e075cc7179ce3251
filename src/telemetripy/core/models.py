"""Core domain models for telemetry data."""

from dataclasses import dataclass, field
from typing import Any, Literal

LogLevel = Literal["info", "warn", "error"]
MetricKind = Literal["sum", "gauge"]

TRACKED_METHODS = ("GET", "POST", "PUT", "DELETE")


@dataclass(frozen=True)
class LogEvent:
    """A structured log event, built and shipped within one emit call.

    Attributes:
        timestamp: Nanoseconds since epoch, as a decimal string.
        level: Log level ("info", "warn" or "error").
        type: Free-form tag (http, database, factory, exception, ...).
        labels: Stream labels: component, level and type.
        payload: Sanitized JSON string.
    """

    timestamp: str
    level: LogLevel
    type: str
    labels: dict[str, str]
    payload: str


@dataclass(frozen=True)
class PushJob:
    """A pending outbound POST to one of the telemetry backends.

    Attributes:
        url: Target endpoint. Jobs with an empty url are dropped.
        body: JSON-serializable request body.
        headers: Extra request headers (auth, content type).
        description: Short name used in diagnostic output.
        report_rejections: Write non-2xx responses to the diagnostic log.
    """

    url: str
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)
    description: str = ""
    report_rejections: bool = True


@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time copy of the aggregator state.

    Attributes:
        http_requests: Counts keyed by "total" and the tracked verbs.
        active_users: User ids currently considered authenticated.
        auth_success: Successful authentication attempts.
        auth_failure: Failed authentication attempts (and logouts).
        pizzas_sold: Successful purchases.
        pizza_failures: Failed purchases.
        revenue: Accumulated revenue of successful purchases.
        latency_sum: Sum of purchase latencies in milliseconds.
        latency_count: Number of latency samples.
    """

    http_requests: dict[str, int]
    active_users: frozenset[str]
    auth_success: int
    auth_failure: int
    pizzas_sold: int
    pizza_failures: int
    revenue: float
    latency_sum: float
    latency_count: int

    @property
    def active_user_count(self) -> int:
        return len(self.active_users)

    @property
    def average_latency(self) -> float:
        """Mean purchase latency, or 0 when there are no samples."""
        if self.latency_count == 0:
            return 0
        return self.latency_sum / self.latency_count
