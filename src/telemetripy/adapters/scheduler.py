"""Periodic metrics flush.

One daemon thread per scheduler wakes every `interval` seconds, snapshots
the aggregator and the host's resource usage, and pushes one data point per
tracked metric. Ticks are not guarded against overlap: a tick is expected
to finish well within the interval since pushes only enqueue.
"""

import logging
import threading
from collections.abc import Callable

from telemetripy.adapters.system import system_usage
from telemetripy.core.metrics import MetricAggregator
from telemetripy.core.models import MetricKind, MetricsSnapshot

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0

SystemProbe = Callable[[], tuple[float, float]]


def _snapshot_metrics(
    snapshot: MetricsSnapshot,
) -> list[tuple[str, float, MetricKind, str]]:
    """Map a snapshot to (name, value, kind, unit) push tuples."""
    http = snapshot.http_requests
    return [
        ("http_total_requests", http["total"], "sum", "1"),
        ("http_get_requests", http["GET"], "sum", "1"),
        ("http_post_requests", http["POST"], "sum", "1"),
        ("http_put_requests", http["PUT"], "sum", "1"),
        ("http_delete_requests", http["DELETE"], "sum", "1"),
        ("active_users", snapshot.active_user_count, "gauge", "1"),
        ("auth_success", snapshot.auth_success, "sum", "1"),
        ("auth_failure", snapshot.auth_failure, "sum", "1"),
        ("pizzas_sold", snapshot.pizzas_sold, "sum", "1"),
        ("pizza_failures", snapshot.pizza_failures, "sum", "1"),
        ("pizza_revenue", round(snapshot.revenue, 2), "sum", "USD"),
        ("latency_pizza_creation", snapshot.average_latency, "sum", "ms"),
    ]


class FlushScheduler:
    """Pushes a full metrics batch on a fixed interval."""

    def __init__(
        self,
        aggregator: MetricAggregator,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        probe: SystemProbe = system_usage,
    ) -> None:
        """Initialize the scheduler.

        Args:
            aggregator: Source of metric state and the push path.
            interval: Seconds between ticks.
            probe: Returns (cpu_percent, memory_percent).
        """
        self.aggregator = aggregator
        self.interval = interval
        self.probe = probe
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the timer thread. Calling start() twice is a no-op."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name="telemetripy-flush", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.tick()

    def _safe_push(
        self, name: str, value: float, kind: MetricKind, unit: str
    ) -> None:
        try:
            self.aggregator.push_metric(name, value, kind, unit)
        except Exception:
            logger.exception("Error sending metric %s", name)

    def tick(self) -> None:
        """Push every tracked metric once. Never raises."""
        try:
            batch = _snapshot_metrics(self.aggregator.snapshot())
            try:
                cpu, memory = self.probe()
            except Exception:
                logger.exception("Error reading system usage")
            else:
                batch.append(("cpu_usage", cpu, "gauge", "%"))
                batch.append(("memory_usage", memory, "gauge", "%"))
            for name, value, kind, unit in batch:
                self._safe_push(name, value, kind, unit)
        except Exception:
            logger.exception("Error sending metrics")
