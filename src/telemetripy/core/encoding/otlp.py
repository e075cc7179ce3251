"""OTLP/JSON encoder for single-point metric pushes."""

import time
from typing import Any

CUMULATIVE = "AGGREGATION_TEMPORALITY_CUMULATIVE"

METRIC_KINDS = frozenset({"sum", "gauge"})


def _is_integral(value: float) -> bool:
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _data_point(value: float, time_unix_nano: int) -> dict[str, Any]:
    """Build a data point with exactly one of asInt / asDouble set."""
    if isinstance(value, bool):
        value = int(value)
    if _is_integral(value):
        return {"asInt": int(value), "timeUnixNano": time_unix_nano}
    return {"asDouble": float(value), "timeUnixNano": time_unix_nano}


def build_metric_envelope(
    name: str,
    value: float,
    kind: str,
    unit: str,
    time_unix_nano: int | None = None,
) -> dict[str, Any]:
    """Build a resourceMetrics body carrying one data point.

    Args:
        name: Metric name (e.g., "http_total_requests")
        value: Metric value. Integral values are sent as asInt.
        kind: "sum" (cumulative, monotonic) or "gauge"
        unit: Unit string (e.g., "1", "ms", "%")
        time_unix_nano: Sample time (default: now, millisecond precision)

    Returns:
        OTLP/JSON metrics body.

    Raises:
        ValueError: If kind is not a known metric kind.
    """
    if kind not in METRIC_KINDS:
        raise ValueError(f"Unknown metric kind: {kind!r}")
    if time_unix_nano is None:
        time_unix_nano = int(time.time() * 1000) * 1_000_000

    data: dict[str, Any] = {"dataPoints": [_data_point(value, time_unix_nano)]}
    if kind == "sum":
        data["aggregationTemporality"] = CUMULATIVE
        data["isMonotonic"] = True

    metric = {"name": name, "unit": unit, kind: data}
    return {"resourceMetrics": [{"scopeMetrics": [{"metrics": [metric]}]}]}
