"""Best-effort log and metrics shipping for ASGI services."""

from telemetripy.adapters.dispatch import PushDispatcher
from telemetripy.adapters.frameworks.asgi import TelemetryMiddleware
from telemetripy.adapters.hooks import ExceptionHooks, install_exception_hooks
from telemetripy.adapters.logging import TelemetryLogHandler
from telemetripy.adapters.scheduler import FlushScheduler
from telemetripy.config import (
    LoggingSettings,
    MetricsSettings,
    TelemetrySettings,
    get_settings,
)
from telemetripy.core.logs import LogEmitter
from telemetripy.core.metrics import MetricAggregator
from telemetripy.core.models import LogEvent, MetricsSnapshot, PushJob
from telemetripy.core.redaction import redact, sanitize, stringify
from telemetripy.telemetry import Telemetry

__all__ = [
    "ExceptionHooks",
    "FlushScheduler",
    "LogEmitter",
    "LogEvent",
    "LoggingSettings",
    "MetricAggregator",
    "MetricsSettings",
    "MetricsSnapshot",
    "PushDispatcher",
    "PushJob",
    "Telemetry",
    "TelemetryLogHandler",
    "TelemetryMiddleware",
    "TelemetrySettings",
    "get_settings",
    "install_exception_hooks",
    "redact",
    "sanitize",
    "stringify",
]
