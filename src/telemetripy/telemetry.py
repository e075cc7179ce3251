"""Telemetry facade: constructs, wires and owns the pipeline components."""

import asyncio
import atexit
import logging
from typing import Any

from telemetripy.adapters.dispatch import PushDispatcher
from telemetripy.adapters.hooks import ExceptionHooks, install_exception_hooks
from telemetripy.adapters.scheduler import FlushScheduler, SystemProbe
from telemetripy.adapters.system import system_usage
from telemetripy.config import TelemetrySettings
from telemetripy.core.logs import LogEmitter
from telemetripy.core.metrics import MetricAggregator
from telemetripy.core.ports import PushDispatcherPort

logger = logging.getLogger(__name__)


class Telemetry:
    """One telemetry pipeline per process.

    Construct it once at startup and pass it (or its emitter/aggregator)
    to whatever records logs and metrics.

    Example:
        ```python
        telemetry = Telemetry(TelemetrySettings())
        telemetry.start()
        telemetry.record_auth_attempt(True, user_id)
        telemetry.shutdown()
        ```
    """

    def __init__(
        self,
        settings: TelemetrySettings | None = None,
        dispatcher: PushDispatcherPort | None = None,
        probe: SystemProbe = system_usage,
    ) -> None:
        """Initialize the pipeline.

        Args:
            settings: Configuration (default: TelemetrySettings()).
            dispatcher: Delivery port (default: a PushDispatcher built from
                settings).
            probe: System usage probe for the scheduler.
        """
        self.settings = settings or TelemetrySettings()
        self.dispatcher = dispatcher or PushDispatcher(
            max_queue_size=self.settings.max_queue_size,
            timeout=self.settings.push_timeout_seconds,
        )
        self.emitter = LogEmitter(self.dispatcher, self.settings)
        self.aggregator = MetricAggregator(self.dispatcher, self.settings)
        self.scheduler = FlushScheduler(
            self.aggregator,
            interval=self.settings.flush_interval_seconds,
            probe=probe,
        )
        self.hooks: ExceptionHooks | None = None
        self._started = False

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Start background work.

        The flush scheduler is not started in test mode. Exception hooks are
        installed when enabled in settings; if `loop` is given, unawaited
        task failures on it are reported too.
        """
        if self._started:
            return
        self._started = True
        if self.settings.test_mode:
            logger.debug("Test mode: flush scheduler disabled")
        else:
            self.scheduler.start()
        if self.settings.install_exception_hooks:
            self.hooks = install_exception_hooks(self.emitter)
            if loop is not None:
                self.hooks.attach_loop(loop)
        atexit.register(self.shutdown)

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop the scheduler, remove hooks and drain pending pushes."""
        if timeout is None:
            timeout = self.settings.shutdown_timeout_seconds
        self.scheduler.stop()
        if self.hooks is not None:
            self.hooks.uninstall()
            self.hooks = None
        shutdown = getattr(self.dispatcher, "shutdown", None)
        if shutdown is not None:
            shutdown(timeout)
        if self._started:
            atexit.unregister(self.shutdown)
            self._started = False

    # Business-layer entry points

    def record_http_request(self, method: str) -> None:
        self.aggregator.record_http_request(method)

    def record_auth_attempt(self, success: bool, user_id: str) -> None:
        self.aggregator.record_auth_attempt(success, user_id)

    def record_pizza_purchase(
        self, success: bool, latency_ms: float, price: float
    ) -> None:
        self.aggregator.record_pizza_purchase(success, latency_ms, price)

    def db_logger(self, query: str) -> None:
        self.emitter.db_logger(query)

    def factory_logger(
        self, request_body: Any, response_body: Any, success: bool = True
    ) -> None:
        self.emitter.factory_logger(request_body, response_body, success)
