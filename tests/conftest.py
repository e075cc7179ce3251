"""Shared test fixtures for all test modules."""

import httpx
import pytest

from telemetripy.config import LoggingSettings, MetricsSettings, TelemetrySettings
from telemetripy.core.logs import LogEmitter
from telemetripy.core.metrics import MetricAggregator
from tests.helpers import LOG_URL, METRICS_URL, BackendRecorder, RecordingDispatcher


@pytest.fixture
def settings() -> TelemetrySettings:
    """Settings pointing at fake endpoints, in test mode."""
    return TelemetrySettings(
        logging=LoggingSettings(url=LOG_URL, user_id="1234", api_key="log-key"),
        metrics=MetricsSettings(
            url=METRICS_URL, api_key="metrics-key", source="pizza-test"
        ),
        test_mode=True,
        install_exception_hooks=False,
    )


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    """Dispatcher that records jobs instead of sending them."""
    return RecordingDispatcher()


@pytest.fixture
def emitter(dispatcher: RecordingDispatcher, settings: TelemetrySettings) -> LogEmitter:
    return LogEmitter(dispatcher, settings)


@pytest.fixture
def aggregator(
    dispatcher: RecordingDispatcher, settings: TelemetrySettings
) -> MetricAggregator:
    return MetricAggregator(dispatcher, settings)


@pytest.fixture
def backend() -> BackendRecorder:
    """Fake telemetry backend for httpx.MockTransport."""
    return BackendRecorder()


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_scope():
    """Factory fixture for creating ASGI scope dicts.

    Used in tests to create scope dicts with customizable method/path/headers.
    """
    from telemetripy.adapters.frameworks.asgi import Scope

    def _scope(
        method: str = "GET",
        path: str = "/api/test",
        query_string: bytes = b"",
        headers: list[tuple[bytes, bytes]] | None = None,
    ) -> Scope:
        return {
            "type": "http",
            "method": method,
            "path": path,
            "root_path": "",
            "query_string": query_string,
            "headers": headers or [],
        }

    return _scope


@pytest.fixture
def asgi_receive():
    """Factory fixture returning a receive callable that yields one body."""

    def _receive(body: bytes = b""):
        async def receive() -> dict[str, object]:
            return {"type": "http.request", "body": body, "more_body": False}

        return receive

    return _receive


@pytest.fixture
def asgi_send_capture():
    """Fixture that returns a send callable and a responses list for capture.

    Returns a tuple of (send_func, responses_list) for recording ASGI messages.
    """

    responses: list[dict[str, object]] = []

    async def send(message: dict[str, object]) -> None:
        """Capture ASGI messages."""
        responses.append(message)

    return send, responses


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            async with asgi_test_client(app) as client:
                response = await client.get("/endpoint")
    """
    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
