"""Test doubles shared across test modules."""

import json
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from telemetripy.core.models import PushJob

LOG_URL = "https://logs.example.test/loki/api/v1/push"
METRICS_URL = "https://metrics.example.test/otlp/v1/metrics"


class RecordingDispatcher:
    """PushDispatcherPort that records jobs instead of sending them."""

    def __init__(self) -> None:
        self.jobs: list[PushJob] = []
        self._lock = threading.Lock()

    def submit(self, job: PushJob) -> bool:
        with self._lock:
            self.jobs.append(job)
        return True

    def metric_names(self) -> list[str]:
        """Names of all pushed metrics, in push order."""
        return [metric_of(job)["name"] for job in self.jobs if "resourceMetrics" in job.body]

    def log_jobs(self) -> list[PushJob]:
        return [job for job in self.jobs if "streams" in job.body]


def metric_of(job: PushJob) -> dict[str, Any]:
    """Extract the single metric from an OTLP push body."""
    return job.body["resourceMetrics"][0]["scopeMetrics"][0]["metrics"][0]


def stream_of(job: PushJob) -> dict[str, Any]:
    """Extract the single stream from a Loki push body."""
    return job.body["streams"][0]


def payload_of(job: PushJob) -> dict[str, Any]:
    """Decode the JSON log line of a Loki push body."""
    return json.loads(stream_of(job)["values"][0][1])


@dataclass
class BackendRecorder:
    """httpx.MockTransport handler that records requests.

    Attributes:
        status_code: Status returned for every request.
        fail_urls: Requests to these URLs raise httpx.ConnectError.
    """

    status_code: int = 204
    fail_urls: set[str] = field(default_factory=set)
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) in self.fail_urls:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(self.status_code, text="backend says no")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


def make_asgi_app(
    status: int = 200,
    body: bytes = b"OK",
    raise_exception: Exception | None = None,
    content_type: bytes = b"text/plain",
) -> Callable[..., Any]:
    """Create an ASGI app that drains the request and returns a fixed response."""

    async def app(scope, receive, send) -> None:
        more_body = True
        while more_body:
            message = await receive()
            more_body = message.get("more_body", False)
        if raise_exception is not None:
            raise raise_exception
        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [(b"content-type", content_type)],
            }
        )
        await send({"type": "http.response.body", "body": body})

    return app
