"""BDD step definitions for the telemetry pipeline features."""

import json
from dataclasses import dataclass, field
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from telemetripy.adapters.scheduler import FlushScheduler
from telemetripy.config import TelemetrySettings
from telemetripy.core.logs import LogEmitter
from telemetripy.core.metrics import MetricAggregator
from tests.helpers import RecordingDispatcher, metric_of, payload_of, stream_of


@dataclass
class TelemetryScenarioContext:
    """Shared state between steps in a telemetry scenario."""

    dispatcher: RecordingDispatcher = field(default_factory=RecordingDispatcher)
    emitter: LogEmitter | None = None
    aggregator: MetricAggregator | None = None
    flushed: dict[str, Any] = field(default_factory=dict)


@pytest.fixture
def ctx() -> TelemetryScenarioContext:
    """Fresh scenario context for each test."""
    return TelemetryScenarioContext()


def _flush(ctx: TelemetryScenarioContext) -> dict[str, Any]:
    """Run one scheduler tick and index the pushed values by metric name."""
    if not ctx.flushed:
        FlushScheduler(ctx.aggregator, probe=lambda: (0.0, 0.0)).tick()
        for job in ctx.dispatcher.jobs:
            metric = metric_of(job)
            kind = "sum" if "sum" in metric else "gauge"
            point = metric[kind]["dataPoints"][0]
            ctx.flushed[metric["name"]] = point.get("asInt", point.get("asDouble"))
    return ctx.flushed


# === Background Steps ===
@given("a log emitter in test mode")
def step_emitter(ctx: TelemetryScenarioContext, settings: TelemetrySettings) -> None:
    ctx.emitter = LogEmitter(ctx.dispatcher, settings)


@given("a metric aggregator")
def step_aggregator(
    ctx: TelemetryScenarioContext, settings: TelemetrySettings
) -> None:
    ctx.aggregator = MetricAggregator(ctx.dispatcher, settings)


# === HTTP Logging Steps ===
@when(parsers.parse('a {method} to "{path}" answers {status:d}'))
def step_exchange(
    ctx: TelemetryScenarioContext, method: str, path: str, status: int
) -> None:
    ctx.emitter.http_logger(method, path, status, authorized=False)


@when(
    parsers.parse(
        "a {method} to \"{path}\" answers {status:d} with request body '{body}'"
    )
)
def step_exchange_with_body(
    ctx: TelemetryScenarioContext, method: str, path: str, status: int, body: str
) -> None:
    ctx.emitter.http_logger(
        method, path, status, authorized=False, request_body=json.loads(body)
    )


@then(parsers.parse('one http log is shipped at level "{level}"'))
def step_one_log(ctx: TelemetryScenarioContext, level: str) -> None:
    [job] = ctx.dispatcher.log_jobs()
    assert stream_of(job)["stream"] == {
        "component": "pizza-test",
        "level": level,
        "type": "http",
    }


@then("no log is shipped")
def step_no_log(ctx: TelemetryScenarioContext) -> None:
    assert ctx.dispatcher.log_jobs() == []


@then(parsers.parse('the logged request body has "{key}" set to "{value}"'))
def step_request_body_field(
    ctx: TelemetryScenarioContext, key: str, value: str
) -> None:
    payload = payload_of(ctx.dispatcher.log_jobs()[0])
    assert json.loads(payload["reqBody"])[key] == value


# === Metric Steps ===
@when(parsers.parse('"{user}" logs in successfully'))
def step_login(ctx: TelemetryScenarioContext, user: str) -> None:
    ctx.aggregator.record_auth_attempt(True, user)


@when(parsers.parse('"{user}" fails to authenticate'))
def step_auth_failure(ctx: TelemetryScenarioContext, user: str) -> None:
    ctx.aggregator.record_auth_attempt(False, user)


@when(parsers.parse("an order {outcome} in {latency:d} ms for {price:f}"))
def step_order(
    ctx: TelemetryScenarioContext, outcome: str, latency: int, price: float
) -> None:
    ctx.aggregator.record_pizza_purchase(outcome == "succeeds", latency, price)


@then(parsers.parse("there are {count:d} active users"))
def step_active_users(ctx: TelemetryScenarioContext, count: int) -> None:
    assert ctx.aggregator.snapshot().active_user_count == count


@then(parsers.parse("the auth success count is {count:d}"))
def step_auth_success(ctx: TelemetryScenarioContext, count: int) -> None:
    assert ctx.aggregator.snapshot().auth_success == count


@then(parsers.parse("the auth failure count is {count:d}"))
def step_auth_failure_count(ctx: TelemetryScenarioContext, count: int) -> None:
    assert ctx.aggregator.snapshot().auth_failure == count


@then(parsers.parse("the pizzas sold count is {count:d}"))
def step_pizzas_sold(ctx: TelemetryScenarioContext, count: int) -> None:
    assert ctx.aggregator.snapshot().pizzas_sold == count


@then(parsers.parse("the pizza failure count is {count:d}"))
def step_pizza_failures(ctx: TelemetryScenarioContext, count: int) -> None:
    assert ctx.aggregator.snapshot().pizza_failures == count


@then(parsers.parse('the flushed "{name}" is {value:g}'))
def step_flushed_value(ctx: TelemetryScenarioContext, name: str, value: float) -> None:
    assert _flush(ctx)[name] == pytest.approx(value)
