"""FastAPI adapter for the telemetry pipeline."""

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from fastapi import FastAPI

from telemetripy.adapters.frameworks.asgi import TelemetryMiddleware
from telemetripy.telemetry import Telemetry


def instrument_app(app: FastAPI, telemetry: Telemetry) -> FastAPI:
    """Add TelemetryMiddleware to a FastAPI app.

    Args:
        app: Application to instrument (before it starts serving).
        telemetry: Pipeline that receives request logs and metrics.

    Returns:
        The same app, for chaining.
    """
    app.add_middleware(
        TelemetryMiddleware,
        emitter=telemetry.emitter,
        aggregator=telemetry.aggregator,
    )
    return app


def telemetry_lifespan(
    telemetry: Telemetry,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Create a lifespan that starts and drains the pipeline with the app.

    Usage:
        app = FastAPI(lifespan=telemetry_lifespan(telemetry))
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        telemetry.start(loop=asyncio.get_running_loop())
        try:
            yield
        finally:
            telemetry.shutdown()

    return lifespan
