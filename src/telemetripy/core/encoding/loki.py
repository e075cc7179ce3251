"""Loki push encoder for log events."""

import time
from typing import Any

from telemetripy.core.models import LogEvent


def now_nanos() -> str:
    """Current wall-clock time in nanoseconds, as a decimal string.

    The value is derived from the millisecond clock, so the last six
    digits are always zero.
    """
    return str(int(time.time() * 1000) * 1_000_000)


def build_log_push(event: LogEvent) -> dict[str, Any]:
    """Wrap a log event in a single-stream Loki push body.

    Args:
        event: The event to ship.

    Returns:
        Dict of the form {"streams": [{"stream": labels, "values": [[ts, line]]}]}.
    """
    return {
        "streams": [
            {
                "stream": dict(event.labels),
                "values": [[event.timestamp, event.payload]],
            }
        ]
    }
