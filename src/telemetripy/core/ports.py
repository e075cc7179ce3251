"""Port interfaces for outbound delivery.

The emitter and the aggregator depend only on this protocol, not on the
HTTP dispatcher that implements it.
"""

from typing import Protocol, runtime_checkable

from telemetripy.core.models import PushJob


@runtime_checkable
class PushDispatcherPort(Protocol):
    """Port for fire-and-forget push delivery.

    Adapters implementing this protocol accept jobs without blocking the
    caller on network I/O. Examples: PushDispatcher, RecordingDispatcher
    (tests).
    """

    def submit(self, job: PushJob) -> bool:
        """Queue a job for delivery.

        Returns:
            True if the job was accepted, False if it was dropped.
        """
        ...
