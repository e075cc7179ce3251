"""Background HTTP delivery for telemetry pushes.

A single daemon worker drains a bounded queue of PushJobs and POSTs each
one with a shared httpx client. Callers never wait on the network: submit()
either enqueues or drops. Failures are written to the diagnostic logger
and discarded; nothing is retried.
"""

import logging
import queue
import threading

import httpx

from telemetripy.core.models import PushJob

logger = logging.getLogger(__name__)

# How often the idle worker checks for shutdown
_POLL_SECONDS = 0.1


class PushDispatcher:
    """Bounded, best-effort implementation of PushDispatcherPort."""

    def __init__(
        self,
        max_queue_size: int = 1000,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            max_queue_size: Jobs beyond this many pending are dropped.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (e.g. httpx.MockTransport).
        """
        self._queue: queue.Queue[PushJob] = queue.Queue(maxsize=max_queue_size)
        self._client = httpx.Client(timeout=timeout, transport=transport)
        self._stopping = threading.Event()
        self._start_lock = threading.Lock()
        self._worker: threading.Thread | None = None
        self.dropped = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def _ensure_worker(self) -> None:
        if self._worker is not None:
            return
        with self._start_lock:
            if self._worker is None:
                self._worker = threading.Thread(
                    target=self._run, name="telemetripy-dispatch", daemon=True
                )
                self._worker.start()

    def submit(self, job: PushJob) -> bool:
        """Queue a job without blocking.

        Returns:
            True if queued, False if dropped (no url, queue full, or the
            dispatcher is shutting down).
        """
        if not job.url:
            logger.debug("No endpoint configured, dropping %s", job.description)
            return False
        if self._stopping.is_set():
            logger.warning("Dispatcher stopped, dropping %s", job.description)
            self.dropped += 1
            return False
        self._ensure_worker()
        try:
            self._queue.put_nowait(job)
        except queue.Full:
            self.dropped += 1
            logger.warning("Push queue full, dropping %s", job.description)
            return False
        return True

    def _run(self) -> None:
        while True:
            try:
                job = self._queue.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                if self._stopping.is_set():
                    return
                continue
            try:
                self._deliver(job)
            finally:
                self._queue.task_done()

    def _deliver(self, job: PushJob) -> None:
        """POST one job; every failure is logged and swallowed."""
        try:
            response = self._client.post(job.url, json=job.body, headers=job.headers)
        except httpx.HTTPError as e:
            logger.error("Error pushing %s: %r", job.description, e)
            return
        except Exception:
            logger.exception("Unexpected error pushing %s", job.description)
            return

        if response.is_success:
            logger.debug("Pushed %s", job.description)
        elif job.report_rejections:
            logger.error(
                "Failed to push %s: %s %s",
                job.description,
                response.status_code,
                response.text,
            )

    def flush(self) -> None:
        """Block until every queued job has been attempted."""
        if self._worker is None:
            return
        self._queue.join()

    def shutdown(self, timeout: float = 2.0) -> None:
        """Stop accepting jobs and drain the queue for up to `timeout` seconds.

        Jobs still pending after the timeout are abandoned.
        """
        if self._stopping.is_set():
            return
        self._stopping.set()
        if self._worker is not None:
            self._worker.join(timeout)
            if self._worker.is_alive():
                logger.warning(
                    "Abandoning %d pending telemetry pushes", self._queue.qsize()
                )
                return
        self._client.close()
