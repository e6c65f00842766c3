"""
Caregiver side: keep a local snapshot of pending requests fresh.

``RequestPollingEngine.start()`` fetches once straight away, then again every
``interval`` seconds, and hands back a ``PollHandle``. Stopping the handle
cancels the timer task; no fetch is issued after that. Each successful fetch
replaces the snapshot wholesale; a failed one is logged and the previous
snapshot is kept until the next tick.

The schedule is fixed-delay: the interval is slept after each fetch finishes,
so the effective period is fetch latency plus ``interval`` and two fetches
never overlap.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum

from eldercare.client import CareApiClient
from eldercare.errors import ElderCareError
from eldercare.models import ServiceRequest

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

DEFAULT_POLL_INTERVAL = 10.0


class PendingView:
    """The caregiver's local list of not-yet-actioned requests."""

    def __init__(self) -> None:
        self._requests: list[ServiceRequest] = []
        self.loaded = False
        self.in_flight: set[str] = set()

    @property
    def requests(self) -> list[ServiceRequest]:
        return list(self._requests)

    @property
    def ids(self) -> list[str]:
        return [r.id for r in self._requests]

    def replace(self, requests: list[ServiceRequest]) -> None:
        self._requests = list(requests)

    def remove(self, request_id: str) -> None:
        self._requests = [r for r in self._requests if r.id != request_id]

    def get(self, request_id: str) -> ServiceRequest | None:
        return next((r for r in self._requests if r.id == request_id), None)

    def __contains__(self, request_id: object) -> bool:
        return any(r.id == request_id for r in self._requests)

    def __len__(self) -> int:
        return len(self._requests)


class PollState(StrEnum):
    IDLE = "idle"
    POLLING = "polling"


class PollHandle:
    """Owns the polling task. Must be stopped before its view goes away."""

    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task

    @property
    def active(self) -> bool:
        return not self._task.done()

    def cancel(self) -> None:
        self._task.cancel()

    async def stop(self) -> None:
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)


class RequestPollingEngine:
    def __init__(
        self,
        client: CareApiClient,
        view: PendingView,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        sleep_fn: SleepFn = asyncio.sleep,
    ) -> None:
        self._client = client
        self._view = view
        self._interval = interval
        self._sleep_fn = sleep_fn
        self._handle: PollHandle | None = None
        self.state = PollState.IDLE
        self.fetch_count = 0

    async def poll_once(self) -> bool:
        self.fetch_count += 1
        try:
            requests = await self._client.list_pending_requests()
        except ElderCareError as exc:
            logger.error(
                "Fetching pending requests failed: %s",
                exc.message,
                extra={"error_code": exc.code},
            )
            return False
        finally:
            self._view.loaded = True

        self._view.replace(requests)
        return True

    async def _run(self) -> None:
        while True:
            await self.poll_once()
            await self._sleep_fn(self._interval)

    def start(self) -> PollHandle:
        if self._handle is not None and self._handle.active:
            return self._handle
        self.state = PollState.POLLING
        task = asyncio.create_task(self._run())

        def _cleanup(t: asyncio.Task[None]) -> None:
            self.state = PollState.IDLE
            if not t.cancelled() and (exc := t.exception()) is not None:
                logger.error("Polling stopped unexpectedly", exc_info=exc)

        task.add_done_callback(_cleanup)
        self._handle = PollHandle(task)
        logger.debug("Polling pending requests every %ss", self._interval)
        return self._handle
