"""Debounced background job runner."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import structlog

log = structlog.get_logger(__name__)


class DebouncedScheduler:
    """Runs *job* once, *delay_seconds* after the last ``schedule()`` call.

    Each call cancels the pending timer and starts a new one, so a burst
    of uploads triggers a single run. At most one timer task is pending.
    A job that is already running is not cancelled by a new schedule, and
    a run that fires while another is in progress waits for it to finish.

    Owned by the composition root; ``aclose()`` cancels a pending timer on
    shutdown.
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[object]],
        *,
        delay_seconds: float,
        name: str = "debounced_job",
    ) -> None:
        self._job = job
        self._delay = delay_seconds
        self._name = name
        self._timer: asyncio.Task[None] | None = None
        self._running: asyncio.Task[object] | None = None

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def schedule(self) -> None:
        """(Re)arm the timer. Must be called from inside the event loop."""
        if self.pending:
            assert self._timer is not None
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._wait_and_run())
        log.debug("job_scheduled", job=self._name, delay=self._delay)

    def cancel(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
            log.debug("job_cancelled", job=self._name)
        self._timer = None

    async def _wait_and_run(self) -> None:
        try:
            await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            return

        # Detach from the timer so a new schedule() never cancels a running job.
        self._timer = None
        previous = self._running
        self._running = asyncio.current_task()
        if previous is not None:
            # Runs never overlap: wait for the one in progress.
            log.debug("job_deferred", job=self._name)
            await asyncio.gather(previous, return_exceptions=True)

        log.info("job_started", job=self._name)
        try:
            await self._job()
            log.info("job_finished", job=self._name)
        except Exception:
            log.error("job_failed", job=self._name, exc_info=True)
        finally:
            if self._running is asyncio.current_task():
                self._running = None

    async def aclose(self) -> None:
        """Cancel the pending timer and wait for a running job to finish."""
        timer = self._timer
        self.cancel()
        if timer is not None:
            await asyncio.gather(timer, return_exceptions=True)
        running = self._running
        if running is not None and running is not asyncio.current_task():
            await asyncio.gather(running, return_exceptions=True)
