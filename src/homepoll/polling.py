"""Periodic job scheduling on the running asyncio loop."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

_logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[None]]


class Poller:
    """Runs one job either once or with a fixed delay between runs.

    The delay is measured from the end of one run to the start of the
    next. A run raising an exception is logged and the schedule goes on.
    At most one task is active; :meth:`start` replaces a running one.

    Parameters
    ----------
    name : str
        Used in log messages.
    job : Callable
        Coroutine function executed on every run.
    """

    def __init__(self, name: str, job: Job) -> None:
        self.name = name
        self._job = job
        self._task: asyncio.Task[None] | None = None
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, *, interval: float | None, initial_delay: float = 0.0) -> None:
        """Schedule the job.

        Parameters
        ----------
        interval : float or None
            Seconds between the end of one run and the start of the next;
            ``None`` runs the job exactly once.
        initial_delay : float
            Seconds before the first run.
        """
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(
            self._loop(interval, initial_delay),
            name=f"homepoll-{self.name}",
        )

    async def _run_once(self) -> None:
        try:
            await self._job()
        except asyncio.CancelledError:
            raise
        except Exception:
            _logger.exception("Poll job %s failed", self.name)
        finally:
            self.runs += 1

    async def _loop(self, interval: float | None, initial_delay: float) -> None:
        if initial_delay > 0:
            await asyncio.sleep(initial_delay)
        await self._run_once()
        while interval is not None:
            await asyncio.sleep(interval)
            await self._run_once()

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def stop(self) -> None:
        """Cancel the task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def wait(self) -> None:
        """Wait for a one-shot schedule to complete."""
        if self._task is not None:
            await self._task
