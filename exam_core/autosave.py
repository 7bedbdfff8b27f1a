"""Periodic autosave tied to an attempt's lifetime."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable

from exam_core.config import AUTOSAVE_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class AutoSaver:
    """
    Calls ``save`` every ``interval`` seconds on the running event loop.

    The task ends on its own once ``is_active`` returns False (the attempt
    reached a terminal state). Ticks are skipped while ``is_busy`` is True.
    Save errors are logged; the next tick tries again.
    """

    def __init__(
        self,
        save: Callable[[], Awaitable[object]],
        interval: float = AUTOSAVE_INTERVAL_SECONDS,
        is_active: Callable[[], bool] | None = None,
        is_busy: Callable[[], bool] | None = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._save = save
        self._is_active = is_active or (lambda: True)
        self._is_busy = is_busy or (lambda: False)
        self._task: asyncio.Task | None = None
        self._stop_requested = False
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start (or restart) the periodic task. Must run inside an event loop."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._stop_requested = False
        self._task = asyncio.get_running_loop().create_task(self._run(), name="autosave")

    async def stop(self) -> None:
        """Cancel the task and wait for it to finish."""
        task, self._task = self._task, None
        self._stop_requested = True
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            # Called from inside a save; the loop exits after this tick.
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while not self._stop_requested:
            await asyncio.sleep(self.interval)
            if self._stop_requested:
                return
            if not self._is_active():
                logger.debug("Autosave stopped: attempt no longer active")
                return
            if self._is_busy():
                continue
            try:
                await self._save()
            except Exception:
                logger.exception("Autosave failed")
            self.ticks += 1
