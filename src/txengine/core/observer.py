"""
One-way notification channel for caller-supplied observers.

Observers are output only: whatever they do, raise or return, never
changes the course of an execution.
"""

import asyncio
import inspect
from typing import Any, Callable, Optional, Set

import structlog

logger = structlog.get_logger(__name__)


class ObserverChannel:
    """
    Delivers notifications to an optional callback.

    The callback is invoked synchronously. If it returns an awaitable, the
    awaitable is scheduled in the background and never awaited by the caller;
    it is held in ``tasks`` until done. Exceptions are logged and dropped.
    """

    def __init__(
        self,
        callback: Optional[Callable[[Any], Any]],
        name: str = "observer",
        tasks: Optional[Set[asyncio.Future]] = None,
    ):
        self.callback = callback
        self.name = name
        self._tasks = tasks if tasks is not None else set()

    def emit(self, payload: Any) -> None:
        """Send one notification."""
        if self.callback is None:
            return

        try:
            result = self.callback(payload)
        except Exception as e:
            logger.warning("observer_failed", observer=self.name, error=str(e))
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("observer_failed", observer=self.name, error=str(task.exception()))
