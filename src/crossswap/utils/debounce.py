"""Debouncing for user-driven upstream calls.

Only the last trigger within the delay window runs the callback. Cancelling
drops a call that is still waiting; a call already running is left to finish.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """Delay an async callback until triggers stop arriving.

    Example:
        debouncer = Debouncer(0.5, fetch_quote)
        debouncer.trigger("100")   # superseded
        debouncer.trigger("1000")  # runs after 0.5s
    """

    def __init__(self, delay: float, callback: Callable[..., Awaitable[Any]]):
        self.delay = delay
        self.callback = callback
        self._task: Optional[asyncio.Task] = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """Whether a call is waiting for the delay to elapse."""
        return self._task is not None

    def trigger(self, *args: Any) -> None:
        """Schedule the callback, replacing any waiting call."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(args))

    async def _run(self, args: tuple) -> None:
        await asyncio.sleep(self.delay)

        task = asyncio.current_task()
        if self._task is task:
            self._task = None
        self._in_flight.add(task)
        try:
            await self.callback(*args)
        except Exception as e:
            logger.error(f"Debounced call failed: {e}", exc_info=True)
        finally:
            self._in_flight.discard(task)

    def cancel(self) -> None:
        """Drop the waiting call, if any."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def flush(self) -> None:
        """Wait for the waiting and running calls to finish."""
        tasks = [t for t in (self._task, *self._in_flight) if t is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
