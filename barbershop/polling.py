# barbershop/polling.py

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Poller:
    """
    Re-run ``fetch`` every ``interval`` seconds until stopped.

    The app runs one for the per-barber pending-request counts behind the
    dashboard badge, which is refreshed by polling rather than pushed. A failing fetch is logged and kept in
    ``last_error``; the next tick tries again.
    """

    def __init__(self, fetch: Callable[[], Awaitable[Any]], interval: float):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.fetch = fetch
        self.interval = interval
        self.last_result: Any = None
        self.last_error: Optional[BaseException] = None
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        # wait() never raises the task's CancelledError, only one aimed at the caller
        await asyncio.wait({self._task})
        self._task = None

    async def _run(self) -> None:
        while True:
            try:
                self.last_result = await self.fetch()
                self.last_error = None
            except Exception as exc:
                logger.warning("Poll failed: %s", exc)
                self.last_error = exc
            self.ticks += 1
            await asyncio.sleep(self.interval)

    async def __aenter__(self) -> "Poller":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
