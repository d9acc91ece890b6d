"""Outstanding live-source requests and the cancellation flag of a load."""

import asyncio
from typing import Any, Awaitable, List


class LoadSession:
    """Cooperative cancellation flag for one load.

    Checked before each archival page, before dispatching live batches and
    before writing results. Requests already issued resolve without effect.
    """

    def __init__(self) -> None:
        self.cancelled = False
        self.closed = False
        self.error: BaseException | None = None

    def cancel(self) -> None:
        self.cancelled = True

    def fail(self, error: BaseException) -> None:
        """Cancel because a request failed; the first failure is kept."""
        if self.error is None:
            self.error = error
        self.cancelled = True

    def close(self) -> None:
        """Cancel permanently (the view is gone); no new session should be started."""
        self.closed = True
        self.cancelled = True


def _retrieve(task: "asyncio.Task[Any]") -> None:
    # Mark failures as retrieved; a drain joining the task re-raises them,
    # a discarded task's failure is already recorded on its LoadSession
    if not task.cancelled():
        task.exception()


class PendingSet:
    """Tasks dispatched but not yet joined, with checkpoint barriers.

    ``mark()`` returns a checkpoint; ``drain(mark)`` waits only for tasks
    added after it, so a round of a persistent load tracks its own work.
    """

    def __init__(self) -> None:
        self._tasks: List[asyncio.Task[int]] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def add(self, coro: Awaitable[int]) -> "asyncio.Task[int]":
        task = asyncio.ensure_future(coro)
        task.add_done_callback(_retrieve)
        self._tasks.append(task)
        return task

    def mark(self) -> int:
        return len(self._tasks)

    async def drain(self, since: int = 0) -> int:
        """Wait for tasks added since the checkpoint. Returns the sum of their results.

        Raises the first failure after all of them have settled.
        """
        tasks = self._tasks[since:]
        if not tasks:
            return 0
        results = await asyncio.gather(*tasks, return_exceptions=True)
        total = 0
        for result in results:
            if isinstance(result, BaseException):
                raise result
            total += result or 0
        return total

    async def drain_all(self) -> int:
        """Wait for every outstanding task and forget them."""
        count = len(self._tasks)
        try:
            return await self.drain(0)
        finally:
            del self._tasks[:count]

    def discard(self) -> int:
        """Forget every task after a failed load. Returns how many were dropped.

        Tasks still running finish on their own against their cancelled
        session; none of them is joined by a later load.
        """
        count = len(self._tasks)
        self._tasks.clear()
        return count
