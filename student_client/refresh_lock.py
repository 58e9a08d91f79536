"""
Refresh coordinator: FIFO async mutex so N concurrent 401s produce at most one refresh call.
Release hands ownership straight to the oldest waiter (no thundering herd); the lock is only
marked free when nobody is waiting.
"""
import asyncio
from collections import deque
from contextlib import asynccontextmanager


class RefreshCoordinator:
    def __init__(self) -> None:
        self._held = False
        self._waiters: deque[asyncio.Future] = deque()

    def locked(self) -> bool:
        return self._held

    @property
    def waiters(self) -> int:
        """Number of callers queued for the lock (not counting the holder)."""
        return sum(1 for f in self._waiters if not f.done())

    async def acquire(self) -> None:
        if not self._held:
            self._held = True
            return
        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            await fut
        except asyncio.CancelledError:
            if fut.done() and not fut.cancelled():
                # Ownership was handed to us just before the cancel landed; pass it on
                self.release()
            else:
                try:
                    self._waiters.remove(fut)
                except ValueError:
                    pass
            raise

    def release(self) -> None:
        if not self._held:
            raise RuntimeError("RefreshCoordinator.release() called while unlocked")
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                # _held stays True: ownership moves to the waiter
                fut.set_result(None)
                return
        self._held = False

    @asynccontextmanager
    async def hold(self):
        """Critical section with unconditional release (success, error or cancellation)."""
        await self.acquire()
        try:
            yield
        finally:
            self.release()
