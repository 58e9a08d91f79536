"""Tests for RefreshCoordinator: FIFO hand-off, release on error, cancellation."""
import asyncio

import pytest

from student_client.refresh_lock import RefreshCoordinator


def test_acquire_release_unlocked():
    async def run():
        lock = RefreshCoordinator()
        assert lock.locked() is False
        await lock.acquire()
        assert lock.locked() is True
        lock.release()
        return lock.locked()

    assert asyncio.run(run()) is False


def test_release_when_unlocked_raises():
    lock = RefreshCoordinator()
    with pytest.raises(RuntimeError):
        lock.release()


def test_waiters_woken_in_fifo_order():
    order = []

    async def worker(lock, name):
        async with lock.hold():
            order.append(name)
            await asyncio.sleep(0)

    async def run():
        lock = RefreshCoordinator()
        await lock.acquire()
        tasks = [asyncio.create_task(worker(lock, i)) for i in range(4)]
        while lock.waiters < 4:
            await asyncio.sleep(0)
        lock.release()
        await asyncio.gather(*tasks)
        return lock.locked()

    assert asyncio.run(run()) is False
    assert order == [0, 1, 2, 3]


def test_release_hands_ownership_directly():
    async def run():
        lock = RefreshCoordinator()
        await lock.acquire()
        waiter = asyncio.create_task(lock.acquire())
        await asyncio.sleep(0)
        lock.release()
        # Still held: ownership moved to the waiter, not back to "free"
        assert lock.locked() is True
        await waiter
        lock.release()
        return lock.locked()

    assert asyncio.run(run()) is False


def test_hold_releases_on_exception():
    async def failing(lock):
        async with lock.hold():
            raise ValueError("refresh blew up")

    async def run():
        lock = RefreshCoordinator()
        with pytest.raises(ValueError):
            await failing(lock)
        return lock.locked()

    assert asyncio.run(run()) is False


def test_waiter_proceeds_after_holder_fails():
    async def failing(lock):
        async with lock.hold():
            await asyncio.sleep(0.01)
            raise RuntimeError("network down")

    async def second(lock):
        async with lock.hold():
            return "acquired"

    async def run():
        lock = RefreshCoordinator()
        first = asyncio.create_task(failing(lock))
        await asyncio.sleep(0)
        result = await asyncio.wait_for(second(lock), timeout=2)
        with pytest.raises(RuntimeError):
            await first
        return result, lock.locked()

    assert asyncio.run(run()) == ("acquired", False)


def test_cancelled_waiter_is_skipped():
    order = []

    async def worker(lock, name):
        async with lock.hold():
            order.append(name)

    async def run():
        lock = RefreshCoordinator()
        await lock.acquire()
        a = asyncio.create_task(worker(lock, "a"))
        b = asyncio.create_task(worker(lock, "b"))
        while lock.waiters < 2:
            await asyncio.sleep(0)
        a.cancel()
        with pytest.raises(asyncio.CancelledError):
            await a
        assert lock.waiters == 1
        lock.release()
        await b
        return lock.locked()

    assert asyncio.run(run()) is False
    assert order == ["b"]
