"""Tests for the inference worker pool."""

import asyncio
import threading

import pytest

from core.threading import WorkerPool


@pytest.fixture
def pool():
    pool = WorkerPool(max_workers=1, name="test_pool")
    yield pool
    pool.shutdown(wait=True)


def test_submit_async_returns_result_off_the_loop_thread(pool):
    loop_thread = threading.get_ident()

    async def scenario():
        return await pool.submit_async(threading.get_ident)

    worker_thread = asyncio.run(scenario())
    assert worker_thread != loop_thread
    assert pool.get_stats()["completed_tasks"] == 1


def test_submit_async_propagates_errors(pool):
    def boom():
        raise ValueError("bad frame")

    with pytest.raises(ValueError, match="bad frame"):
        asyncio.run(pool.submit_async(boom))

    stats = pool.get_stats()
    assert stats["failed_tasks"] == 1
    assert stats["running_tasks"] == 0


def test_single_worker_runs_one_task_at_a_time(pool):
    active = []
    peak = []
    lock = threading.Lock()

    def work(i):
        with lock:
            active.append(i)
            peak.append(len(active))
        threading.Event().wait(0.01)
        with lock:
            active.remove(i)
        return i

    async def scenario():
        return await asyncio.gather(*(pool.submit_async(work, i) for i in range(4)))

    assert asyncio.run(scenario()) == [0, 1, 2, 3]
    assert max(peak) == 1
