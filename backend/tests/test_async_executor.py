"""
Tests for the fire-and-forget background executor.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import asyncio
import logging

import pytest

from services import async_executor


class TestAsyncExecutor:

    @pytest.mark.asyncio
    async def test_submitted_task_runs(self):
        done = asyncio.Event()

        async def job():
            done.set()

        async_executor.submit(job(), name="job")
        await async_executor.drain(1.0)
        assert done.is_set()
        assert async_executor.pending_count() == 0

    @pytest.mark.asyncio
    async def test_task_exception_is_logged_not_raised(self, caplog):
        async def broken():
            raise RuntimeError("platform exploded")

        with caplog.at_level(logging.ERROR, logger="services.async_executor"):
            task = async_executor.submit(broken(), name="broken-job")
            await async_executor.drain(1.0)

        assert task.done()
        assert "broken-job" in caplog.text
        assert async_executor.pending_count() == 0

    @pytest.mark.asyncio
    async def test_shutdown_cancels_stragglers(self):
        started = asyncio.Event()

        async def slow():
            started.set()
            await asyncio.sleep(30)

        task = async_executor.submit(slow(), name="slow")
        await started.wait()
        await async_executor.shutdown_executor(timeout=0.05)

        assert task.cancelled()
        assert async_executor.pending_count() == 0
