"""
Tests for cancellable scheduled tasks.
"""

import asyncio
import logging

import pytest

from water_optimizer.dashboard import Debouncer, TaskSlot


async def _value(v):
    return v


class TestTaskSlot:
    """Test the single-occupancy task slot."""

    def test_result_delivered(self):
        """Test that a completed task's result reaches the callback."""
        results = []

        async def scenario():
            slot = TaskSlot("test", on_result=results.append)
            task = slot.schedule(lambda: _value(1))
            return await task

        assert asyncio.run(scenario()) == 1
        assert results == [1]

    def test_superseded_task_is_cancelled(self):
        """Test that scheduling again cancels the pending task."""
        results = []

        async def scenario():
            slot = TaskSlot("test", on_result=results.append)
            first = slot.schedule(lambda: _value(1), delay=0.05)
            second = slot.schedule(lambda: _value(2), delay=0.05)
            value = await second
            return first, value

        first, value = asyncio.run(scenario())

        assert first.cancelled()
        assert value == 2
        assert results == [2]

    def test_awaiting_superseded_task_raises(self):
        """Test that the superseded task reports cancellation."""
        async def scenario():
            slot = TaskSlot("test")
            first = slot.schedule(lambda: _value(1), delay=0.05)
            slot.schedule(lambda: _value(2), delay=0.05)
            with pytest.raises(asyncio.CancelledError):
                await first

        asyncio.run(scenario())

    def test_pending_and_cancel(self):
        """Test the pending flag and explicit cancellation."""
        async def scenario():
            slot = TaskSlot("test")
            assert not slot.pending
            assert slot.cancel() is False

            task = slot.schedule(lambda: _value(1), delay=10)
            assert slot.pending
            assert slot.task is task
            assert slot.cancel() is True
            await asyncio.sleep(0)
            assert not slot.pending
            assert task.cancelled()

        asyncio.run(scenario())

    def test_factory_not_called_when_cancelled_during_delay(self):
        """Test that a job cancelled while waiting never starts."""
        calls = []

        async def job():
            calls.append(1)

        async def scenario():
            slot = TaskSlot("test")
            slot.schedule(job, delay=0.05)
            await asyncio.sleep(0)
            slot.cancel()
            await asyncio.sleep(0.1)

        asyncio.run(scenario())
        assert calls == []

    def test_failed_task_is_logged(self, caplog):
        """Test that a failing job is logged and not delivered."""
        results = []

        async def failing():
            raise RuntimeError("boom")

        async def scenario():
            slot = TaskSlot("failing", on_result=results.append)
            task = slot.schedule(failing)
            with pytest.raises(RuntimeError, match="boom"):
                await task

        with caplog.at_level(logging.ERROR, logger="water_optimizer.dashboard.scheduler"):
            asyncio.run(scenario())

        assert results == []
        assert "Task in slot failing failed" in caplog.text


class TestDebouncer:
    """Test the debouncer used for advice refreshes."""

    def test_only_last_trigger_runs(self):
        """Test that rapid triggers collapse into one run."""
        calls = []
        results = []

        def job(v):
            async def run():
                calls.append(v)
                return v
            return run

        async def scenario():
            debouncer = Debouncer(0.05, callback=results.append)
            debouncer.trigger(job(1))
            debouncer.trigger(job(2))
            last = debouncer.trigger(job(3))
            assert debouncer.pending
            await last
            assert not debouncer.pending

        asyncio.run(scenario())

        assert calls == [3]
        assert results == [3]

    def test_flush_runs_immediately(self):
        """Test that flush drops the pending delayed run."""
        results = []

        async def scenario():
            debouncer = Debouncer(10, callback=results.append)
            delayed = debouncer.trigger(lambda: _value("delayed"))
            now = debouncer.flush(lambda: _value("now"))
            value = await asyncio.wait_for(now, timeout=1)
            return delayed, value

        delayed, value = asyncio.run(scenario())

        assert delayed.cancelled()
        assert value == "now"
        assert results == ["now"]

    def test_cancel(self):
        """Test cancelling a pending run."""
        results = []

        async def scenario():
            debouncer = Debouncer(0.05, callback=results.append)
            debouncer.trigger(lambda: _value(1))
            assert debouncer.cancel() is True
            await asyncio.sleep(0.1)

        asyncio.run(scenario())
        assert results == []
