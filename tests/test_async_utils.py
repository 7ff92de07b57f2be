"""Tests for async_utils.py: Debouncer."""

import asyncio

import pytest

from photo_search.shared.async_utils import Debouncer


class TestDebouncer:
    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            Debouncer(-0.1)

    async def test_fires_once_after_quiet_period(self):
        calls = []

        async def action(value):
            calls.append(value)

        debouncer = Debouncer(0.02)
        debouncer.call(lambda: action("a"))
        debouncer.call(lambda: action("ab"))
        debouncer.call(lambda: action("abc"))
        assert debouncer.pending

        await debouncer.wait()
        assert calls == ["abc"]
        assert not debouncer.pending

    async def test_cancel(self):
        calls = []

        async def action():
            calls.append(1)

        debouncer = Debouncer(0.02)
        task = debouncer.call(action)
        assert debouncer.cancel() is True
        assert debouncer.cancel() is False
        await debouncer.wait()
        assert task.cancelled()
        assert calls == []

    async def test_cancel_without_pending(self):
        assert Debouncer(0.01).cancel() is False

    async def test_task_returns_action_result(self):
        async def action():
            return 42

        task = Debouncer(0).call(action)
        assert await task == 42

    async def test_fired_action_not_cancelled_by_new_call(self):
        started = asyncio.Event()
        release = asyncio.Event()
        finished = []

        async def slow():
            started.set()
            await release.wait()
            finished.append("slow")

        async def fast():
            finished.append("fast")

        debouncer = Debouncer(0)
        first = debouncer.call(slow)
        await started.wait()

        assert not debouncer.pending
        debouncer.call(fast)
        release.set()
        await debouncer.wait()

        assert not first.cancelled()
        assert sorted(finished) == ["fast", "slow"]

    async def test_wait_with_nothing_scheduled(self):
        await asyncio.wait_for(Debouncer(0.01).wait(), timeout=1)
