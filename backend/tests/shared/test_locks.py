"""Tests for shared/locks.py."""

import asyncio

import pytest

from shared.locks import KeyedLock


class TestKeyedLock:
    @pytest.mark.asyncio
    async def test_serializes_same_key(self):
        """Two holders of one key never overlap."""
        locks = KeyedLock()
        active = 0
        max_active = 0

        async def worker():
            nonlocal active, max_active
            async with locks.hold("code-1"):
                active += 1
                max_active = max(max_active, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(*(worker() for _ in range(5)))
        assert max_active == 1

    @pytest.mark.asyncio
    async def test_different_keys_run_concurrently(self):
        locks = KeyedLock()
        inside = asyncio.Event()
        release = asyncio.Event()

        async def first():
            async with locks.hold("a"):
                inside.set()
                await release.wait()

        task = asyncio.create_task(first())
        await inside.wait()

        # "b" is free while "a" is held
        async with locks.hold("b"):
            pass

        release.set()
        await task

    @pytest.mark.asyncio
    async def test_locks_are_discarded_when_idle(self):
        locks = KeyedLock()
        async with locks.hold("a"):
            assert len(locks) == 1
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_released_on_exception(self):
        locks = KeyedLock()
        with pytest.raises(RuntimeError):
            async with locks.hold("a"):
                raise RuntimeError("boom")

        async with locks.hold("a"):
            pass
        assert len(locks) == 0
