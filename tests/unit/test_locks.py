"""KeyedLock serialization per conversation id."""

import asyncio

import pytest

from support_copilot.utils.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLock()
    events = []

    async def worker(name):
        async with locks.hold("conv-1"):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert events == ["a-in", "a-out", "b-in", "b-out"]
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_different_keys_overlap():
    locks = KeyedLock()
    events = []

    async def worker(key):
        async with locks.hold(key):
            events.append(f"{key}-in")
            await asyncio.sleep(0.01)
            events.append(f"{key}-out")

    await asyncio.gather(worker("x"), worker("y"))
    assert events[:2] == ["x-in", "y-in"]


@pytest.mark.asyncio
async def test_missing_key_does_not_lock():
    locks = KeyedLock()
    async with locks.hold(None):
        async with locks.hold(None):
            assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_released_on_error():
    locks = KeyedLock()
    with pytest.raises(RuntimeError):
        async with locks.hold("conv-1"):
            raise RuntimeError("boom")
    assert len(locks) == 0
