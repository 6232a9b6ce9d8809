"""KeyedLocks tests."""

import asyncio

import pytest

from app.utils.locks import KeyedLocks


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLocks()
    events: list[str] = []

    async def work(tag: str):
        async with locks.hold("k"):
            events.append(f"{tag}-in")
            await asyncio.sleep(0.01)
            events.append(f"{tag}-out")

    await asyncio.gather(work("a"), work("b"))
    assert events == ["a-in", "a-out", "b-in", "b-out"]


@pytest.mark.asyncio
async def test_different_keys_run_concurrently():
    locks = KeyedLocks()
    entered = asyncio.Event()

    async def first():
        async with locks.hold("a"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def second():
        async with locks.hold("b"):
            entered.set()

    await asyncio.gather(first(), second())


@pytest.mark.asyncio
async def test_released_keys_are_dropped():
    locks = KeyedLocks()
    for key in ("a", "b", "c"):
        async with locks.hold(key):
            assert len(locks) == 1
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_key_is_dropped_after_error():
    locks = KeyedLocks()
    with pytest.raises(RuntimeError):
        async with locks.hold("a"):
            raise RuntimeError("boom")
    assert len(locks) == 0
