"""Tests for per-key locks."""

import asyncio

import pytest

from src.common.locks import KeyedLocks


async def test_same_key_is_serialized():
    locks = KeyedLocks()
    events = []

    async def worker(name: str) -> None:
        async with locks.hold("video"):
            events.append(f"{name} in")
            await asyncio.sleep(0)
            events.append(f"{name} out")

    await asyncio.gather(worker("a"), worker("b"))

    assert events == ["a in", "a out", "b in", "b out"]


async def test_different_keys_do_not_block():
    locks = KeyedLocks()

    async with locks.hold("repo-1"):
        async with locks.hold("repo-2"):
            assert len(locks) == 2


async def test_lock_is_dropped_once_unused():
    locks = KeyedLocks()
    release = asyncio.Event()

    async def holder() -> None:
        async with locks.hold("repo"):
            await release.wait()

    async def waiter() -> None:
        async with locks.hold("repo"):
            pass

    tasks = [asyncio.create_task(holder()), asyncio.create_task(waiter())]
    await asyncio.sleep(0)
    assert len(locks) == 1

    release.set()
    await asyncio.gather(*tasks)

    assert len(locks) == 0


async def test_lock_is_dropped_when_the_body_raises():
    locks = KeyedLocks()

    with pytest.raises(RuntimeError):
        async with locks.hold("video"):
            raise RuntimeError("boom")

    assert len(locks) == 0
    for index in range(100):
        async with locks.hold(f"video-{index}"):
            pass
    assert len(locks) == 0
