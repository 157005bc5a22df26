from __future__ import annotations

import asyncio

import pytest


@pytest.mark.asyncio
async def test_same_key_is_serialized(locks):
    order: list[str] = []

    async def worker(name: str) -> None:
        async with locks.hold("m1"):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


@pytest.mark.asyncio
async def test_different_keys_do_not_block(locks):
    async with locks.hold("m1"):
        await asyncio.wait_for(_enter(locks, "m2"), 0.5)


@pytest.mark.asyncio
async def test_idle_entries_are_dropped(locks):
    async with locks.hold("m1"):
        assert len(locks) == 1
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_entry_released_on_error(locks):
    with pytest.raises(RuntimeError):
        async with locks.hold("m1"):
            raise RuntimeError("boom")
    assert len(locks) == 0


async def _enter(locks, key):
    async with locks.hold(key):
        return True
