"""Unit tests for schedtrack.store.base.KeyedLocks - per-id write ordering."""

from __future__ import annotations

import asyncio

import pytest

from schedtrack.store.base import KeyedLocks


@pytest.mark.asyncio
async def test_lock_is_dropped_once_released():
    locks = KeyedLocks()

    for project_id in range(100):
        async with locks(project_id):
            assert len(locks) == 1

    assert len(locks) == 0


@pytest.mark.asyncio
async def test_same_id_runs_in_order():
    locks = KeyedLocks()
    events: list[str] = []
    first_inside = asyncio.Event()

    async def first():
        async with locks(1):
            first_inside.set()
            await asyncio.sleep(0.01)
            events.append("delete")

    async def second():
        await first_inside.wait()
        async with locks(1):
            events.append("add")

    await asyncio.gather(first(), second())

    assert events == ["delete", "add"]
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_survives_while_a_waiter_remains():
    locks = KeyedLocks()
    release = asyncio.Event()
    holder_inside = asyncio.Event()

    async def holder():
        async with locks(1):
            holder_inside.set()
            await release.wait()

    async def waiter():
        await holder_inside.wait()
        async with locks(1):
            pass

    tasks = [asyncio.create_task(holder()), asyncio.create_task(waiter())]
    await holder_inside.wait()
    await asyncio.sleep(0)
    assert len(locks) == 1

    release.set()
    await asyncio.gather(*tasks)
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_different_ids_do_not_block_each_other():
    locks = KeyedLocks()

    async with locks(1):
        async with locks(2):
            assert len(locks) == 2

    assert len(locks) == 0
