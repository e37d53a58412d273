import asyncio

import pytest

from threadradio.signal import Signal


def test_new_signal_is_not_signaled():
    sig = Signal()
    assert sig.signaled() is False
    assert sig.try_take() is None


def test_try_take_consumes_value():
    sig = Signal()
    sig.signal("frame")
    assert sig.signaled() is True
    assert sig.try_take() == "frame"
    assert sig.signaled() is False
    assert sig.try_take() is None


def test_later_signal_replaces_earlier_value():
    sig = Signal()
    sig.signal(1)
    sig.signal(2)
    assert sig.try_take() == 2


def test_reset_clears_pending_value():
    sig = Signal()
    sig.signal("x")
    sig.reset()
    assert sig.signaled() is False
    assert sig.try_take() is None


@pytest.mark.asyncio
async def test_wait_returns_already_signaled_value():
    sig = Signal()
    sig.signal((3, "a", "b"))
    assert await sig.wait() == (3, "a", "b")
    assert sig.signaled() is False


@pytest.mark.asyncio
async def test_wait_blocks_until_signal():
    sig = Signal()
    task = asyncio.create_task(sig.wait())
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert task.done() is False
    sig.signal("late")
    assert await asyncio.wait_for(task, 1.0) == "late"
    assert sig.signaled() is False


@pytest.mark.asyncio
async def test_wait_signaled_does_not_consume():
    sig = Signal()
    task = asyncio.create_task(sig.wait_signaled())
    await asyncio.sleep(0)
    assert task.done() is False
    sig.signal("kept")
    await asyncio.wait_for(task, 1.0)
    assert sig.signaled() is True
    assert sig.try_take() == "kept"


@pytest.mark.asyncio
async def test_wait_after_reset_blocks_again():
    sig = Signal()
    sig.signal(5)
    sig.reset()
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(sig.wait(), 0.01)