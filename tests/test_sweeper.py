"""Tests for the background expiry sweeper."""

import asyncio

import pytest

from conftest import FakeClock
from otp_service.services.otp_store import OTPRecord, OTPStore
from otp_service.services.sweeper import ExpirySweeper


def test_sweep_once_uses_clock():
    store = OTPStore()
    clock = FakeClock(now=1_000)
    store.put("a@b.com", OTPRecord(code="1234", expires_at=1_500))
    sweeper = ExpirySweeper(store, clock=clock)

    assert sweeper.sweep_once() == 0
    clock.advance(1_000)
    assert sweeper.sweep_once() == 1
    assert store.get("a@b.com") is None


@pytest.mark.asyncio
async def test_background_task_sweeps_periodically():
    store = OTPStore()
    clock = FakeClock(now=10_000)
    store.put("stale@example.com", OTPRecord(code="1234", expires_at=5_000))
    store.put("live@example.com", OTPRecord(code="5678", expires_at=20_000))
    sweeper = ExpirySweeper(store, interval_seconds=0.01, clock=clock)

    sweeper.start()
    assert sweeper.running
    await asyncio.sleep(0.05)
    await sweeper.stop()

    assert not sweeper.running
    assert store.get("stale@example.com") is None
    assert store.get("live@example.com") is not None


@pytest.mark.asyncio
async def test_sweep_failure_does_not_stop_the_loop():
    calls = 0

    def flaky_clock() -> int:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("clock broke")
        return 0

    sweeper = ExpirySweeper(OTPStore(), interval_seconds=0.01, clock=flaky_clock)
    sweeper.start()
    await asyncio.sleep(0.05)
    assert sweeper.running
    await sweeper.stop()
    assert calls > 1


@pytest.mark.asyncio
async def test_stop_without_start_is_a_noop():
    sweeper = ExpirySweeper(OTPStore())
    await sweeper.stop()
    assert not sweeper.running
