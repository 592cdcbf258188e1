from __future__ import annotations

import asyncio
import time

import pytest

from promptforge.core.infra.cancellation import CancellationToken, guarded
from promptforge.core.models.errors import LLMCancelledError


async def _value_after(delay_s: float, value: str) -> str:
    await asyncio.sleep(delay_s)
    return value


def test_race_returns_result_when_not_cancelled() -> None:
    async def scenario() -> str:
        return await CancellationToken().race(_value_after(0, "ok"))

    assert asyncio.run(scenario()) == "ok"


def test_race_stops_pending_work_on_cancel() -> None:
    async def scenario() -> float:
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.02, token.cancel, "client disconnected")
        start = time.monotonic()
        with pytest.raises(LLMCancelledError) as exc_info:
            await token.race(_value_after(5, "late"))
        assert exc_info.value.reason == "client disconnected"
        return time.monotonic() - start

    assert asyncio.run(scenario()) < 1.0


def test_race_on_cancelled_token_never_starts_work() -> None:
    started: list[bool] = []

    async def work() -> None:
        started.append(True)

    async def scenario() -> None:
        token = CancellationToken()
        token.cancel()
        with pytest.raises(LLMCancelledError):
            await token.race(work())

    asyncio.run(scenario())
    assert started == []


def test_sleep_wakes_early_on_cancel() -> None:
    async def scenario() -> float:
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.02, token.cancel)
        start = time.monotonic()
        with pytest.raises(LLMCancelledError):
            await token.sleep(5)
        return time.monotonic() - start

    assert asyncio.run(scenario()) < 1.0


def test_cancel_keeps_first_reason() -> None:
    token = CancellationToken()
    token.cancel("client disconnected")
    token.cancel("shutdown")
    assert token.cancelled
    assert token.reason == "client disconnected"


def test_guarded_without_token_just_awaits() -> None:
    assert asyncio.run(guarded(None, _value_after(0, "plain"))) == "plain"
