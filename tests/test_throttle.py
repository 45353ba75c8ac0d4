from __future__ import annotations

import asyncio

from dualsub.live.throttle import TrailingThrottle


def test_throttle_runs_first_call_then_only_latest_trailing_call() -> None:
    calls: list[tuple] = []

    async def scenario() -> None:
        th = TrailingThrottle(lambda *a: calls.append(a), 0.05)
        th(1)
        th(2)
        th(3)
        assert calls == [(1,)]
        assert th.in_window
        await asyncio.sleep(0.12)
        assert calls == [(1,), (3,)]
        assert not th.in_window

    asyncio.run(scenario())


def test_throttle_without_burst_has_no_trailing_call() -> None:
    calls: list[tuple] = []

    async def scenario() -> None:
        th = TrailingThrottle(lambda *a: calls.append(a), 0.02)
        th("a")
        await asyncio.sleep(0.06)
        assert calls == [("a",)]
        th("b")
        assert calls == [("a",), ("b",)]
        th.cancel()

    asyncio.run(scenario())


def test_throttle_cancel_drops_pending_call() -> None:
    calls: list[tuple] = []

    async def scenario() -> None:
        th = TrailingThrottle(lambda *a: calls.append(a), 0.02)
        th(1)
        th(2)
        th.cancel()
        await asyncio.sleep(0.06)
        assert calls == [(1,)]

    asyncio.run(scenario())


def test_throttle_flush_runs_pending_call_and_closes_window() -> None:
    calls: list[tuple] = []

    async def scenario() -> None:
        th = TrailingThrottle(lambda *a: calls.append(a), 10.0)
        th("first")
        th("removed")
        th.flush()
        assert calls == [("first",), ("removed",)]
        assert not th.in_window
        th.flush()
        assert len(calls) == 2
        th("next")
        assert calls[-1] == ("next",)
        th.cancel()

    asyncio.run(scenario())
