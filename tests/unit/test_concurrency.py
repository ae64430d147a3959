"""Unit tests for throttled_gather."""

from __future__ import annotations

import asyncio

import pytest

from docaugment.utils.concurrency import throttled_gather


class TestThrottledGather:
    @pytest.mark.asyncio
    async def test_preserves_order(self) -> None:
        async def value(i: int) -> int:
            await asyncio.sleep(0.001 * (5 - i))
            return i

        assert await throttled_gather([value(i) for i in range(5)]) == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_bounds_concurrency(self) -> None:
        in_flight = 0
        peak = 0

        async def job() -> None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.005)
            in_flight -= 1

        await throttled_gather([job() for _ in range(10)], semaphore=asyncio.Semaphore(3))
        assert peak == 3

    @pytest.mark.asyncio
    async def test_return_exceptions(self) -> None:
        async def ok() -> str:
            return "ok"

        async def bad() -> str:
            raise ValueError("bad")

        results = await throttled_gather([ok(), bad(), ok()], return_exceptions=True)
        assert results[0] == "ok"
        assert isinstance(results[1], ValueError)
        assert results[2] == "ok"

    @pytest.mark.asyncio
    async def test_failure_cancels_pending(self) -> None:
        finished: list[int] = []

        async def bad() -> None:
            raise ValueError("bad")

        async def slow(i: int) -> None:
            await asyncio.sleep(0.5)
            finished.append(i)

        with pytest.raises(ValueError):
            await throttled_gather(
                [bad(), slow(1), slow(2)], semaphore=asyncio.Semaphore(3)
            )
        await asyncio.sleep(0.01)
        assert finished == []

    @pytest.mark.asyncio
    async def test_empty_input(self) -> None:
        assert await throttled_gather([]) == []
