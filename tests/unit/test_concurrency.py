"""Unit tests for fixed-window batching helpers."""

from __future__ import annotations

import asyncio

import pytest

from src.utils.concurrency import batched, gather_in_batches


class TestBatched:
    def test_splits_into_windows(self) -> None:
        assert batched([1, 2, 3, 4, 5, 6, 7], 3) == [[1, 2, 3], [4, 5, 6], [7]]

    def test_empty_input(self) -> None:
        assert batched([], 3) == []

    def test_rejects_zero_batch_size(self) -> None:
        with pytest.raises(ValueError):
            batched([1], 0)


class TestGatherInBatches:
    @pytest.mark.asyncio
    async def test_results_keep_input_order(self) -> None:
        async def _double(n: int) -> int:
            await asyncio.sleep(0.001 * (5 - n))
            return n * 2

        assert await gather_in_batches(_double, [1, 2, 3, 4, 5], batch_size=2) == [2, 4, 6, 8, 10]

    @pytest.mark.asyncio
    async def test_never_more_than_batch_size_in_flight(self) -> None:
        in_flight = 0
        peak = 0

        async def _work(_: int) -> None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.001)
            in_flight -= 1

        await gather_in_batches(_work, list(range(10)), batch_size=3)
        assert peak == 3

    @pytest.mark.asyncio
    async def test_callback_after_each_window(self) -> None:
        calls: list[tuple[list[int], int, int]] = []

        async def _ident(n: int) -> int:
            return n

        async def _on_done(results: list[int], done: int, total: int) -> None:
            calls.append((results, done, total))

        await gather_in_batches(_ident, [1, 2, 3, 4, 5], batch_size=2, on_batch_done=_on_done)
        assert calls == [([1, 2], 2, 5), ([3, 4], 4, 5), ([5], 5, 5)]

    @pytest.mark.asyncio
    async def test_sync_callback_supported(self) -> None:
        seen: list[int] = []

        async def _ident(n: int) -> int:
            return n

        await gather_in_batches(
            _ident, [1, 2, 3], batch_size=2, on_batch_done=lambda _r, done, _t: seen.append(done),
        )
        assert seen == [2, 3]

    @pytest.mark.asyncio
    async def test_error_aborts_remaining_windows(self) -> None:
        started: list[int] = []

        async def _maybe_fail(n: int) -> int:
            started.append(n)
            if n == 2:
                raise RuntimeError("boom")
            return n

        with pytest.raises(RuntimeError, match="boom"):
            await gather_in_batches(_maybe_fail, [1, 2, 3, 4], batch_size=2)
        assert 3 not in started
        assert 4 not in started
