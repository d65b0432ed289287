# ABOUTME: Tests for the bounded batch runner
# ABOUTME: Checks the concurrency cap, failure capture and result collection

import asyncio

import pytest

from minewiki.core.runner import BatchRunner


class TestBatchRunner:
    @pytest.mark.asyncio
    async def test_never_exceeds_concurrency(self):
        in_flight = 0
        peak = 0

        async def worker(task: int) -> int:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return task

        batch = await BatchRunner(3, stage="item").run(range(10), worker)

        assert peak == 3
        assert sorted(batch.results) == list(range(10))
        assert batch.failures == []

    @pytest.mark.asyncio
    async def test_failures_recorded_and_batch_continues(self):
        async def worker(task: str) -> str:
            if task == "Bad":
                raise ValueError("broken page")
            return task

        batch = await BatchRunner(2, stage="block").run(["Stone", "Bad", "Dirt"], worker, describe=str.upper)

        assert sorted(batch.results) == ["Dirt", "Stone"]
        assert len(batch.failures) == 1
        failure = batch.failures[0]
        assert (failure.name, failure.stage, failure.error, failure.error_type) == ("BAD", "block", "broken page", "ValueError")

    @pytest.mark.asyncio
    async def test_none_results_excluded(self):
        async def worker(task: int) -> int | None:
            return task if task % 2 else None

        batch = await BatchRunner(4, stage="item").run(range(6), worker)
        assert sorted(batch.results) == [1, 3, 5]

    def test_concurrency_must_be_positive(self):
        with pytest.raises(ValueError):
            BatchRunner(0, stage="item")
