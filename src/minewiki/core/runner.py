# ABOUTME: Bounded fan-out runner for per-record scraping tasks
# ABOUTME: Caps concurrent work with a semaphore and turns task exceptions into ScrapeFailure records

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from minewiki.core.models import ScrapeFailure
from minewiki.utils.logging import get_logger

T = TypeVar("T")


@dataclass
class BatchResult(Generic[T]):
    """Results of one batch; ``results`` holds the non-None task return values."""

    results: list[T] = field(default_factory=list)
    failures: list[ScrapeFailure] = field(default_factory=list)


class BatchRunner:
    """Run one coroutine per task with at most ``concurrency`` in flight.

    A failing task never aborts the batch: its exception is logged and
    recorded, and the remaining tasks continue. There are no ordering
    guarantees between tasks.
    """

    def __init__(self, concurrency: int, stage: str):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self.stage = stage
        self.logger = get_logger(__name__)

    async def run(
        self,
        tasks: Iterable[Any],
        worker: Callable[[Any], Awaitable[T | None]],
        describe: Callable[[Any], str] = str,
    ) -> BatchResult[T]:
        semaphore = asyncio.Semaphore(self.concurrency)
        batch: BatchResult[T] = BatchResult()

        async def guarded(task: Any) -> None:
            async with semaphore:
                try:
                    result = await worker(task)
                except Exception as e:
                    name = describe(task)
                    self.logger.error(
                        f"Error processing {self.stage}",
                        record=name,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    batch.failures.append(ScrapeFailure.from_exception(name, self.stage, e))
                    return
                if result is not None:
                    batch.results.append(result)

        await asyncio.gather(*(guarded(task) for task in tasks))

        self.logger.info(
            f"Finished {self.stage} batch",
            succeeded=len(batch.results),
            failed=len(batch.failures),
            concurrency=self.concurrency,
        )
        return batch
