from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TaskResult(Generic[T]):
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_bounded(
    tasks: Sequence[Callable[[], Awaitable[T]]],
    limit: int,
) -> list[TaskResult[T]]:
    """Run task factories with at most ``limit`` in flight.

    Results come back in input order. A failing task is recorded in its slot
    and does not cancel or fail its siblings.
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")

    results: list[TaskResult[T] | None] = [None] * len(tasks)
    semaphore = asyncio.Semaphore(limit)

    async def run_one(index: int, task: Callable[[], Awaitable[T]]) -> None:
        async with semaphore:
            try:
                results[index] = TaskResult(value=await task())
            except Exception as e:
                logger.debug("task %d failed: %s", index, e)
                results[index] = TaskResult(error=e)

    await asyncio.gather(*(run_one(i, task) for i, task in enumerate(tasks)))
    return [r if r is not None else TaskResult() for r in results]
