"""Bounded async worker pool."""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from bankboeker.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[int, int], None]


@dataclass
class ItemOutcome(Generic[T, R]):
    index: int
    item: T
    value: R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_bounded(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    limit: int,
    on_progress: ProgressCallback | None = None,
) -> list[ItemOutcome[T, R]]:
    """Run ``worker`` over ``items`` with at most ``limit`` in flight.

    A fixed set of tasks pulls the next index from a shared cursor until the
    input is exhausted. An exception from one item is recorded on its outcome
    and never cancels the others; neither does a failing ``on_progress``.
    Outcomes are returned in input order.
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")

    total = len(items)
    outcomes: list[ItemOutcome[T, R] | None] = [None] * total
    cursor = 0
    completed = 0

    async def _drain() -> None:
        nonlocal cursor, completed
        while cursor < total:
            index = cursor
            cursor += 1
            item = items[index]
            try:
                outcomes[index] = ItemOutcome(index=index, item=item, value=await worker(item))
            except Exception as exc:
                outcomes[index] = ItemOutcome(index=index, item=item, error=exc)
            completed += 1
            if on_progress is not None:
                try:
                    on_progress(completed, total)
                except Exception as exc:
                    logger.warning("Progress callback failed", completed=completed, total=total, error=str(exc))

    async with asyncio.TaskGroup() as tg:
        for _ in range(min(limit, total)):
            tg.create_task(_drain())

    return [outcome for outcome in outcomes if outcome is not None]
