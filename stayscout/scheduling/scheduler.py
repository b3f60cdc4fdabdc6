"""
Bounded-parallel execution of date blocks.

Blocks run as tasks on the job's event loop under a semaphore sized
min(configured, max). Results come back in block order regardless of
completion order. A block that raises yields an empty result; only a
browser acquisition failure propagates, after the remaining blocks are
cancelled.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Sequence, Tuple, TypeVar

from stayscout.core.errors import ResourceAcquisitionFailure
from stayscout.core.error_logger import get_error_logger
from stayscout.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage
from stayscout.core.logging import get_logger
from stayscout.extraction.base import ExtractionResult

logger = get_logger(__name__)

T = TypeVar("T")
Block = Tuple[int, int]


@dataclass(frozen=True)
class DayResult:
    """Outcome of one day visit; result may be empty."""
    day_index: int
    date: str
    result: ExtractionResult = field(default_factory=ExtractionResult.nothing)
    degraded: bool = False

    @property
    def records(self) -> tuple:
        return self.result.records


def effective_concurrency(configured: int, maximum: int) -> int:
    return max(1, min(configured, maximum))


async def schedule(
    blocks: Sequence[Block],
    run_block: Callable[[Block], Awaitable[List[T]]],
    max_concurrency: int = 5,
    configured_concurrency: int = 3,
) -> List[List[T]]:
    """
    Run every block, at most min(configured, max) at a time.

    Args:
        blocks: Day-index ranges from partition()
        run_block: Coroutine function processing one block
        max_concurrency: Hard ceiling
        configured_concurrency: Requested parallelism

    Returns:
        One result list per block, in block order
    """
    limit = effective_concurrency(configured_concurrency, max_concurrency)
    semaphore = asyncio.Semaphore(limit)
    logger.info(f"Scheduling {len(blocks)} blocks (concurrency={limit})")

    async def _guarded(block: Block) -> List[T]:
        async with semaphore:
            try:
                return await run_block(block)
            except ResourceAcquisitionFailure:
                raise
            except Exception as e:
                get_error_logger().log_exception(
                    e,
                    component=ErrorComponent.SCHEDULER,
                    stage=ErrorStage.PROCESS_BLOCK,
                    domain="scheduler",
                    severity=ErrorSeverity.WARNING,
                    metadata={"block": list(block)},
                )
                return []

    tasks = [asyncio.ensure_future(_guarded(b)) for b in blocks]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        # siblings must not outlive the browser the caller is about to close
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
