"""
Splits a job's day window into contiguous blocks of day indexes.
"""

from typing import List, Tuple

from stayscout.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BLOCK_SIZE = 30
DEFAULT_MAX_DAYS = 90


def partition(total_days: int, block_size: int = DEFAULT_BLOCK_SIZE,
              max_days: int = DEFAULT_MAX_DAYS) -> List[Tuple[int, int]]:
    """
    Inclusive (start, end) day-index ranges covering [0, total_days - 1].

    The window is capped at max_days; blocks are contiguous and never overlap.

    Example:
        >>> partition(3, block_size=30)
        [(0, 2)]
        >>> partition(75, block_size=30)
        [(0, 29), (30, 59), (60, 74)]
    """
    if block_size < 1:
        raise ValueError("block_size must be >= 1")
    if total_days <= 0:
        return []

    span = min(total_days, max_days)
    if span < total_days:
        logger.warning(f"Requested {total_days} days, capped at {max_days}")

    return [(start, min(start + block_size, span) - 1) for start in range(0, span, block_size)]
