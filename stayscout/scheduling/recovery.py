"""
Date-shift recovery for single-day price lookups.

A target often has no availability on the requested date; trying the next
few days finds the nearest date that does.
"""

from datetime import date, timedelta
from typing import Awaitable, Callable, Optional, Tuple

from stayscout.core.errors import ResourceAcquisitionFailure
from stayscout.core.error_logger import get_error_logger
from stayscout.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage
from stayscout.core.logging import get_logger
from stayscout.extraction.base import ExtractionResult
from stayscout.utils.date_utils import format_date

logger = get_logger(__name__)

DEFAULT_RECOVERY_BOUND = 5


class RecoveryPolicy:
    """
    Try start_date, then shift forward one day at a time.

    At most 1 + bound dates are attempted.
    """

    def __init__(self, bound: int = DEFAULT_RECOVERY_BOUND):
        if bound < 0:
            raise ValueError("bound must be non-negative")
        self.bound = bound

    async def run(
        self,
        start_date: date,
        attempt: Callable[[date], Awaitable[ExtractionResult]],
    ) -> Optional[Tuple[date, ExtractionResult]]:
        """
        Returns:
            (date, result) for the first non-empty attempt, or None
        """
        for shift in range(self.bound + 1):
            current = start_date + timedelta(days=shift)
            try:
                result = await attempt(current)
            except ResourceAcquisitionFailure:
                raise
            except Exception as e:
                get_error_logger().log_exception(
                    e,
                    component=ErrorComponent.SCHEDULER,
                    stage=ErrorStage.RECOVER_DATE,
                    domain="scheduler",
                    severity=ErrorSeverity.WARNING,
                    metadata={"date": format_date(current), "shift": shift},
                )
                result = ExtractionResult.nothing()

            if not result.empty:
                if shift:
                    logger.info(f"Recovered on {format_date(current)} after {shift} shifts")
                return current, result

            logger.debug(f"No records for {format_date(current)}")

        logger.info(f"No records within {self.bound} days of {format_date(start_date)}")
        return None
