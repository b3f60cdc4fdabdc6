"""
Scheduling: date partitioning, bounded-parallel blocks, date-shift
recovery and result aggregation.
"""

from stayscout.scheduling.partitioner import partition
from stayscout.scheduling.scheduler import DayResult, schedule, effective_concurrency
from stayscout.scheduling.recovery import RecoveryPolicy
from stayscout.scheduling.aggregator import aggregate, price_payload, event_payload

__all__ = [
    "partition",
    "DayResult",
    "schedule",
    "effective_concurrency",
    "RecoveryPolicy",
    "aggregate",
    "price_payload",
    "event_payload",
]
