"""
Job runner: one ScrapeJob in, one JobOutcome out.

run_job() never raises. A browser that cannot be started ends the job in
FAILED with failed=True; every other problem has already been logged
where it happened and the job completes with whatever records it has,
possibly none.
"""

from typing import Callable, Optional

from stayscout.core.config import Config, get_config
from stayscout.core.errors import ResourceAcquisitionFailure
from stayscout.core.error_logger import get_error_logger
from stayscout.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage
from stayscout.core.job_models import JobKind, JobOutcome, JobState, JobStateTracker, ScrapeJob
from stayscout.core.logging import get_logger
from stayscout.crawler.session import BrowserSessionManager
from stayscout.jobs.events import EventsJob
from stayscout.jobs.hotel_prices import HotelPriceJob

logger = get_logger(__name__)


def build_handler(job: ScrapeJob, tracker: JobStateTracker, config: Config):
    if job.kind == JobKind.PRICES:
        return HotelPriceJob(job, tracker=tracker, config=config)
    return EventsJob(job, tracker=tracker, config=config)


async def run_job(
    job: ScrapeJob,
    manager_factory: Callable[[], BrowserSessionManager] = BrowserSessionManager,
    config: Optional[Config] = None,
    handler=None,
) -> JobOutcome:
    """
    Run a job through its state machine.

    Args:
        job: Immutable job description
        manager_factory: Builds the job's BrowserSessionManager
        config: Configuration (default: global config)
        handler: Prebuilt HotelPriceJob/EventsJob (default: chosen by job.kind)

    Returns:
        JobOutcome with JSON-ready records; records == [] on any failure
    """
    config = config or get_config()
    tracker = JobStateTracker()
    handler = handler or build_handler(job, tracker, config)
    handler.tracker = tracker

    cached = handler.cached()
    if cached is not None:
        logger.info(f"[{job.kind.value}] served from cache ({len(cached)} records)")
        tracker.advance(JobState.COMPLETED)
        return JobOutcome(records=cached, state=tracker.state, history=tracker.history)

    tracker.advance(JobState.SESSION_STARTING)
    manager = manager_factory()
    try:
        await manager.start(headless=job.headless)
    except ResourceAcquisitionFailure as e:
        tracker.advance(JobState.FAILED)
        await manager.close()
        return JobOutcome(records=[], state=tracker.state, failed=True, error=str(e), history=tracker.history)

    records = []
    try:
        tracker.advance(JobState.SCHEDULING)
        records = await handler.run(manager)
    except Exception as e:
        get_error_logger().log_exception(
            e,
            component=ErrorComponent.SCHEDULER,
            stage=ErrorStage.PROCESS_BLOCK,
            domain=job.kind.value,
            severity=ErrorSeverity.ERROR,
        )
        records = []
    finally:
        await manager.close()

    tracker.advance(JobState.COMPLETED)
    logger.info(f"[{job.kind.value}] completed with {len(records)} records")
    return JobOutcome(records=records, state=tracker.state, history=tracker.history)
