"""
Hotel room-price job.

1. Search the hotel name and pick the best-matching property page.
2. Partition the day window into blocks; each block runs in its own
   session and visits its days one after another.
3. Per day: open the property page for a one-night stay, press the
   availability button, wait for the price table, run the price pipeline.

A single-day job shifts the date forward (RecoveryPolicy) until some day
has prices. Multi-day output keeps days without prices as empty rooms.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from stayscout.core.config import Config, get_config
from stayscout.core.errors import StrategyMiss, UpstreamUnavailable
from stayscout.core.error_logger import get_error_logger
from stayscout.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from stayscout.core.job_models import JobState, JobStateTracker, ScrapeJob
from stayscout.core.logging import get_logger
from stayscout.crawler.navigation import NavigationController, ReadinessPolicy
from stayscout.crawler.session import BrowserSessionManager, PageSession, SessionConfig
from stayscout.crawler.url_utils import domain_of, with_query_params
from stayscout.extraction.base import ExtractionResult
from stayscout.extraction.hotel_match import MatchWeights, choose_candidate, parse_search_candidates
from stayscout.extraction.prices import PRICE_MARKERS, price_pipeline
from stayscout.extraction.structured_data import parse_html
from stayscout.scheduling.aggregator import price_payload
from stayscout.scheduling.partitioner import partition
from stayscout.scheduling.recovery import RecoveryPolicy
from stayscout.scheduling.scheduler import DayResult, schedule
from stayscout.utils.date_utils import format_date, stay_window

logger = get_logger(__name__)

BOOKING_BASE = "https://www.booking.com"
SEARCH_URL = f"{BOOKING_BASE}/searchresults.html"

BOOKING_CONSENT_SELECTORS = (
    "#onetrust-accept-btn-handler",
    'button[aria-label="Accept"]',
    'button[data-testid="accept-cookies"]',
    'button:has-text("Accept")',
    'button:has-text("Aceptar")',
)
AVAILABILITY_SELECTORS = (
    'button:has-text("Ver disponibilidad")',
    'button:has-text("See availability")',
    'a:has-text("Ver disponibilidad")',
    'a:has-text("See availability")',
    '[data-testid="availability-cta"]',
    '[data-component="hotel/new-rooms-table/SeeAvailabilityButton"]',
)
ONE_GUEST_PARAMS = {"group_adults": "1", "req_adults": "1", "no_rooms": "1"}


def search_url(name: str, checkin: str, checkout: str, locale: str = "en-us", currency: str = "MXN") -> str:
    """
    Example:
        >>> search_url("Hotel Lucerna", "2026-03-01", "2026-03-02")
        'https://www.booking.com/searchresults.html?lang=en-us&selected_currency=MXN&checkin=2026-03-01&checkout=2026-03-02&ss=Hotel+Lucerna'
    """
    return with_query_params(SEARCH_URL, {
        "lang": locale,
        "selected_currency": currency,
        "checkin": checkin,
        "checkout": checkout,
        "ss": name,
    })


def hotel_url(href: str, checkin: str, checkout: str) -> str:
    """Property URL for a one-guest, one-room, one-night stay."""
    return with_query_params(href, {**ONE_GUEST_PARAMS, "checkin": checkin, "checkout": checkout})


class HotelPriceJob:
    """Runs one price job against an already-started BrowserSessionManager."""

    def __init__(
        self,
        job: ScrapeJob,
        tracker: Optional[JobStateTracker] = None,
        config: Optional[Config] = None,
        navigator: Optional[NavigationController] = None,
        weights: MatchWeights = MatchWeights(),
        today: Optional[date] = None,
    ):
        self.job = job
        self.tracker = tracker or JobStateTracker()
        self.config = config or get_config()
        self.navigator = navigator or NavigationController(self.config.nav_timeout_ms)
        self.weights = weights
        self.start = (today or date.today()) + timedelta(days=job.day_offset)
        self.pipeline = price_pipeline()

    def cached(self) -> None:
        """Price results are never cached."""
        return None

    @property
    def session_config(self) -> SessionConfig:
        return SessionConfig(headless=self.job.headless, locale=self.config.locale)

    @property
    def readiness(self) -> ReadinessPolicy:
        return ReadinessPolicy(
            consent_selectors=BOOKING_CONSENT_SELECTORS,
            network_idle_ms=self.config.network_idle_timeout_ms,
        )

    async def run(self, manager: BrowserSessionManager) -> List[Dict[str, Any]]:
        if not self.job.target_name:
            self._log(UpstreamUnavailable("hotel name is required"), ErrorStage.SEARCH_HOTEL, "")
            return []

        async with manager.session(self.session_config) as session:
            href = await self.resolve_hotel_url(session)
        if not href:
            return []

        self.tracker.advance(JobState.EXTRACTING)
        if self.job.days == 1:
            return await self._run_single_day(manager, href)
        return await self._run_window(manager, href)

    async def resolve_hotel_url(self, session: PageSession) -> Optional[str]:
        """Best-matching property link from the search results, or None."""
        checkin, checkout = stay_window(self.start, 0)
        url = search_url(self.job.target_name, checkin, checkout, self.config.locale, self.config.currency)
        rendered = await self.navigator.navigate(session, url, self.readiness)

        candidates = parse_search_candidates(parse_html(rendered.html), base_url=BOOKING_BASE)
        choice = choose_candidate(self.job.target_name, candidates, self.weights)
        if choice is None:
            self._log(StrategyMiss("hotel_search", "no property candidates", url=url),
                      ErrorStage.CHOOSE_CANDIDATE, url)
            return None

        logger.info(f"Matched '{self.job.target_name}' -> '{choice.title}' ({len(candidates)} candidates)")
        return choice.href

    async def visit_day(self, session: PageSession, href: str, day: date) -> DayResult:
        """Property page for one check-in date, run through the price pipeline."""
        checkin, checkout = stay_window(day, 0)
        url = hotel_url(href, checkin, checkout)

        rendered = await self.navigator.navigate(session, url, self.readiness)
        await self.navigator.click_first_visible(session, AVAILABILITY_SELECTORS)
        ready = await self.navigator.wait_for_markers(
            session.page, PRICE_MARKERS, self.config.selector_timeout_ms
        )
        html = await self.navigator.content(session.page) or rendered.html

        result = self.pipeline.run_html(html, url=url, base_url=BOOKING_BASE, date=checkin)
        logger.info(f"[{checkin}] {len(result)} rooms via {result.strategy}")
        return DayResult(
            day_index=(day - self.start).days,
            date=checkin,
            result=result,
            degraded=rendered.degraded or not ready,
        )

    async def _run_single_day(self, manager: BrowserSessionManager, href: str) -> List[Dict[str, Any]]:
        async with manager.session(self.session_config) as session:

            async def attempt(day: date) -> ExtractionResult:
                return (await self.visit_day(session, href, day)).result

            found = await RecoveryPolicy(self.config.recovery_bound).run(self.start, attempt)

        self.tracker.advance(JobState.AGGREGATING)
        if found is None:
            return []
        day, result = found
        return price_payload([DayResult(day_index=(day - self.start).days, date=format_date(day), result=result)])

    async def process_block(self, manager: BrowserSessionManager, href: str, block) -> List[DayResult]:
        """One session, days in order; a failed day is recorded empty."""
        first, last = block
        out: List[DayResult] = []
        async with manager.session(self.session_config) as session:
            for index in range(first, last + 1):
                day = self.start + timedelta(days=index)
                try:
                    out.append(await self.visit_day(session, href, day))
                except Exception as e:
                    get_error_logger().log_exception(
                        e,
                        component=ErrorComponent.SCHEDULER,
                        stage=ErrorStage.PROCESS_DAY,
                        domain=domain_of(href),
                        url=href,
                        severity=ErrorSeverity.WARNING,
                        metadata={"day_index": index},
                    )
                    out.append(DayResult(day_index=index, date=format_date(day)))
        return out

    async def _run_window(self, manager: BrowserSessionManager, href: str) -> List[Dict[str, Any]]:
        blocks = partition(self.job.days, self.config.block_size_days, self.config.max_days)

        async def run_block(block):
            return await self.process_block(manager, href, block)

        per_block = await schedule(
            blocks,
            run_block,
            max_concurrency=self.config.max_concurrency,
            configured_concurrency=self.job.concurrency,
        )

        self.tracker.advance(JobState.AGGREGATING)
        days: List[DayResult] = [dr for block_days in per_block for dr in block_days]
        return price_payload(days)

    def _log(self, exc: Exception, stage: str, url: str) -> None:
        get_error_logger().log_exception(
            exc,
            component=ErrorComponent.EXTRACTION,
            stage=stage,
            domain=domain_of(url) or "www.booking.com",
            url=url or None,
            severity=ErrorSeverity.WARNING,
            error_type=ErrorType.STRATEGY_MISS if isinstance(exc, StrategyMiss) else None,
        )
