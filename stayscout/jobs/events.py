"""
Nearby-events job.

Resolves a listing URL from the job's coordinates, renders it with
lazy-load scrolling, runs the event pipeline (radius-filtered), then
enriches partial events from their own pages.

Results are cached in-process per (lat, lon, radius) for
EVENTS_CACHE_TTL_S seconds.
"""

from typing import Any, Dict, List, Optional

from stayscout.core.config import Config, get_config
from stayscout.core.errors import EnrichmentFailure
from stayscout.core.job_models import JobState, JobStateTracker, ScrapeJob
from stayscout.core.logging import get_logger
from stayscout.crawler.navigation import NavigationController, ReadinessPolicy
from stayscout.crawler.session import BrowserSessionManager, SessionConfig
from stayscout.extraction.events import EVENT_MARKERS, event_pipeline
from stayscout.geo.enricher import EventEnricher
from stayscout.scheduling.aggregator import aggregate, event_payload
from stayscout.scheduling.scheduler import effective_concurrency
from stayscout.utils.cache import CacheStore, geo_cache_key

logger = get_logger(__name__)

SONGKICK_BASE = "https://www.songkick.com"
SONGKICK_HOSTS = ("songkick.com",)

# (min latitude, metro-area slug), checked top-down inside the Mexico box
METRO_AREAS = (
    (32.0, "31097-mexico-tijuana"),
    (25.0, "31098-mexico-monterrey"),
    (20.0, "31099-mexico-guadalajara"),
)
DEFAULT_METRO = "31100-mexico-mexico-city"
MEXICO_LAT = (19.0, 33.0)
MEXICO_LON = (-118.0, -86.0)

SONGKICK_CONSENT_SELECTORS = (
    "button#onetrust-accept-btn-handler",
    'button[aria-label="Accept all"]',
    'button:has-text("Accept all")',
    'button:has-text("Accept")',
    'button:has-text("Agree")',
    'button:has-text("Aceptar")',
    'button:has-text("Aceptar todo")',
    'button:has-text("Estoy de acuerdo")',
    'button:has-text("Consent")',
    'button:has-text("I agree")',
)
ACCEPT_LANGUAGE = "es-ES,es;q=0.9,en;q=0.8"

# Shorter than this means a block page or an empty shell
MIN_LISTING_HTML = 1000

DETAIL_NAV_TIMEOUT_MS = 45_000
DETAIL_IDLE_MS = 5_000


def metro_calendar_url(slug: str) -> str:
    return f"{SONGKICK_BASE}/metro-areas/{slug}/calendar"


def resolve_events_url(latitude: Optional[float], longitude: Optional[float], radius_km: float) -> str:
    """
    Listing URL for a location.

    Example:
        >>> resolve_events_url(32.5, -117.0, 50)
        'https://www.songkick.com/metro-areas/31097-mexico-tijuana/calendar'
        >>> resolve_events_url(40.4, -3.7, 25)
        'https://www.songkick.com/search?query=&location=40.4,-3.7&radius=25'
    """
    if latitude is None or longitude is None:
        return metro_calendar_url(METRO_AREAS[0][1])

    in_box = MEXICO_LAT[0] <= latitude <= MEXICO_LAT[1] and MEXICO_LON[0] <= longitude <= MEXICO_LON[1]
    if in_box:
        for min_lat, slug in METRO_AREAS:
            if latitude > min_lat:
                return metro_calendar_url(slug)
        return metro_calendar_url(DEFAULT_METRO)

    return f"{SONGKICK_BASE}/search?query=&location={latitude},{longitude}&radius={radius_km:g}"


_cache: Optional[CacheStore] = None


def get_events_cache() -> CacheStore:
    global _cache
    if _cache is None:
        _cache = CacheStore(ttl_seconds=get_config().events_cache_ttl_s)
    return _cache


class EventsJob:
    """Runs one events job against an already-started BrowserSessionManager."""

    def __init__(
        self,
        job: ScrapeJob,
        tracker: Optional[JobStateTracker] = None,
        config: Optional[Config] = None,
        navigator: Optional[NavigationController] = None,
        cache: Optional[CacheStore] = None,
    ):
        self.job = job
        self.tracker = tracker or JobStateTracker()
        self.config = config or get_config()
        self.navigator = navigator or NavigationController(self.config.nav_timeout_ms)
        self.cache = cache if cache is not None else get_events_cache()
        self.pipeline = event_pipeline()

    @property
    def cache_key(self):
        if self.job.origin is None:
            return ("default", self.job.radius_km)
        return geo_cache_key(self.job.latitude, self.job.longitude, self.job.radius_km)

    @property
    def session_config(self) -> SessionConfig:
        return SessionConfig(
            headless=self.job.headless,
            locale="es-ES",
            allowed_hosts=SONGKICK_HOSTS,
            extra_headers={"accept-language": ACCEPT_LANGUAGE},
        )

    @property
    def listing_readiness(self) -> ReadinessPolicy:
        return ReadinessPolicy(
            consent_selectors=SONGKICK_CONSENT_SELECTORS,
            settle_ms=2_000,
            network_idle_ms=self.config.network_idle_timeout_ms,
            scroll_steps=self.config.scroll_steps,
            scroll_pause_ms=self.config.scroll_pause_ms,
            markers=EVENT_MARKERS,
            marker_timeout_ms=self.config.selector_timeout_ms,
        )

    def cached(self) -> Optional[List[Dict[str, Any]]]:
        """Cached output for this location, if still fresh."""
        return self.cache.get(self.cache_key)

    async def run(self, manager: BrowserSessionManager) -> List[Dict[str, Any]]:
        url = resolve_events_url(self.job.latitude, self.job.longitude, self.job.radius_km)
        logger.info(f"Events listing: {url}")

        self.tracker.advance(JobState.EXTRACTING)
        async with manager.session(self.session_config) as session:
            rendered = await self.navigator.navigate(session, url, self.listing_readiness)

        if len(rendered.html) < MIN_LISTING_HTML:
            logger.warning(f"Listing page too short ({len(rendered.html)} chars): {url}")
            return []

        result = self.pipeline.run_html(
            rendered.html,
            url=rendered.url,
            base_url=SONGKICK_BASE,
            origin=self.job.origin,
            radius_km=self.job.radius_km if self.job.origin else None,
        )
        logger.info(f"{len(result)} events via {result.strategy}")

        self.tracker.advance(JobState.AGGREGATING)
        events = aggregate([result.records])

        self.tracker.advance(JobState.ENRICHING)
        enricher = EventEnricher(
            lambda link: self.fetch_detail(manager, link),
            limit=self.config.enrich_limit,
            batch_size=self.enrich_batch_size,
        )
        events = await enricher.enrich(events)

        payload = event_payload(events)
        if payload:
            self.cache.set(self.cache_key, payload)
        return payload

    @property
    def enrich_batch_size(self) -> int:
        """Parallel detail fetches, never more than the job's concurrency."""
        limit = effective_concurrency(self.job.concurrency, self.config.max_concurrency)
        return min(self.config.enrich_batch_size, limit)

    async def fetch_detail(self, manager: BrowserSessionManager, link: str) -> str:
        """HTML of one event page, in its own session."""
        readiness = ReadinessPolicy(
            consent_selectors=(),
            persist_consent=False,
            network_idle_ms=DETAIL_IDLE_MS,
            nav_timeout_ms=DETAIL_NAV_TIMEOUT_MS,
        )
        async with manager.session(self.session_config) as session:
            rendered = await self.navigator.navigate(session, link, readiness)
        if rendered.degraded and not rendered.html:
            raise EnrichmentFailure("detail page did not load", url=link)
        return rendered.html
