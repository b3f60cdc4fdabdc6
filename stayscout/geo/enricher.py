"""
Secondary fetch for partial event records.

Events missing a date, venue or link that still carry a link to their own
page are enriched from that page: the first `limit` of them, in sequential
batches of `batch_size` fetched in parallel. Only missing fields are
filled; coordinates and distance are never added. A failed fetch leaves
the record as it was.
"""

import asyncio
from typing import Awaitable, Callable, List

from stayscout.core.errors import EnrichmentFailure
from stayscout.core.error_logger import get_error_logger
from stayscout.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from stayscout.core.logging import get_logger
from stayscout.crawler.url_utils import domain_of
from stayscout.db.models import EventRecord
from stayscout.extraction.events import parse_event_detail

logger = get_logger(__name__)

DEFAULT_ENRICH_LIMIT = 15
DEFAULT_BATCH_SIZE = 5

Fetch = Callable[[str], Awaitable[str]]


class EventEnricher:
    """
    Example:
        >>> enricher = EventEnricher(fetch_html, limit=15, batch_size=5)
        >>> events = await enricher.enrich(events)
    """

    def __init__(self, fetch: Fetch, limit: int = DEFAULT_ENRICH_LIMIT,
                 batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.fetch = fetch
        self.limit = limit
        self.batch_size = batch_size

    def targets(self, events: List[EventRecord]) -> List[int]:
        """Indexes of the events that will be fetched."""
        idx = [i for i, e in enumerate(events) if e.is_partial and e.link]
        return idx[: max(self.limit, 0)]

    async def enrich(self, events: List[EventRecord]) -> List[EventRecord]:
        out = list(events)
        targets = self.targets(out)
        if not targets:
            return out

        logger.info(f"Enriching {len(targets)} partial events")
        for start in range(0, len(targets), self.batch_size):
            batch = targets[start:start + self.batch_size]
            enriched = await asyncio.gather(*(self._enrich_one(out[i]) for i in batch))
            for i, record in zip(batch, enriched):
                out[i] = record
        return out

    async def _enrich_one(self, event: EventRecord) -> EventRecord:
        try:
            html = await self.fetch(event.link)
            if not html:
                raise EnrichmentFailure("empty detail page", url=event.link)
        except Exception as e:
            get_error_logger().log_exception(
                e if isinstance(e, EnrichmentFailure) else EnrichmentFailure(str(e), url=event.link),
                component=ErrorComponent.ENRICHMENT,
                stage=ErrorStage.ENRICH_EVENT,
                domain=domain_of(event.link),
                url=event.link,
                severity=ErrorSeverity.WARNING,
                error_type=ErrorType.ENRICHMENT_FAILURE,
            )
            return event

        detail = parse_event_detail(html, event.link)
        update = {
            name: detail[name]
            for name in ("date", "venue", "link")
            if not getattr(event, name) and detail.get(name)
        }
        return event.model_copy(update=update) if update else event
