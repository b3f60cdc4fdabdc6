"""
Extraction strategy contract and the ordered pipeline that runs them.

A strategy is a pure function over a parsed page: it inspects the document
and returns zero or more records. The pipeline tries strategies in
priority order and returns the first non-empty result, tagged with the
strategy that produced it. Results from different strategies are never
merged.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup

from stayscout.core.logging import get_logger
from stayscout.core.errors import StrategyMiss
from stayscout.core.error_logger import get_error_logger
from stayscout.core.error_models import ErrorComponent, ErrorSeverity, ErrorType
from stayscout.crawler.url_utils import domain_of
from stayscout.db.models import Record
from stayscout.extraction.structured_data import parse_html

logger = get_logger(__name__)

NO_STRATEGY = "none"


@dataclass(frozen=True)
class PageContext:
    """
    Everything a strategy may look at.

    origin/radius_km are only used by geo-aware event strategies;
    date is the check-in date stamped on price records.
    """
    soup: BeautifulSoup
    url: str = ""
    base_url: str = ""
    origin: Optional[Tuple[float, float]] = None
    radius_km: Optional[float] = None
    date: str = ""

    @classmethod
    def from_html(cls, html: str, url: str = "", **kwargs) -> "PageContext":
        return cls(soup=parse_html(html), url=url, **kwargs)


@dataclass(frozen=True)
class ExtractionStrategy:
    """A named extraction function."""
    name: str
    extract: Callable[[PageContext], List[Record]]

    def __call__(self, ctx: PageContext) -> List[Record]:
        return self.extract(ctx)


@dataclass(frozen=True)
class ExtractionResult:
    """Ordered records plus the tag of the strategy that produced them."""
    records: Tuple[Record, ...] = field(default_factory=tuple)
    strategy: str = NO_STRATEGY

    @property
    def empty(self) -> bool:
        return not self.records

    def __len__(self) -> int:
        return len(self.records)

    @classmethod
    def nothing(cls) -> "ExtractionResult":
        return cls()


class ExtractionPipeline:
    """
    Ordered chain of strategies for one content type.

    Example:
        >>> pipeline = ExtractionPipeline("prices", [PRICING_TABLE, GENERIC_PRICES])
        >>> result = pipeline.run(PageContext.from_html(html, url, date="2026-03-01"))
        >>> result.strategy
        'pricing_table'
    """

    def __init__(self, content_type: str, strategies: Sequence[ExtractionStrategy]):
        if not strategies:
            raise ValueError("pipeline needs at least one strategy")
        self.content_type = content_type
        self.strategies = tuple(strategies)

    def run(self, ctx: PageContext) -> ExtractionResult:
        for strategy in self.strategies:
            try:
                records = strategy(ctx)
            except Exception as e:
                # Unexpected markup must not break the chain
                get_error_logger().log_exception(
                    StrategyMiss(strategy.name, str(e), url=ctx.url),
                    component=ErrorComponent.EXTRACTION,
                    stage=f"extract_{self.content_type}",
                    domain=domain_of(ctx.url),
                    url=ctx.url or None,
                    severity=ErrorSeverity.WARNING,
                    error_type=ErrorType.STRATEGY_MISS,
                    metadata={"strategy": strategy.name, "cause": type(e).__name__},
                )
                continue

            if records:
                logger.debug(f"[{self.content_type}] {strategy.name} -> {len(records)} records")
                return ExtractionResult(records=tuple(records), strategy=strategy.name)

            logger.debug(f"[{self.content_type}] {strategy.name} found nothing")

        return ExtractionResult.nothing()

    def run_html(self, html: str, url: str = "", **kwargs) -> ExtractionResult:
        return self.run(PageContext.from_html(html, url, **kwargs))
