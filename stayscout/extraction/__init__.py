"""
Extraction: pure strategies over parsed HTML and the pipeline that orders them.

- base: PageContext, ExtractionStrategy, ExtractionResult, ExtractionPipeline
- prices: pricing_table / generic_prices strategies
- events: structured_data / event_anchors strategies, detail-page parser
- price_parser: currency table and price tokens
- hotel_match: search-result candidate scoring
- structured_data: JSON-LD helpers
"""

from stayscout.extraction.base import (
    PageContext,
    ExtractionStrategy,
    ExtractionResult,
    ExtractionPipeline,
)
from stayscout.extraction.prices import (
    PRICING_TABLE,
    GENERIC_PRICES,
    PRICE_MARKERS,
    price_pipeline,
    clean_room_label,
)
from stayscout.extraction.events import (
    STRUCTURED_DATA,
    EVENT_ANCHORS,
    EVENT_MARKERS,
    event_pipeline,
    parse_event_detail,
)
from stayscout.extraction.price_parser import PriceToken, find_price, parse_amount
from stayscout.extraction.hotel_match import (
    MatchWeights,
    HotelCandidate,
    score_candidate,
    choose_candidate,
    parse_search_candidates,
)

__all__ = [
    "PageContext",
    "ExtractionStrategy",
    "ExtractionResult",
    "ExtractionPipeline",
    "PRICING_TABLE",
    "GENERIC_PRICES",
    "PRICE_MARKERS",
    "price_pipeline",
    "clean_room_label",
    "STRUCTURED_DATA",
    "EVENT_ANCHORS",
    "EVENT_MARKERS",
    "event_pipeline",
    "parse_event_detail",
    "PriceToken",
    "find_price",
    "parse_amount",
    "MatchWeights",
    "HotelCandidate",
    "score_candidate",
    "choose_candidate",
    "parse_search_candidates",
]
