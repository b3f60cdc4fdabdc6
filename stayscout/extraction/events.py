"""
Event extraction strategies.

Priority order:
1. structured_data - JSON-LD Event objects embedded in the page
2. event_anchors   - listing anchors matching the site's event-link
                     pattern, fields taken from the surrounding listing

Both apply the same radius filter (stayscout.geo.distance.apply_radius).
parse_event_detail() reads a single event's detail page for enrichment.
"""

import re
from typing import Any, Dict, List, Optional

from bs4 import Tag

from stayscout.core.logging import get_logger
from stayscout.crawler.url_utils import absolute_url
from stayscout.db.models import EventRecord
from stayscout.extraction.base import ExtractionPipeline, ExtractionStrategy, PageContext
from stayscout.extraction.structured_data import (
    as_float,
    as_text,
    find_typed_objects,
    first_object,
    parse_html,
)
from stayscout.geo.distance import apply_radius
from stayscout.utils.date_utils import normalize_event_date

logger = get_logger(__name__)

EVENT_ANCHOR_SELECTOR = 'a.event-link[href^="/concerts/"]'

# Nearest container holding one listing, most specific first
LISTING_CONTAINERS = (
    ("li", "event-listings-element"),
    ("li", None),  # any li under .event-listings
    (None, "event"),
    (None, "event-item"),
    ("article", None),
)

DATE_SELECTORS = ('time[datetime]', '[itemprop="startDate"][content]', 'time')
NAME_SELECTORS = ('strong', 'h2', 'h3', '[itemprop="name"]')
VENUE_SELECTORS = (
    'a.venue-link', 'a[href*="/venues/"]',
    '.venue', '.location', '[itemprop="location"]', '[data-qa="event-venue"]',
)
MICROFORMAT_SELECTOR = 'div.microformat'

# Markers that the listing has rendered
EVENT_MARKERS = ('a.event-link', 'li.event-listings-element')


def _text(el: Optional[Tag]) -> str:
    if el is None:
        return ""
    return re.sub(r"\s+", " ", el.get_text(" ", strip=True)).strip()


def _event_from_ld(obj: Dict[str, Any], base_url: str) -> EventRecord:
    location = obj.get("location") or {}
    if isinstance(location, list):
        location = location[0] if location else {}
    if not isinstance(location, dict):
        location = {"name": location}
    geo = location.get("geo") or {}
    if not isinstance(geo, dict):
        geo = {}

    return EventRecord(
        name=as_text(obj.get("name")),
        date=normalize_event_date(as_text(obj.get("startDate"))),
        venue=as_text(location.get("name")),
        link=absolute_url(base_url, as_text(obj.get("url"))),
        latitude=as_float(geo.get("latitude")),
        longitude=as_float(geo.get("longitude")),
    )


def extract_structured_events(ctx: PageContext) -> List[EventRecord]:
    """Strategy 1: JSON-LD Event objects, radius-filtered."""
    out: List[EventRecord] = []
    for obj in find_typed_objects(ctx.soup, "Event"):
        record = apply_radius(_event_from_ld(obj, ctx.base_url or ctx.url), ctx.origin, ctx.radius_km)
        if record is not None:
            out.append(record)
    return out


def _listing_root(anchor: Tag) -> Tag:
    for tag_name, class_name in LISTING_CONTAINERS:
        if tag_name == "li" and class_name is None:
            parent = anchor.find_parent("li")
            if parent is not None and parent.find_parent(class_="event-listings") is not None:
                return parent
            continue
        parent = anchor.find_parent(tag_name, class_=class_name) if class_name else anchor.find_parent(tag_name)
        if parent is not None:
            return parent
    return anchor.parent or anchor


def _listing_date(root: Tag) -> str:
    for sel in DATE_SELECTORS:
        el = root.select_one(sel)
        if el is None:
            continue
        value = el.get("datetime") or el.get("content") or _text(el)
        fecha = normalize_event_date(value)
        if fecha:
            return fecha
    return ""


def _listing_name(anchor: Tag, root: Tag) -> str:
    strong = anchor.select_one("span > strong")
    if strong is not None:
        return _text(strong)
    for sel in NAME_SELECTORS:
        el = root.select_one(sel)
        if el is not None and _text(el):
            return _text(el)
    return ""


def _listing_venue(root: Tag) -> str:
    for sel in VENUE_SELECTORS:
        el = root.select_one(sel)
        if el is not None and _text(el):
            return _text(el)
    return ""


def extract_anchor_events(ctx: PageContext) -> List[EventRecord]:
    """Strategy 2: event-link anchors with sibling-derived fields."""
    base_url = ctx.base_url or ctx.url
    out: List[EventRecord] = []

    for anchor in ctx.soup.select(EVENT_ANCHOR_SELECTOR):
        root = _listing_root(anchor)

        geo: Dict[str, Any] = {}
        micro = first_object(root.select_one(MICROFORMAT_SELECTOR))
        if micro:
            location = micro.get("location") or {}
            if isinstance(location, dict) and isinstance(location.get("geo"), dict):
                geo = location["geo"]

        record = EventRecord(
            name=_listing_name(anchor, root),
            date=_listing_date(root),
            venue=_listing_venue(root),
            link=absolute_url(base_url, anchor.get("href")),
            latitude=as_float(geo.get("latitude")),
            longitude=as_float(geo.get("longitude")),
        )
        record = apply_radius(record, ctx.origin, ctx.radius_km)
        if record is not None:
            out.append(record)

    return out


STRUCTURED_DATA = ExtractionStrategy("structured_data", extract_structured_events)
EVENT_ANCHORS = ExtractionStrategy("event_anchors", extract_anchor_events)


def event_pipeline() -> ExtractionPipeline:
    return ExtractionPipeline("events", [STRUCTURED_DATA, EVENT_ANCHORS])


def parse_event_detail(html: str, page_url: str) -> Dict[str, str]:
    """
    Date, venue and link from an event's own page.

    JSON-LD first, then visible markup; link falls back to the page URL.
    """
    soup = parse_html(html)
    detail = {"date": "", "venue": "", "link": ""}

    for obj in find_typed_objects(soup, "Event"):
        record = _event_from_ld(obj, page_url)
        detail["date"] = record.date or detail["date"]
        detail["venue"] = record.venue or detail["venue"]
        detail["link"] = record.link or detail["link"]

    if not detail["date"]:
        el = soup.select_one('time, [itemprop="startDate"]')
        if el is not None:
            detail["date"] = normalize_event_date(el.get("datetime") or el.get("content") or "")
    if not detail["venue"]:
        detail["venue"] = _text(soup.select_one('a.venue-link, .venue, .location, [itemprop="location"]'))
    if not detail["link"]:
        detail["link"] = page_url

    return detail
