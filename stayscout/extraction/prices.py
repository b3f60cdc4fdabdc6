"""
Room-price extraction strategies.

Priority order:
1. pricing_table  - rows of the hotel's availability table
2. generic_prices - price-bearing elements anywhere on the page, labelled
                    with the nearest room-type text found walking up the DOM

Both keep only the first price seen per room-type label.
"""

import re
from typing import Callable, List, Optional, Set

from bs4 import Tag

from stayscout.core.logging import get_logger
from stayscout.db.models import PriceRecord
from stayscout.extraction.base import ExtractionPipeline, ExtractionStrategy, PageContext
from stayscout.extraction.price_parser import PriceToken, find_price

logger = get_logger(__name__)

TABLE_SELECTOR = "#hprt-table, .hprt-table"
ROW_PRICE_SELECTOR = ".prco-valign-middle-helper"
ROOM_NAME_SELECTORS = (
    ".hprt-roomtype-icon-link",
    ".hprt-roomtype-name",
    "span.hprt-roomtype-room",
    "a.hprt-roomtype-link",
    "strong",
    "h3",
    "h2",
)
GENERIC_PRICE_SELECTOR = (
    '[data-testid*="RoomRow"], [data-testid*="price"], '
    '.bui-price-display__value, .prco-valign-middle-helper'
)
GENERIC_NAME_SELECTORS = (
    ".hprt-roomtype-icon-link",
    ".hprt-roomtype-name",
    "span.hprt-roomtype-room",
    "[data-room-name]",
    ".sr-room__name",
    ".roomName",
    "h3",
    "h2",
    "th",
    "td",
)

# Markers that the availability table (or its replacement) has rendered
PRICE_MARKERS = ('#hprt-table', '.hprt-table', '[data-testid*="RoomRow"]', '.bui-price-display__value')

_CAPACITY_PREFIX_RE = re.compile(r"^(max\.|máx\.|max|solo|only|capacidad|occupancy)", re.I)
_CAPACITY_WORD_RE = re.compile(r"(people|personas|guests?)", re.I)
MIN_LABEL_LEN = 4


def clean_room_label(raw: Optional[str]) -> str:
    """
    Drop capacity annotations from a room-type cell and collapse whitespace.

    Labels of three characters or fewer are rejected ("").

    Example:
        >>> clean_room_label("Deluxe King Room\\nMax. people: 2\\n")
        'Deluxe King Room'
    """
    if not raw:
        return ""
    lines = [s.strip() for s in raw.split("\n")]
    kept = [
        s for s in lines
        if s and not _CAPACITY_PREFIX_RE.match(s) and not _CAPACITY_WORD_RE.search(s)
    ]
    label = re.sub(r"\s+", " ", " ".join(kept)).strip()
    return label if len(label) >= MIN_LABEL_LEN else ""


def _raw_text(el: Optional[Tag]) -> str:
    # keep line breaks between blocks so capacity lines stay separable
    return el.get_text("\n", strip=True) if el is not None else ""


def _first_cell_label(cell: Tag) -> str:
    for sel in ROOM_NAME_SELECTORS:
        el = cell.select_one(sel)
        txt = _raw_text(el)
        if len(txt.strip()) > 3:
            label = clean_room_label(txt)
            if label:
                return label
    return clean_room_label(_raw_text(cell))


def _row_price(row: Tag, cells: List[Tag]) -> Optional[PriceToken]:
    helper = row.select_one(ROW_PRICE_SELECTOR)
    if helper is not None:
        token = find_price(helper.get_text(" ", strip=True))
        if token:
            return token
    for cell in reversed(cells):
        token = find_price(cell.get_text(" ", strip=True))
        if token:
            return token
    return None


def _collect_first_per_label(
    ctx: PageContext,
    candidates,
    label_of: Callable[[Tag], str],
    price_of: Callable[[Tag], Optional[PriceToken]],
) -> List[PriceRecord]:
    seen: Set[str] = set()
    out: List[PriceRecord] = []
    for el in candidates:
        label = label_of(el)
        if not label or label in seen:
            continue
        token = price_of(el)
        if token is None:
            continue
        seen.add(label)
        out.append(PriceRecord(
            date=ctx.date,
            room_type=label,
            price=token.raw,
            currency_raw=token.currency_raw,
        ))
    return out


def extract_table_prices(ctx: PageContext) -> List[PriceRecord]:
    """Strategy 1: availability table, row by row."""
    table = ctx.soup.select_one(TABLE_SELECTOR)
    if table is None:
        return []

    rows = []
    for row in table.find_all("tr"):
        cells = row.find_all(["td", "th"])
        if len(cells) >= 2:
            rows.append((row, cells))

    return _collect_first_per_label(
        ctx,
        rows,
        label_of=lambda rc: _first_cell_label(rc[1][0]),
        price_of=lambda rc: _row_price(rc[0], rc[1]),
    )


_CONTAINER_CLASSES = {"hprt-table", "room", "sr_item"}


def _is_label_container(el: Tag) -> bool:
    if el.name in ("tr", "section", "article", "div"):
        return True
    classes = set(el.get("class") or [])
    return bool(classes & _CONTAINER_CLASSES)


def room_label_near(el: Tag) -> str:
    """
    Nearest room-type label for a price element.

    Walks up to the closest known container and probes name selectors
    inside it, then falls back to the first cell of the enclosing row.
    """
    container = el.find_parent(_is_label_container) or el.find_parent("body") or el
    for sel in GENERIC_NAME_SELECTORS:
        cand = container.select_one(sel)
        txt = _raw_text(cand)
        if len(txt.strip()) > 3:
            label = clean_room_label(txt)
            if label:
                return label

    row = el.find_parent("tr")
    if row is not None:
        first = row.find(["td", "th"])
        label = clean_room_label(_raw_text(first))
        if label:
            return label
    return ""


def extract_generic_prices(ctx: PageContext) -> List[PriceRecord]:
    """Strategy 2: any price-bearing element, labelled from its surroundings."""
    return _collect_first_per_label(
        ctx,
        ctx.soup.select(GENERIC_PRICE_SELECTOR),
        label_of=room_label_near,
        price_of=lambda el: find_price(el.get_text(" ", strip=True)),
    )


PRICING_TABLE = ExtractionStrategy("pricing_table", extract_table_prices)
GENERIC_PRICES = ExtractionStrategy("generic_prices", extract_generic_prices)


def price_pipeline() -> ExtractionPipeline:
    return ExtractionPipeline("prices", [PRICING_TABLE, GENERIC_PRICES])
