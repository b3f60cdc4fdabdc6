"""
De-duplication and output shaping.

aggregate() concatenates record groups in the order given and keeps the
first record seen per natural key.
"""

from typing import Any, Dict, Iterable, List

from stayscout.db.models import EventRecord, Record, natural_key
from stayscout.scheduling.scheduler import DayResult


def aggregate(groups: Iterable[Iterable[Record]]) -> List[Record]:
    """
    Example:
        >>> a = PriceRecord(date="2026-03-01", room_type="Suite", price="MXN 900")
        >>> b = PriceRecord(date="2026-03-01", room_type="Suite", price="MXN 950")
        >>> [r.price for r in aggregate([[a], [b]])]
        ['MXN 900']
    """
    seen = set()
    out: List[Record] = []
    for group in groups:
        for record in group:
            key = natural_key(record)
            if key in seen:
                continue
            seen.add(key)
            out.append(record)
    return out


def price_payload(day_results: Iterable[DayResult]) -> List[Dict[str, Any]]:
    """
    [{date, rooms: [{room_type, price}]}] in day order.

    Days with no prices are kept with an empty rooms list.
    """
    day_results = list(day_results)
    by_date: Dict[str, List[Dict[str, str]]] = {}
    for dr in day_results:
        by_date.setdefault(dr.date, [])

    for record in aggregate(dr.records for dr in day_results):
        by_date.setdefault(record.date, []).append(record.to_room())

    return [{"date": d, "rooms": rooms} for d, rooms in by_date.items()]


def event_payload(events: Iterable[EventRecord]) -> List[Dict[str, Any]]:
    return [e.to_output() for e in aggregate([events])]
