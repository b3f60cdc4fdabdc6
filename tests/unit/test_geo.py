"""
Unit tests for distance computation and enrichment of partial events.
"""

import asyncio
import pytest
from stayscout.db.models import EventRecord
from stayscout.geo.distance import apply_radius, haversine_km
from stayscout.geo.enricher import EventEnricher

TIJUANA = (32.5149, -117.0382)
SAN_DIEGO = (32.7157, -117.1611)


class TestHaversine:
    """Tests for haversine_km function."""

    def test_known_distance(self):
        assert haversine_km(TIJUANA, SAN_DIEGO) == pytest.approx(25.1, abs=0.2)

    def test_symmetric(self):
        assert haversine_km(TIJUANA, SAN_DIEGO) == pytest.approx(haversine_km(SAN_DIEGO, TIJUANA))

    def test_same_point(self):
        assert haversine_km(TIJUANA, TIJUANA) == 0.0


class TestApplyRadius:
    """Tests for apply_radius function."""

    def _event(self, lat=None, lon=None):
        return EventRecord(name="Show", latitude=lat, longitude=lon)

    def test_inside_radius_gets_distance(self):
        record = apply_radius(self._event(*SAN_DIEGO), TIJUANA, 30.0)
        assert record.distance_km == round(record.distance_km, 2)
        assert 24.5 < record.distance_km < 25.5

    def test_outside_radius_dropped(self):
        assert apply_radius(self._event(*SAN_DIEGO), TIJUANA, 10.0) is None

    def test_no_geo_kept_without_distance(self):
        record = self._event()
        assert apply_radius(record, TIJUANA, 10.0) is record

    def test_no_origin_kept_without_distance(self):
        record = self._event(*SAN_DIEGO)
        assert apply_radius(record, None, 10.0).distance_km is None

    def test_no_radius_only_measures(self):
        assert apply_radius(self._event(*SAN_DIEGO), TIJUANA, None).distance_km is not None


def _partial(i: int, **fields) -> EventRecord:
    data = {"name": f"Show {i}", "link": f"https://www.songkick.com/concerts/{i}"}
    data.update(fields)
    return EventRecord(**data)


DETAIL = """
<script type="application/ld+json">
  {"@type": "Event", "startDate": "2026-05-20T20:00:00", "location": {"name": "Foro Tlalli"}}
</script>
"""


class RecordingFetch:
    """Async fetch stub that tracks call order and peak parallelism."""

    def __init__(self, html: str = DETAIL, fail_links=()):
        self.html = html
        self.fail_links = set(fail_links)
        self.calls = []
        self.active = 0
        self.peak = 0

    async def __call__(self, link: str) -> str:
        self.calls.append(link)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0)
            if link in self.fail_links:
                raise TimeoutError("Timeout 45000ms exceeded")
            return self.html
        finally:
            self.active -= 1


class TestEventEnricher:
    """Tests for EventEnricher."""

    def test_only_partial_events_with_links_targeted(self):
        events = [
            _partial(0),
            _partial(1, date="2026-01-01", venue="Teatro"),
            EventRecord(name="No link"),
        ]
        assert EventEnricher(RecordingFetch()).targets(events) == [0]

    def test_limit_and_batches(self):
        fetch = RecordingFetch()
        events = [_partial(i) for i in range(20)]
        enriched = asyncio.run(EventEnricher(fetch).enrich(events))

        assert len(fetch.calls) == 15
        assert fetch.peak <= 5
        assert [e.venue for e in enriched[:15]] == ["Foro Tlalli"] * 15
        assert all(e.venue == "" for e in enriched[15:])

    def test_only_missing_fields_filled(self):
        events = [_partial(0, venue="Teatro del CECUT")]
        (record,) = asyncio.run(EventEnricher(RecordingFetch()).enrich(events))
        assert record.venue == "Teatro del CECUT"
        assert record.date == "2026-05-20"
        assert record.link == "https://www.songkick.com/concerts/0"

    def test_never_adds_coordinates(self):
        (record,) = asyncio.run(EventEnricher(RecordingFetch()).enrich([_partial(0)]))
        assert record.latitude is None
        assert record.distance_km is None

    def test_failed_fetch_keeps_record(self, error_records):
        events = [_partial(0), _partial(1)]
        fetch = RecordingFetch(fail_links={events[0].link})
        enriched = asyncio.run(EventEnricher(fetch).enrich(events))

        assert enriched[0] == events[0]
        assert enriched[1].venue == "Foro Tlalli"
        records = error_records()
        assert len(records) == 1
        assert records[0]["error_type"] == "enrichment_failure"
        assert records[0]["url"] == events[0].link

    def test_empty_detail_page_keeps_record(self, error_records):
        events = [_partial(0)]
        enriched = asyncio.run(EventEnricher(RecordingFetch(html="")).enrich(events))
        assert enriched == events
        assert len(error_records()) == 1

    def test_order_preserved(self):
        events = [_partial(i) for i in range(7)]
        enriched = asyncio.run(EventEnricher(RecordingFetch(), batch_size=3).enrich(events))
        assert [e.name for e in enriched] == [e.name for e in events]

    def test_invalid_batch_size(self):
        with pytest.raises(ValueError):
            EventEnricher(RecordingFetch(), batch_size=0)
