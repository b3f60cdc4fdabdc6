"""
Unit tests for database Pydantic models.

Tests validation, natural keys, serialization and row flattening.
"""

import pytest
from pydantic import ValidationError
from stayscout.db.models import (
    PriceRecord,
    EventRecord,
    natural_key,
    EventRow,
    price_rows,
)


class TestPriceRecord:
    """Tests for PriceRecord model."""

    def test_whitespace_collapsed(self):
        rec = PriceRecord(date="2026-03-01", room_type="  Deluxe   King  Room ", price="MXN 1,850")
        assert rec.room_type == "Deluxe King Room"

    def test_empty_room_type_rejected(self):
        with pytest.raises(ValidationError):
            PriceRecord(date="2026-03-01", room_type="", price="MXN 1")

    def test_frozen(self):
        rec = PriceRecord(date="2026-03-01", room_type="Suite", price="MXN 1")
        with pytest.raises(ValidationError):
            rec.price = "MXN 2"

    def test_to_room(self):
        rec = PriceRecord(date="2026-03-01", room_type="Suite", price="MXN 900", currency_raw="MXN")
        assert rec.to_room() == {"room_type": "Suite", "price": "MXN 900"}

    def test_natural_key_ignores_price(self):
        a = PriceRecord(date="2026-03-01", room_type="Suite", price="MXN 900")
        b = PriceRecord(date="2026-03-01", room_type="Suite", price="MXN 950")
        assert natural_key(a) == natural_key(b)


class TestEventRecord:
    """Tests for EventRecord model."""

    def test_output_aliases_and_none_dropped(self):
        ev = EventRecord(name="Caifanes", date="2026-04-09", venue="Estadio Caliente",
                         link="https://www.songkick.com/concerts/202-caifanes")
        assert ev.to_output() == {
            "nombre": "Caifanes",
            "fecha": "2026-04-09",
            "lugar": "Estadio Caliente",
            "enlace": "https://www.songkick.com/concerts/202-caifanes",
        }

    def test_output_with_geo(self):
        ev = EventRecord(name="X", latitude=32.5, longitude=-117.0, distance_km=3.21)
        out = ev.to_output()
        assert out["latitude"] == 32.5
        assert out["distance_km"] == 3.21

    def test_partial_and_geo_flags(self):
        assert EventRecord(name="X", link="https://a").is_partial
        assert not EventRecord(name="X", date="2026-01-01", venue="V", link="https://a").is_partial
        assert not EventRecord(name="X", latitude=1.0).has_geo

    def test_natural_key_normalizes_name_and_venue(self):
        a = EventRecord(name="Los Tigres  del Norte", venue="Plaza Monumental", date="2026-04-02")
        b = EventRecord(name="los tigres del norte", venue="PLAZA MONUMENTAL", date="2026-04-02",
                        link="https://other")
        assert natural_key(a) == natural_key(b)

    def test_natural_key_falls_back_to_link(self):
        a = EventRecord(name="", link="https://www.songkick.com/concerts/1")
        b = EventRecord(name="", link="https://www.songkick.com/concerts/2")
        assert natural_key(a) != natural_key(b)

    def test_price_and_event_keys_never_collide(self):
        price = PriceRecord(date="2026-01-01", room_type="Suite", price="MXN 1")
        event = EventRecord(name="2026-01-01", venue="Suite")
        assert natural_key(price)[0] == "PriceRecord"
        assert natural_key(event)[0] == "EventRecord"


class TestRows:
    """Tests for upsert row shapes."""

    def test_price_rows_flatten_payload(self):
        payload = [
            {"date": "2026-03-01", "rooms": [{"room_type": "Suite", "price": "MXN 900"}]},
            {"date": "2026-03-02", "rooms": []},
            {"date": "2026-03-03", "rooms": [
                {"room_type": "Suite", "price": "MXN 950"},
                {"room_type": "Twin", "price": "MXN 700"},
            ]},
        ]
        rows = price_rows("owner", "Hotel Lucerna", "2026-02-28", payload)
        assert [(r.checkin_date, r.room_type) for r in rows] == [
            ("2026-03-01", "Suite"), ("2026-03-03", "Suite"), ("2026-03-03", "Twin"),
        ]
        assert all(r.scrape_date == "2026-02-28" for r in rows)

    def test_event_row_from_output(self):
        row = EventRow(user_id="u", nombre="Caifanes", fecha="2026-04-09")
        assert row.lugar == ""
        assert row.latitude is None
