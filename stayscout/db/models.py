"""
Pydantic models for extracted records.

Records are the typed unit of output: room prices per date and public
events. Each record exposes a natural key used for de-duplication here and
as the conflict target of the persistence sink.
"""

import re
from typing import Optional, Dict, Any, List, Tuple, Union
from pydantic import BaseModel, Field, field_validator, ConfigDict


_WS_RE = re.compile(r"\s+")


def _norm(text: Optional[str]) -> str:
    return _WS_RE.sub(" ", text or "").strip().lower()


class PriceRecord(BaseModel):
    """
    First observed price for one room type on one check-in date.

    price keeps the matched text verbatim (e.g. "MXN 1,234");
    currency_raw is its currency prefix as it appeared on the page.
    """
    date: str = Field(..., description="Check-in date (YYYY-MM-DD)")
    room_type: str = Field(..., min_length=1, description="Cleaned room-type label")
    price: str = Field(..., min_length=1, description="Raw price token")
    currency_raw: str = Field("", description="Currency symbol/code as matched")

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    @field_validator("room_type")
    @classmethod
    def collapse_whitespace(cls, v: str) -> str:
        return _WS_RE.sub(" ", v).strip()

    def natural_key(self) -> Tuple[str, str]:
        return (self.date, self.room_type.strip())

    def to_room(self) -> Dict[str, str]:
        """Shape used inside the per-date price payload."""
        return {"room_type": self.room_type, "price": self.price}


class EventRecord(BaseModel):
    """
    A public event near the job's origin.

    Serialized with the output aliases nombre/fecha/lugar/enlace.
    distance_km is only set when both origin and event geo are known.
    """
    name: str = Field("", serialization_alias="nombre")
    date: str = Field("", serialization_alias="fecha")
    venue: str = Field("", serialization_alias="lugar")
    link: str = Field("", serialization_alias="enlace")
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_km: Optional[float] = None

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    @property
    def has_geo(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_partial(self) -> bool:
        """Missing any of date, venue or link."""
        return not (self.date and self.venue and self.link)

    def natural_key(self) -> Tuple[str, str, str]:
        # link stands in for the name when the listing had no title
        return (_norm(self.name) or self.link.strip(), _norm(self.venue), self.date)

    def to_output(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


Record = Union[PriceRecord, EventRecord]


def natural_key(record: Record) -> Tuple:
    """Key under which two records count as the same fact."""
    return (type(record).__name__,) + record.natural_key()


class PriceRow(BaseModel):
    """Row shape upserted into the prices table."""
    user_id: str
    hotel_name: str
    scrape_date: str
    checkin_date: str
    room_type: str
    price: str

    model_config = ConfigDict(str_strip_whitespace=True)


class EventRow(BaseModel):
    """Row shape upserted into the events table."""
    user_id: str
    nombre: str
    fecha: str = ""
    lugar: str = ""
    enlace: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_km: Optional[float] = None

    model_config = ConfigDict(str_strip_whitespace=True)


def price_rows(owner_id: str, hotel_name: str, scrape_date: str,
               payload: List[Dict[str, Any]]) -> List[PriceRow]:
    """Flatten a [{date, rooms}] payload into upsert rows."""
    rows: List[PriceRow] = []
    for day in payload:
        for room in day.get("rooms") or []:
            rows.append(PriceRow(
                user_id=owner_id,
                hotel_name=hotel_name,
                scrape_date=scrape_date,
                checkin_date=day["date"],
                room_type=room["room_type"],
                price=room["price"],
            ))
    return rows
