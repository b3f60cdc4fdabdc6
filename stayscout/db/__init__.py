"""
Database module for StayScout.

- Pydantic models for extracted records and upsert rows
- Supabase sink (stayscout.db.supabase_client), imported on demand
"""

from stayscout.db.models import (
    PriceRecord,
    EventRecord,
    Record,
    natural_key,
    PriceRow,
    EventRow,
    price_rows,
)

__all__ = [
    # Models
    "PriceRecord",
    "EventRecord",
    "Record",
    "natural_key",
    "PriceRow",
    "EventRow",
    "price_rows",
]
