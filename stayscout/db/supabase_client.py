"""
Supabase persistence sink for job results.

Upserts are idempotent on each table's natural key:
- prices: user_id, hotel_name, checkin_date, room_type
- events: user_id, nombre, lugar, fecha

When the sink is disabled or misconfigured, writes are skipped and an
UpstreamUnavailable is recorded; a persistence failure never fails a job.
"""

import re
from datetime import date
from typing import Any, Dict, List, Optional

from supabase import create_client

from stayscout.core.config import get_config
from stayscout.core.errors import UpstreamUnavailable
from stayscout.core.error_logger import get_error_logger
from stayscout.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from stayscout.core.logging import get_logger
from stayscout.db.models import EventRow, price_rows
from stayscout.utils.date_utils import format_date

logger = get_logger(__name__)

PRICES_CONFLICT = "user_id,hotel_name,checkin_date,room_type"
EVENTS_CONFLICT = "user_id,nombre,lugar,fecha"

UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.I)

_client = None


def is_valid_owner_id(value: Optional[str]) -> bool:
    """
    Example:
        >>> is_valid_owner_id("3f2b8c1e-9a4d-4e6f-8b2a-1c3d5e7f9a0b")
        True
        >>> is_valid_owner_id("anonymous")
        False
    """
    return bool(value) and bool(UUID_RE.match(value))


def _init_client():
    """
    Lazily create a singleton Supabase client.

    Returns:
        client instance or None if disabled / misconfigured.
    """
    global _client
    if _client is not None:
        return _client

    config = get_config()
    if not config.supabase_enabled:
        logger.info("Supabase disabled via SUPABASE_ENABLED")
        return None

    if not config.supabase_url or not config.supabase_service_role_key:
        logger.info("Supabase disabled: SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY missing")
        return None

    _client = create_client(config.supabase_url, config.supabase_service_role_key)
    logger.info(f"Supabase client initialized for {config.supabase_url}")
    return _client


def get_supabase():
    """Convenience wrapper used by other modules."""
    return _init_client()


def is_supabase_enabled() -> bool:
    """True if a client can be created and used."""
    return _init_client() is not None


def _skip(stage: str, reason: str, metadata: Optional[Dict[str, Any]] = None) -> int:
    get_error_logger().log_exception(
        UpstreamUnavailable(reason),
        component=ErrorComponent.DATABASE,
        stage=stage,
        domain="supabase",
        severity=ErrorSeverity.WARNING,
        error_type=ErrorType.UPSTREAM_UNAVAILABLE,
        metadata=metadata,
    )
    return 0


def _upsert(client, table: str, rows: List[Dict[str, Any]], on_conflict: str, stage: str) -> int:
    try:
        logger.info(f"Upserting {len(rows)} rows into '{table}'")
        client.table(table).upsert(rows, on_conflict=on_conflict).execute()
        return len(rows)
    except Exception as e:
        # Fail softly: the job result is already in hand
        get_error_logger().log_exception(
            e,
            component=ErrorComponent.DATABASE,
            stage=stage,
            domain="supabase",
            severity=ErrorSeverity.ERROR,
            error_type=ErrorType.DB_UPSERT_ERROR,
            metadata={"table": table, "rows": len(rows)},
        )
        return 0


def upsert_prices(owner_id: Optional[str], hotel_name: str, payload: List[Dict[str, Any]],
                  scrape_date: Optional[date] = None, client=None) -> int:
    """
    Persist a [{date, rooms}] price payload.

    Returns:
        Number of rows written (0 when skipped or failed)
    """
    if not is_valid_owner_id(owner_id):
        return _skip(ErrorStage.UPSERT_PRICES, "owner id missing or not a UUID", {"owner_id": owner_id})

    client = client or _init_client()
    if client is None:
        return _skip(ErrorStage.UPSERT_PRICES, "Supabase not configured")

    rows = price_rows(owner_id, hotel_name, format_date(scrape_date or date.today()), payload)
    if not rows:
        logger.info(f"No price rows to upsert for '{hotel_name}'")
        return 0

    table = get_config().supabase_prices_table
    return _upsert(client, table, [r.model_dump() for r in rows], PRICES_CONFLICT, ErrorStage.UPSERT_PRICES)


def upsert_events(owner_id: Optional[str], events: List[Dict[str, Any]], client=None) -> int:
    """
    Persist event output dicts (nombre/fecha/lugar/enlace...).

    Returns:
        Number of rows written (0 when skipped or failed)
    """
    if not is_valid_owner_id(owner_id):
        return _skip(ErrorStage.UPSERT_EVENTS, "owner id missing or not a UUID", {"owner_id": owner_id})

    client = client or _init_client()
    if client is None:
        return _skip(ErrorStage.UPSERT_EVENTS, "Supabase not configured")

    rows = [EventRow(user_id=owner_id, **e).model_dump() for e in events if e.get("nombre")]
    if not rows:
        logger.info("No event rows to upsert")
        return 0

    table = get_config().supabase_events_table
    return _upsert(client, table, rows, EVENTS_CONFLICT, ErrorStage.UPSERT_EVENTS)
