"""
Centralized error logging with Supabase integration.

This module provides a fail-safe error logger that:
- Logs recovered scrape failures to Supabase with a structured schema
- Falls back to local JSONL files when the database is unavailable
- Uses Pydantic validation for type safety
- Follows the singleton pattern for global access
"""

import os
import json
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime, timezone

from stayscout.core.config import get_config
from stayscout.core.logging import get_logger
from stayscout.core.error_models import (
    ErrorRecord,
    ErrorComponent,
    ErrorSeverity,
    ErrorType,
)

logger = get_logger(__name__)

ERROR_LOG_TABLE = os.getenv("ERROR_LOG_TABLE", "error_logs")
ERROR_LOG_FALLBACK_DIR = Path(os.getenv("ERROR_LOG_FALLBACK_DIR", "logs/errors"))

_SEVERITY_LEVELS = {
    ErrorSeverity.DEBUG.value: "debug",
    ErrorSeverity.INFO.value: "info",
    ErrorSeverity.WARNING.value: "warning",
    ErrorSeverity.ERROR.value: "error",
    ErrorSeverity.CRITICAL.value: "critical",
}

_error_logger: Optional["ErrorLogger"] = None


class ErrorLogger:
    """
    Error logger with database and file fallback.

    Every record is also echoed to the standard logger so that a failing
    job is diagnosable from stderr alone.

    Usage:
        >>> error_logger = get_error_logger()
        >>> error_logger.log_error(
        ...     component=ErrorComponent.NAVIGATION,
        ...     stage=ErrorStage.NAVIGATE,
        ...     error_type=ErrorType.NAVIGATION_FAILURE,
        ...     domain="www.booking.com",
        ...     message="goto timed out after 60s",
        ... )
    """

    def __init__(self, fallback_dir: Optional[Path] = None, use_database: bool = True):
        self._client = None
        self._db_available = False
        self._fallback_dir = Path(fallback_dir) if fallback_dir else ERROR_LOG_FALLBACK_DIR

        if use_database:
            self._init_database()

    def _init_database(self) -> None:
        """Initialize Supabase client for error logging."""
        config = get_config()
        if not config.supabase_enabled or not config.supabase_url or not config.supabase_service_role_key:
            logger.debug("Error logging: Supabase not configured, using file fallback")
            return

        try:
            from supabase import create_client

            self._client = create_client(config.supabase_url, config.supabase_service_role_key)
            self._db_available = True
            logger.debug("Error logging initialized with Supabase")
        except Exception as e:
            logger.warning(f"Error logging: Database init failed ({e}), using file fallback")

    def log_error(
        self,
        component: ErrorComponent,
        stage: str,
        error_type: ErrorType,
        domain: str,
        message: str,
        url: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Log an error record. Never raises.

        Returns:
            True if the record was persisted, False otherwise
        """
        try:
            record = ErrorRecord(
                component=component,
                stage=stage,
                error_type=error_type,
                severity=severity,
                domain=domain or "unknown",
                url=url,
                message=message,
                metadata=metadata or {},
            )
            return self._write(record)
        except Exception as e:
            logger.error(f"Error logger failed: {e} - Original error: {message}")
            return False

    def log_exception(
        self,
        exc: Exception,
        component: ErrorComponent,
        stage: str,
        domain: str,
        url: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
        error_type: Optional[ErrorType] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Log an exception with automatic classification. Never raises.

        Recovered failures default to WARNING severity.
        """
        try:
            record = ErrorRecord.from_exception(
                exc=exc,
                component=component,
                stage=stage,
                domain=domain,
                url=url,
                severity=severity,
                error_type=error_type,
                metadata=metadata,
            )
            return self._write(record)
        except Exception as e:
            logger.error(f"Error logger failed: {e} - Original exception: {type(exc).__name__}")
            return False

    def _write(self, record: ErrorRecord) -> bool:
        level = _SEVERITY_LEVELS.get(record.severity, "error")
        getattr(logger, level)(
            f"[{record.component}/{record.stage}] {record.error_type}: {record.message}"
            + (f" ({record.url})" if record.url else "")
        )

        if self._db_available and self._client:
            return self._write_to_database(record)
        return self._write_to_file(record)

    def _write_to_database(self, record: ErrorRecord) -> bool:
        """Write error record to Supabase."""
        try:
            row = record.model_dump(exclude_none=False)
            self._client.table(ERROR_LOG_TABLE).insert(row).execute()
            return True
        except Exception as e:
            logger.warning(f"Database error write failed: {e}, falling back to file")
            return self._write_to_file(record)

    def _write_to_file(self, record: ErrorRecord) -> bool:
        """Append error record to a dated local JSONL file."""
        try:
            self._fallback_dir.mkdir(exist_ok=True, parents=True)
            date_str = datetime.now(timezone.utc).strftime("%Y%m%d")
            file_path = self._fallback_dir / f"errors_{date_str}.jsonl"

            with open(file_path, "a", encoding="utf-8") as f:
                json.dump(record.model_dump(), f)
                f.write("\n")

            return True
        except Exception as e:
            logger.error(f"File error write failed: {e}")
            return False


def get_error_logger() -> ErrorLogger:
    """
    Get the global ErrorLogger instance.

    Returns:
        Global ErrorLogger singleton
    """
    global _error_logger
    if _error_logger is None:
        _error_logger = ErrorLogger()
    return _error_logger
