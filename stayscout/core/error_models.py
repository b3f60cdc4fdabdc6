"""
Pydantic models for structured error logging.

This module defines type-safe error record models with automatic validation
and classification so that every recovered scrape failure is logged the
same way.
"""

import json
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, ConfigDict


class ErrorComponent(str, Enum):
    """System components that can generate errors."""
    BROWSER = "browser"
    NAVIGATION = "navigation"
    EXTRACTION = "extraction"
    SCHEDULER = "scheduler"
    ENRICHMENT = "enrichment"
    DATABASE = "db"
    CONFIG = "config"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    """Error severity levels matching logging standards."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorType(str, Enum):
    """
    Categorized error types for classification.

    The first block mirrors the scrape failure taxonomy in
    stayscout.core.errors; the rest are generic causes.
    """
    # Scrape failure taxonomy
    NAVIGATION_FAILURE = "navigation_failure"
    STRATEGY_MISS = "strategy_miss"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    ENRICHMENT_FAILURE = "enrichment_failure"
    RESOURCE_ACQUISITION_FAILURE = "resource_acquisition_failure"

    # Validation errors
    VALIDATION_ERROR = "validation_error"

    # Network errors
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    HTTP_ERROR = "http_error"

    # Parsing errors
    PARSE_ERROR = "parse_error"
    JSON_ERROR = "json_error"

    # Database errors
    DB_CONNECTION_ERROR = "db_connection_error"
    DB_UPSERT_ERROR = "db_upsert_error"

    # Browser errors
    BROWSER_ERROR = "browser_error"
    ELEMENT_NOT_FOUND = "element_not_found"

    # Configuration errors
    CONFIG_ERROR = "config_error"

    UNKNOWN = "unknown"


class ErrorStage:
    """
    Standardized stage names for error logging.
    """
    # Session
    LAUNCH_BROWSER = "launch_browser"
    OPEN_SESSION = "open_session"
    CLOSE_SESSION = "close_session"

    # Navigation
    NAVIGATE = "navigate"
    DISMISS_CONSENT = "dismiss_consent"
    WAIT_NETWORK_IDLE = "wait_network_idle"
    SCROLL = "scroll"
    WAIT_FOR_MARKERS = "wait_for_markers"
    CLICK_CTA = "click_cta"

    # Hotel lookup
    SEARCH_HOTEL = "search_hotel"
    CHOOSE_CANDIDATE = "choose_candidate"

    # Extraction
    EXTRACT_PRICES = "extract_prices"
    EXTRACT_EVENTS = "extract_events"
    PARSE_STRUCTURED_DATA = "parse_structured_data"

    # Scheduling
    PROCESS_DAY = "process_day"
    PROCESS_BLOCK = "process_block"
    RECOVER_DATE = "recover_date"

    # Enrichment
    ENRICH_EVENT = "enrich_event"

    # Database
    UPSERT_PRICES = "upsert_prices"
    UPSERT_EVENTS = "upsert_events"
    CONNECT_DB = "connect_db"

    # Config
    LOAD_CONFIG = "load_config"


class ErrorRecord(BaseModel):
    """
    Structured error record for database insertion.

    Validates all error data before logging so that logging an error can
    never cause another failure.
    """
    component: ErrorComponent = Field(..., description="System component")
    stage: str = Field(..., min_length=1, max_length=100, description="Processing stage")
    error_type: ErrorType = Field(..., description="Error category")
    severity: ErrorSeverity = Field(default=ErrorSeverity.ERROR, description="Severity level")
    domain: str = Field(..., min_length=1, max_length=255, description="Source domain")
    message: str = Field(..., min_length=1, description="Human-readable error message")

    url: Optional[str] = Field(None, max_length=2048, description="Specific URL if applicable")
    exception_type: Optional[str] = Field(None, max_length=255, description="Exception class name")
    stack_trace: Optional[str] = Field(None, description="Stack trace for unexpected errors")

    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional context")

    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Error timestamp"
    )

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        use_enum_values=True,
    )

    @field_validator("stage")
    @classmethod
    def validate_stage(cls, v: str) -> str:
        """Ensure stage is normalized."""
        if not v or not v.strip():
            return "unknown"
        return v.strip().lower().replace(" ", "_")

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Ensure message is not empty and bounded."""
        if not v or not v.strip():
            return "No error message provided"
        return v.strip()[:5000]

    @field_validator("metadata")
    @classmethod
    def sanitize_metadata(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """Convert non-JSON-serializable metadata values to strings."""
        sanitized = {}
        for key, value in v.items():
            try:
                json.dumps(value)
                sanitized[key] = value
            except (TypeError, ValueError):
                sanitized[key] = str(value)
        return sanitized

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        component: ErrorComponent,
        stage: str,
        domain: str,
        url: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        error_type: Optional[ErrorType] = None,
        include_stack_trace: bool = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ErrorRecord":
        """
        Create ErrorRecord from an exception with automatic classification.

        Example:
            >>> try:
            ...     await page.goto(url, timeout=60000)
            ... except PlaywrightTimeoutError as e:
            ...     record = ErrorRecord.from_exception(
            ...         e,
            ...         component=ErrorComponent.NAVIGATION,
            ...         stage=ErrorStage.NAVIGATE,
            ...         domain="www.booking.com",
            ...     )
        """
        if error_type is None:
            error_type = cls._classify_exception(exc)

        message = str(exc) or f"{type(exc).__name__} occurred"
        exception_type = f"{type(exc).__module__}.{type(exc).__name__}"

        if include_stack_trace is None:
            include_stack_trace = cls._should_include_stack(exc, severity)

        stack_trace = None
        if include_stack_trace:
            try:
                stack_trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
                if len(stack_trace) > 10000:
                    stack_trace = stack_trace[:10000] + "\n... (truncated)"
            except Exception:
                stack_trace = None

        return cls(
            component=component,
            stage=stage,
            error_type=error_type,
            severity=severity,
            domain=domain or "unknown",
            url=url,
            message=message,
            exception_type=exception_type,
            stack_trace=stack_trace,
            metadata=metadata or {},
        )

    @staticmethod
    def _classify_exception(exc: Exception) -> ErrorType:
        """
        Classify an exception into an ErrorType.

        Scrape taxonomy classes map one-to-one; anything else is classified
        from its type name and message.
        """
        taxonomy = {
            "NavigationFailure": ErrorType.NAVIGATION_FAILURE,
            "StrategyMiss": ErrorType.STRATEGY_MISS,
            "UpstreamUnavailable": ErrorType.UPSTREAM_UNAVAILABLE,
            "EnrichmentFailure": ErrorType.ENRICHMENT_FAILURE,
            "ResourceAcquisitionFailure": ErrorType.RESOURCE_ACQUISITION_FAILURE,
        }
        for klass in type(exc).__mro__:
            if klass.__name__ in taxonomy:
                return taxonomy[klass.__name__]

        exc_name = type(exc).__name__.lower()
        exc_msg = str(exc).lower()

        if "validation" in exc_name:
            return ErrorType.VALIDATION_ERROR
        if "timeout" in exc_name or "timeout" in exc_msg:
            return ErrorType.TIMEOUT
        if "connection" in exc_name:
            return ErrorType.CONNECTION_ERROR
        if "http" in exc_name:
            return ErrorType.HTTP_ERROR
        if "json" in exc_name:
            return ErrorType.JSON_ERROR
        if "parse" in exc_name:
            return ErrorType.PARSE_ERROR
        if "playwright" in exc_name or "browser" in exc_name:
            return ErrorType.BROWSER_ERROR
        if "selector" in exc_msg:
            return ErrorType.ELEMENT_NOT_FOUND

        return ErrorType.UNKNOWN

    @staticmethod
    def _should_include_stack(exc: Exception, severity: ErrorSeverity) -> bool:
        """
        Decide whether a stack trace is worth storing.

        Expected failures (timeouts, misses, missing input) don't need one.
        """
        if severity == ErrorSeverity.CRITICAL:
            return True

        if severity in (ErrorSeverity.WARNING, ErrorSeverity.INFO, ErrorSeverity.DEBUG):
            return False

        EXPECTED_ERRORS = (
            'ValidationError',
            'TimeoutError',
            'NavigationFailure',
            'StrategyMiss',
            'UpstreamUnavailable',
            'EnrichmentFailure',
        )

        return type(exc).__name__ not in EXPECTED_ERRORS
