"""
Core utilities for StayScout.

This module contains shared utilities used across all components:
- Configuration management
- Logging
- Failure taxonomy and structured error logging
- Job models and lifecycle states
"""

from stayscout.core.logging import get_logger, setup_logging
from stayscout.core.config import get_config, validate_config, Config
from stayscout.core.error_logger import get_error_logger
from stayscout.core.error_models import (
    ErrorComponent,
    ErrorSeverity,
    ErrorType,
    ErrorStage,
    ErrorRecord,
)
from stayscout.core.errors import (
    ScrapeError,
    NavigationFailure,
    StrategyMiss,
    UpstreamUnavailable,
    EnrichmentFailure,
    ResourceAcquisitionFailure,
)
from stayscout.core.job_models import JobKind, JobState, JobOutcome, JobStateTracker, ScrapeJob

__all__ = [
    "get_logger",
    "setup_logging",
    "get_config",
    "validate_config",
    "Config",
    "get_error_logger",
    "ErrorComponent",
    "ErrorSeverity",
    "ErrorType",
    "ErrorStage",
    "ErrorRecord",
    "ScrapeError",
    "NavigationFailure",
    "StrategyMiss",
    "UpstreamUnavailable",
    "EnrichmentFailure",
    "ResourceAcquisitionFailure",
    "JobKind",
    "JobState",
    "JobOutcome",
    "JobStateTracker",
    "ScrapeJob",
]
