"""
Shared utility functions for StayScout.

- Date windows and event-date normalization
- Async retry with exponential backoff
- TTL cache with injectable clock
- User-agent provider
"""

from stayscout.utils.date_utils import format_date, parse_date, stay_window, normalize_event_date
from stayscout.utils.retry import retry_async_with_backoff, RetryConfig
from stayscout.utils.cache import CacheStore, geo_cache_key
from stayscout.utils.user_agents import UserAgentProvider, UA_POOL

__all__ = [
    # Date utilities
    "format_date",
    "parse_date",
    "stay_window",
    "normalize_event_date",
    # Retry utilities
    "retry_async_with_backoff",
    "RetryConfig",
    # Cache
    "CacheStore",
    "geo_cache_key",
    # User agents
    "UserAgentProvider",
    "UA_POOL",
]
