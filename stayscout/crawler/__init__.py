"""
Crawler module: browser sessions and page readiness.

Module Structure:
- url_utils: URL parsing, host filtering and query rewriting
- session: browser process and isolated page sessions (requires playwright)
- navigation: layered readiness and in-page clicks (requires playwright)
"""

# Export URL utilities directly (no playwright dependency)
from stayscout.crawler.url_utils import (
    domain_of,
    host_allowed,
    absolute_url,
    with_query_params,
    query_param,
)


# Lazy loading for playwright-dependent names
def __getattr__(name):
    """Lazy loading for playwright-dependent names."""
    if name in ("BrowserSessionManager", "PageSession", "SessionConfig"):
        from stayscout.crawler.session import BrowserSessionManager, PageSession, SessionConfig
        return {
            "BrowserSessionManager": BrowserSessionManager,
            "PageSession": PageSession,
            "SessionConfig": SessionConfig,
        }[name]

    if name in ("NavigationController", "ReadinessPolicy", "RenderedPage"):
        from stayscout.crawler.navigation import NavigationController, ReadinessPolicy, RenderedPage
        return {
            "NavigationController": NavigationController,
            "ReadinessPolicy": ReadinessPolicy,
            "RenderedPage": RenderedPage,
        }[name]

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # URL utilities (no playwright dependency)
    "domain_of",
    "host_allowed",
    "absolute_url",
    "with_query_params",
    "query_param",
    # Sessions (require playwright - lazy loaded)
    "BrowserSessionManager",
    "PageSession",
    "SessionConfig",
    # Navigation (require playwright - lazy loaded)
    "NavigationController",
    "ReadinessPolicy",
    "RenderedPage",
]
