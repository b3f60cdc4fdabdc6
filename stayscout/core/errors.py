"""
Failure taxonomy for scrape jobs.

Only ResourceAcquisitionFailure escapes a job; every other kind is
recovered where it happens and recorded through the error logger.
"""

from typing import Optional


class ScrapeError(Exception):
    """Base class for all scrape failures."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class NavigationFailure(ScrapeError):
    """Page did not reach a usable state within its timeout."""


class StrategyMiss(ScrapeError):
    """One extraction strategy found nothing (or broke on unexpected markup)."""

    def __init__(self, strategy: str, message: str = "no records", url: Optional[str] = None):
        super().__init__(f"{strategy}: {message}", url=url)
        self.strategy = strategy


class UpstreamUnavailable(ScrapeError):
    """A required credential, input or external service is absent."""


class EnrichmentFailure(ScrapeError):
    """Secondary fetch for a partial record failed."""


class ResourceAcquisitionFailure(ScrapeError):
    """The browser process could not be started. Fatal to the job."""
