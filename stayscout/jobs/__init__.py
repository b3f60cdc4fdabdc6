"""
Jobs: the price and events flows and the runner that drives a job
through its state machine. All require playwright.
"""

from stayscout.jobs.runner import run_job, build_handler
from stayscout.jobs.hotel_prices import HotelPriceJob, search_url, hotel_url
from stayscout.jobs.events import EventsJob, resolve_events_url

__all__ = [
    "run_job",
    "build_handler",
    "HotelPriceJob",
    "search_url",
    "hotel_url",
    "EventsJob",
    "resolve_events_url",
]
