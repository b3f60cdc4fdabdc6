"""
Pydantic models describing a scrape job and its lifecycle.

A ScrapeJob is created once per inbound request and is immutable for the
job's duration. JobState tracks the per-job state machine; JobOutcome is
what the runner hands back to its caller.
"""

from enum import Enum
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator


class JobKind(str, Enum):
    """Content type a job extracts."""
    PRICES = "prices"
    EVENTS = "events"


class JobState(str, Enum):
    """
    Per-job state machine.

    created -> session_starting -> scheduling -> extracting -> aggregating
    -> enriching -> completed. FAILED is only reachable from
    SESSION_STARTING (browser launch error).
    """
    CREATED = "created"
    SESSION_STARTING = "session_starting"
    SCHEDULING = "scheduling"
    EXTRACTING = "extracting"
    AGGREGATING = "aggregating"
    ENRICHING = "enriching"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS = {
    JobState.CREATED: {JobState.SESSION_STARTING, JobState.COMPLETED},
    JobState.SESSION_STARTING: {JobState.SCHEDULING, JobState.FAILED, JobState.COMPLETED},
    JobState.SCHEDULING: {JobState.EXTRACTING, JobState.COMPLETED},
    JobState.EXTRACTING: {JobState.AGGREGATING, JobState.COMPLETED},
    JobState.AGGREGATING: {JobState.ENRICHING, JobState.COMPLETED},
    JobState.ENRICHING: {JobState.COMPLETED},
    JobState.COMPLETED: set(),
    JobState.FAILED: set(),
}


def can_transition(current: JobState, target: JobState) -> bool:
    """True if the state machine allows current -> target."""
    return target in _TRANSITIONS[current]


class ScrapeJob(BaseModel):
    """
    One bounded unit of extraction work with fixed parameters.

    Price jobs need target_name; event jobs need latitude/longitude.
    """
    kind: JobKind
    target_name: Optional[str] = Field(None, description="Free-text hotel name")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius_km: float = Field(50.0, gt=0, description="Search radius in km")
    days: int = Field(1, ge=1, description="Date-window length")
    day_offset: int = Field(0, ge=0, description="First day index relative to today")
    concurrency: int = Field(3, ge=1, description="Upper bound on parallel units")
    headless: bool = True
    debug: bool = False
    owner_id: Optional[str] = Field(None, description="Owner id used by the persistence sink")

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("target_name")
    @classmethod
    def blank_name_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_coordinates_pair(self) -> "ScrapeJob":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self

    @property
    def origin(self) -> Optional[tuple]:
        """(lat, lon) when both coordinates are known."""
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    @classmethod
    def from_request(cls, kind: str, payload: Dict[str, Any]) -> "ScrapeJob":
        """
        Build a job from a dispatch-layer request body.

        Accepts both the dispatch field names (hotelName, userUuid, radius)
        and the model's own names.
        """
        data = {
            "kind": kind,
            "target_name": payload.get("target_name", payload.get("hotelName")),
            "latitude": payload.get("latitude"),
            "longitude": payload.get("longitude"),
            "days": payload.get("days", 1),
            "day_offset": payload.get("day_offset", 0),
            "concurrency": payload.get("concurrency", 3),
            "headless": payload.get("headless", True),
            "debug": payload.get("debug", False),
            "owner_id": payload.get("owner_id", payload.get("userUuid")),
        }
        radius = payload.get("radius_km", payload.get("radius"))
        if radius is not None:
            data["radius_km"] = radius
        return cls(**data)


class JobOutcome(BaseModel):
    """
    Result handed back to the caller. records is always a JSON-ready list.

    failed is only True for a browser launch failure.
    """
    records: List[Dict[str, Any]] = Field(default_factory=list)
    state: JobState = JobState.COMPLETED
    failed: bool = False
    error: Optional[str] = None
    history: List[JobState] = Field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


class JobStateTracker:
    """
    Walks a job through JobState, rejecting transitions the machine forbids.

    Example:
        >>> tracker = JobStateTracker()
        >>> tracker.advance(JobState.SESSION_STARTING)
        >>> tracker.advance(JobState.FAILED)
        >>> tracker.history
        [<JobState.CREATED: 'created'>, <JobState.SESSION_STARTING: 'session_starting'>, <JobState.FAILED: 'failed'>]
    """

    def __init__(self):
        self.state = JobState.CREATED
        self.history: List[JobState] = [JobState.CREATED]

    def advance(self, target: JobState) -> None:
        if not can_transition(self.state, target):
            raise ValueError(f"illegal job transition {self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)

    @property
    def terminal(self) -> bool:
        return self.state in (JobState.COMPLETED, JobState.FAILED)
