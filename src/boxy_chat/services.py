"""External collaborators: tracking lookup and ticket issuance.

Both are mocked with random data so every transcript looks different; a real
carrier lookup or ticketing backend only has to satisfy the protocols below.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol, Sequence

Clock = Callable[[], datetime]

LOCATIONS: Sequence[str] = (
    "Chicago, IL distribution center",
    "Dallas, TX logistics hub",
    "Jersey City, NJ sorting facility",
    "Portland, OR depot",
    "Atlanta, GA air dock",
    "Los Angeles, CA gateway facility",
)

STATUS_PHRASES: Sequence[str] = (
    "Package processed and in transit",
    "Parcel arrived at regional facility",
    "Shipment departed local hub",
    "Package scanned - out for next leg",
    "Parcel processed - awaiting departure",
)


@dataclass(frozen=True, slots=True)
class TrackingSummary:
    """What the tracking lookup knows about a parcel."""

    status: str
    last_scan: str
    eta: str


class TrackingLookup(Protocol):
    def lookup(self, tracking_number: str, carrier: str) -> TrackingSummary:
        ...


class TicketIssuer(Protocol):
    def issue(self, prefix: str) -> str:
        ...


def format_timestamp(moment: datetime) -> str:
    """Format like ``Mar 3, 4:05 PM``."""
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{moment:%b} {moment.day}, {hour}:{moment:%M} {meridiem}"


class RandomTrackingLookup:
    """Mock lookup that invents a plausible recent scan and ETA."""

    def __init__(
        self,
        *,
        rng: Optional[random.Random] = None,
        clock: Clock = datetime.now,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock

    def lookup(self, tracking_number: str, carrier: str) -> TrackingSummary:
        now = self._clock()
        location = self._rng.choice(LOCATIONS)
        status = self._rng.choice(STATUS_PHRASES)
        hours_ago = self._rng.randint(2, 33)
        eta_days = self._rng.randint(1, 4)
        last_scan = now - timedelta(hours=hours_ago)
        eta = now + timedelta(days=eta_days)
        return TrackingSummary(
            status=status,
            last_scan=f"{format_timestamp(last_scan)} · {location}",
            eta=format_timestamp(eta),
        )


class RandomTicketIssuer:
    """Issues ``PREFIX-######`` identifiers; uniqueness is not guaranteed."""

    def __init__(self, *, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def issue(self, prefix: str) -> str:
        return f"{prefix}-{self._rng.randint(100000, 999999)}"


def _default_tracking() -> TrackingLookup:
    return RandomTrackingLookup()


def _default_tickets() -> TicketIssuer:
    return RandomTicketIssuer()


@dataclass(slots=True)
class SupportServices:
    """Collaborators available to step handlers."""

    tracking: TrackingLookup = field(default_factory=_default_tracking)
    tickets: TicketIssuer = field(default_factory=_default_tickets)
    clock: Clock = datetime.now

    @classmethod
    def seeded(cls, seed: Optional[int], *, clock: Clock = datetime.now) -> "SupportServices":
        rng = random.Random(seed)
        return cls(
            tracking=RandomTrackingLookup(rng=rng, clock=clock),
            tickets=RandomTicketIssuer(rng=rng),
            clock=clock,
        )
