"""
Sky events calendar: meteor showers, eclipses, oppositions and other dated
happenings worth pointing the camera at.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, List, Optional


class SkyEventType(Enum):
    METEOR_SHOWER = "meteor-shower"
    ECLIPSE = "eclipse"
    OPPOSITION = "opposition"
    CONJUNCTION = "conjunction"
    SATELLITE_PASS = "satellite-pass"


@dataclass(frozen=True)
class SkyEvent:
    id: str
    title: str
    date: datetime          # UTC
    type: SkyEventType
    description: str

    def is_upcoming(self, now: datetime) -> bool:
        return self.date >= _as_utc(now)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


SKY_EVENTS: List[SkyEvent] = [
    SkyEvent(
        id="perseids-2024",
        title="Perseid Meteor Shower Peak",
        date=datetime(2024, 8, 12, 22, 0, tzinfo=timezone.utc),
        type=SkyEventType.METEOR_SHOWER,
        description="One of the most popular meteor showers, known for fast and bright meteors.",
    ),
    SkyEvent(
        id="lunar-eclipse-sept-2024",
        title="Partial Lunar Eclipse",
        date=datetime(2024, 9, 18, 2, 44, tzinfo=timezone.utc),
        type=SkyEventType.ECLIPSE,
        description="Visible from Europe, Africa, North and South America.",
    ),
    SkyEvent(
        id="jupiter-opposition-2024",
        title="Jupiter at Opposition",
        date=datetime(2024, 12, 7, 0, 0, tzinfo=timezone.utc),
        type=SkyEventType.OPPOSITION,
        description="Jupiter will be at its closest and brightest, visible all night long.",
    ),
    SkyEvent(
        id="geminids-2024",
        title="Geminid Meteor Shower",
        date=datetime(2024, 12, 14, 20, 0, tzinfo=timezone.utc),
        type=SkyEventType.METEOR_SHOWER,
        description="The King of meteor showers, often producing 120 multicolored meteors per hour.",
    ),
]


def upcoming_events(now: datetime,
                    within_days: Optional[float] = None,
                    limit: Optional[int] = None,
                    events: Iterable[SkyEvent] = SKY_EVENTS) -> List[SkyEvent]:
    """
    Events at or after `now`, soonest first.

    Args:
        now: Reference time (naive values are UTC)
        within_days: Only events starting within this many days
        limit: Maximum number of events returned
        events: Calendar to search

    Returns:
        List of SkyEvent
    """
    now = _as_utc(now)
    result = [event for event in events if event.is_upcoming(now)]
    if within_days is not None:
        horizon = now + timedelta(days=within_days)
        result = [event for event in result if event.date <= horizon]

    result.sort(key=lambda event: event.date)
    if limit is not None:
        result = result[:limit]
    return result


def find_event(event_id: str, events: Iterable[SkyEvent] = SKY_EVENTS) -> SkyEvent:
    """
    Raises:
        KeyError: Unknown id
    """
    for event in events:
        if event.id == event_id:
            return event
    raise KeyError(f"Unknown event: {event_id}")
