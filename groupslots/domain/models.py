"""
Domain models for availability slots, timelines and projects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

import pendulum

MINUTES_IN_DAY = 24 * 60

# Reserved invitee name of the organizer account created with each project
ADMIN_NAME = "admin"


def time_to_minutes(value: str) -> int:
    """
    Convert a ``HH:MM`` clock string to minutes since midnight.

    Raises:
        ValueError: If the value is not in ``HH:MM`` form
    """
    hours, sep, minutes = value.strip().partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit():
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to ``HH:MM``, clamped to a single day."""
    clamped = max(0, min(int(minutes), MINUTES_IN_DAY))
    return f"{clamped // 60:02d}:{clamped % 60:02d}"


@dataclass(frozen=True)
class AvailabilitySlot:
    """
    A single date-scoped time range a participant marks as available.

    ``start_time < end_time`` is expected but not enforced here; the
    aggregation code drops slots that violate it.
    """
    date: str
    start_time: str
    end_time: str

    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    def key(self) -> Tuple[str, str, str]:
        """Return the literal (date, start, end) triple used for bucketing."""
        return (self.date, self.start_time, self.end_time)

    def is_valid(self) -> bool:
        """Check that the slot is a non-empty range starting inside the day."""
        try:
            start = self.start_minutes()
            end = self.end_minutes()
        except ValueError:
            return False
        return start < end and start < MINUTES_IN_DAY

    def sort_key(self) -> Tuple[str, str]:
        return (self.date, self.start_time)

    def label(self) -> str:
        return f"{self.date} {self.start_time} - {self.end_time}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AvailabilitySlot":
        """Build a slot from a stored mapping (``date``, ``startTime``, ``endTime``)."""
        return cls(
            date=str(data["date"]),
            start_time=str(data["startTime"]),
            end_time=str(data["endTime"]),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"date": self.date, "startTime": self.start_time, "endTime": self.end_time}


@dataclass
class ParticipantAvailability:
    """
    The availability response of one participant within a project.

    ``id`` is opaque; it is only compared for equality.
    """
    id: str
    slots: List[AvailabilitySlot] = field(default_factory=list)
    name: str = ""
    project_id: Optional[str] = None
    invitee_id: Optional[str] = None

    def display_name(self) -> str:
        return self.name or self.id


@dataclass(frozen=True)
class AggregatedSlot:
    """Identical slots from several participants collapsed into one entry."""
    date: str
    start_time: str
    end_time: str
    participant_ids: FrozenSet[str]

    def label(self) -> str:
        return f"{self.date} {self.start_time} - {self.end_time}"


@dataclass(frozen=True)
class TimelineSegment:
    """
    A maximal time range on one date with a constant set of participants.

    Minutes are measured from midnight; ``end_minutes`` is exclusive.
    """
    start_minutes: int
    end_minutes: int
    participant_ids: FrozenSet[str]

    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    def label(self) -> str:
        return f"{minutes_to_time(self.start_minutes)} - {minutes_to_time(self.end_minutes)}"


TimelineByDate = Dict[str, List[TimelineSegment]]


@dataclass(frozen=True)
class ProjectWindow:
    """
    The allowed date range and daily time range of a project.

    Missing dates leave that side open; missing times default to the
    whole day.

    Invariant: start_date <= end_date and start_time < end_time when set.
    """
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    def __post_init__(self):
        for value in (self.start_date, self.end_date):
            if value is not None:
                try:
                    pendulum.from_format(value, "YYYY-MM-DD")
                except ValueError as exc:
                    raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from exc

        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError(
                f"Start date {self.start_date} must not be after end date {self.end_date}"
            )

        if self.start_minutes() >= self.end_minutes():
            raise ValueError(
                f"Start time {self.start_time} must be before end time {self.end_time}"
            )

    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time) if self.start_time else 0

    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time) if self.end_time else MINUTES_IN_DAY


@dataclass
class Project:
    """A scheduling project with its allowed window."""
    id: str
    title: str
    description: Optional[str] = None
    window: ProjectWindow = field(default_factory=ProjectWindow)


@dataclass
class Invitee:
    """A named participant invited to a project."""
    id: str
    project_id: str
    name: str
    password: Optional[str] = None

    def check_password(self, password: Optional[str]) -> bool:
        """Invitees without a password accept any input."""
        if not self.password:
            return True
        return (password or "").strip() == self.password

    def is_admin(self) -> bool:
        return self.name.strip().lower() == ADMIN_NAME


@dataclass(frozen=True)
class NewInvitee:
    """Name and optional password of an invitee that is about to be created."""
    name: str
    password: Optional[str] = None


@dataclass
class ActivityEntry:
    """One row of a project's activity log."""
    id: str
    project_id: str
    action: str
    actor_name: Optional[str] = None
    invitee_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None

    def summary(self) -> str:
        return str(self.details.get("summary") or "")
