"""
Core logic for building per-date availability timelines.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O).
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .models import (
    MINUTES_IN_DAY,
    AvailabilitySlot,
    ParticipantAvailability,
    TimelineByDate,
    TimelineSegment,
)

START = "start"
END = "end"


@dataclass(frozen=True)
class _Event:
    minutes: int
    type: str
    participant_id: str

    def sort_key(self):
        # End events sort before start events at the same minute so that
        # back-to-back slots never produce a zero-width shared segment.
        return (self.minutes, 0 if self.type == END else 1)


class TimelineBuilder:
    """
    Builds the availability timeline of a project with a sweep line.

    Algorithm:
    1. Merge each participant's valid slots per date into disjoint ranges
    2. Turn every range into a start and an end event
    3. Sort each date's events by minute, end events first on ties
    4. Sweep the events while tracking the set of active participants
    5. Emit a segment whenever the boundary moves and someone is active
    """

    def build(self, responses: Sequence[ParticipantAvailability]) -> TimelineByDate:
        """
        Build the timeline for all participants.

        Args:
            responses: Availability records, in any order

        Returns:
            Mapping of date to chronological, non-overlapping segments
        """
        events_by_date = self._collect_events(responses)

        timeline: TimelineByDate = {}
        for date in sorted(events_by_date):
            segments = self._sweep(events_by_date[date])
            if segments:
                timeline[date] = segments

        return timeline

    def _collect_events(
        self,
        responses: Sequence[ParticipantAvailability]
    ) -> Dict[str, List[_Event]]:
        """Turn each participant's merged ranges into start/end events grouped by date."""
        ranges_by_participant: Dict[str, Dict[str, List[Tuple[int, int]]]] = {}

        for response in responses:
            ranges_by_date = ranges_by_participant.setdefault(response.id, {})
            for slot in response.slots:
                bounds = self._slot_bounds(slot)
                if bounds is not None:
                    ranges_by_date.setdefault(slot.date, []).append(bounds)

        events_by_date: Dict[str, List[_Event]] = {}

        for participant_id, ranges_by_date in ranges_by_participant.items():
            for date, ranges in ranges_by_date.items():
                events = events_by_date.setdefault(date, [])
                for start, end in self._merge_ranges(ranges):
                    events.append(_Event(minutes=start, type=START, participant_id=participant_id))
                    events.append(_Event(minutes=end, type=END, participant_id=participant_id))

        return events_by_date

    @staticmethod
    def _merge_ranges(ranges: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
        """
        Merge one participant's overlapping or adjacent ranges on a date.

        The sweep tracks a set of participants, so a participant's own
        overlapping slots must be merged first or the earliest end event
        would drop them while another of their slots is still open.

        Example: [09:00-10:00, 09:30-11:00, 11:00-12:00] -> [09:00-12:00]
        """
        ordered = sorted(ranges)
        merged: List[Tuple[int, int]] = [ordered[0]]

        for start, end in ordered[1:]:
            last_start, last_end = merged[-1]
            if start <= last_end:
                merged[-1] = (last_start, max(last_end, end))
            else:
                merged.append((start, end))

        return merged

    @staticmethod
    def _slot_bounds(slot: AvailabilitySlot) -> Optional[Tuple[int, int]]:
        """
        Return the slot's (start, end) minutes, or None if it is degenerate.

        Slots never span midnight, so the end is clamped to the day boundary.
        """
        try:
            start = slot.start_minutes()
            end = slot.end_minutes()
        except ValueError:
            return None

        if end <= start or start >= MINUTES_IN_DAY:
            return None

        return max(0, start), min(end, MINUTES_IN_DAY)

    @staticmethod
    def _sweep(events: List[_Event]) -> List[TimelineSegment]:
        """
        Sweep sorted events, emitting one segment per constant active set.

        The active set is a set rather than a counter, so repeated starts
        or ends of the same participant are idempotent.
        """
        ordered = sorted(events, key=_Event.sort_key)
        active: Set[str] = set()
        segments: List[TimelineSegment] = []

        previous = ordered[0].minutes if ordered else 0

        for event in ordered:
            if active and event.minutes > previous:
                segments.append(
                    TimelineSegment(
                        start_minutes=previous,
                        end_minutes=event.minutes,
                        participant_ids=frozenset(active),
                    )
                )

            if event.type == START:
                active.add(event.participant_id)
            else:
                active.discard(event.participant_id)

            previous = event.minutes

        return segments


def build_timeline(responses: Sequence[ParticipantAvailability]) -> TimelineByDate:
    """Build the per-date timeline with a default ``TimelineBuilder``."""
    return TimelineBuilder().build(responses)
