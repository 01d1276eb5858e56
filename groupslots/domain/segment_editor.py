"""
Interactive segment edits (move / resize) and their translation back to slots.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

from .models import (
    MINUTES_IN_DAY,
    AvailabilitySlot,
    TimelineSegment,
    minutes_to_time,
)


class EditMode(str, Enum):
    """How a dragged segment is changed."""
    MOVE = "move"
    RESIZE_START = "resize-start"
    RESIZE_END = "resize-end"


@dataclass(frozen=True)
class EditBounds:
    """
    Limits applied while editing a segment.

    Invariant: min_minutes < max_minutes, step and min_duration are positive.
    """
    min_minutes: int = 0
    max_minutes: int = MINUTES_IN_DAY
    step: int = 15
    min_duration: int = 15

    def __post_init__(self):
        if self.step <= 0:
            raise ValueError(f"step must be greater than zero, got {self.step}")
        if self.min_duration <= 0:
            raise ValueError(f"min_duration must be greater than zero, got {self.min_duration}")
        if not 0 <= self.min_minutes < self.max_minutes <= MINUTES_IN_DAY:
            raise ValueError(
                f"Invalid edit bounds {self.min_minutes}-{self.max_minutes}"
            )


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def _snap(value: float, step: int) -> int:
    return int(math.floor(value / step + 0.5)) * step


def apply_edit(
    segment: TimelineSegment,
    mode: EditMode,
    delta_minutes: float,
    bounds: EditBounds = EditBounds(),
) -> TimelineSegment:
    """
    Move or resize a segment by ``delta_minutes``.

    The candidate boundary is clamped to the bounds, snapped to the step
    and clamped again, so a snap can never push it outside the bounds.

    Args:
        segment: The segment being dragged
        mode: Which edge(s) move
        delta_minutes: Raw drag distance in minutes (may be fractional)
        bounds: Allowed range, snapping step and minimum duration

    Returns:
        A new segment with the same participants
    """
    mode = EditMode(mode)
    start = segment.start_minutes
    end = segment.end_minutes

    if mode is EditMode.MOVE:
        duration = end - start
        min_start = bounds.min_minutes
        max_start = bounds.max_minutes - duration
        candidate = _clamp(start + delta_minutes, min_start, max_start)
        candidate = _clamp(_snap(candidate, bounds.step), min_start, max_start)
        start = int(candidate)
        end = start + duration
    elif mode is EditMode.RESIZE_START:
        max_start = end - bounds.min_duration
        candidate = _clamp(start + delta_minutes, bounds.min_minutes, max_start)
        candidate = _clamp(_snap(candidate, bounds.step), bounds.min_minutes, max_start)
        start = int(candidate)
    else:
        min_end = start + bounds.min_duration
        candidate = _clamp(end + delta_minutes, min_end, bounds.max_minutes)
        candidate = _clamp(_snap(candidate, bounds.step), min_end, bounds.max_minutes)
        end = int(candidate)

    return TimelineSegment(
        start_minutes=start,
        end_minutes=end,
        participant_ids=segment.participant_ids,
    )


def segment_to_slot(date: str, segment: TimelineSegment) -> AvailabilitySlot:
    """Convert a segment back into a slot, clamping to ``[00:00, 24:00]``."""
    return AvailabilitySlot(
        date=date,
        start_time=minutes_to_time(segment.start_minutes),
        end_time=minutes_to_time(segment.end_minutes),
    )


def replace_slot(
    slots: Sequence[AvailabilitySlot],
    date: str,
    original: TimelineSegment,
    edited: TimelineSegment,
) -> List[AvailabilitySlot]:
    """
    Replace every slot matching the original segment's range with the edit.

    Returns:
        The updated slots sorted by date, then start time
    """
    original_slot = segment_to_slot(date, original)
    edited_slot = segment_to_slot(date, edited)

    updated = [
        edited_slot if slot.key() == original_slot.key() else slot
        for slot in slots
    ]

    return sorted(updated, key=AvailabilitySlot.sort_key)
