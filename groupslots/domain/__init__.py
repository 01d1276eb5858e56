"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    ADMIN_NAME,
    ActivityEntry,
    AggregatedSlot,
    AvailabilitySlot,
    Invitee,
    NewInvitee,
    ParticipantAvailability,
    Project,
    ProjectWindow,
    TimelineByDate,
    TimelineSegment,
)
from .segment_editor import EditBounds, EditMode, apply_edit, replace_slot, segment_to_slot
from .slot_aggregator import aggregate_slots
from .timeline_builder import TimelineBuilder, build_timeline
from .window import is_slot_within_window, validate_slots

__all__ = [
    "ADMIN_NAME",
    "ActivityEntry",
    "AggregatedSlot",
    "AvailabilitySlot",
    "Invitee",
    "NewInvitee",
    "ParticipantAvailability",
    "Project",
    "ProjectWindow",
    "TimelineByDate",
    "TimelineSegment",
    "EditBounds",
    "EditMode",
    "apply_edit",
    "replace_slot",
    "segment_to_slot",
    "aggregate_slots",
    "TimelineBuilder",
    "build_timeline",
    "is_slot_within_window",
    "validate_slots",
]
