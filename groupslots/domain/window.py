"""
Checks submitted slots against a project's allowed window.
"""

from typing import List, Sequence, Set, Tuple

from .exceptions import InvalidSlotError, SlotOutsideWindowError
from .models import AvailabilitySlot, ProjectWindow


def is_slot_within_window(slot: AvailabilitySlot, window: ProjectWindow) -> bool:
    """Check that the slot's date and times fall inside the window."""
    if window.start_date and slot.date < window.start_date:
        return False
    if window.end_date and slot.date > window.end_date:
        return False

    try:
        start = slot.start_minutes()
        end = slot.end_minutes()
    except ValueError:
        return False

    if start < window.start_minutes():
        return False
    if end > window.end_minutes():
        return False
    return True


def validate_slots(
    slots: Sequence[AvailabilitySlot],
    window: ProjectWindow
) -> List[AvailabilitySlot]:
    """
    Validate slots before they are persisted.

    Args:
        slots: Slots as entered by the participant
        window: The project's allowed window

    Returns:
        The slots in their original order with exact duplicates removed

    Raises:
        InvalidSlotError: If a slot is malformed, empty or reversed
        SlotOutsideWindowError: If a slot lies outside the window
    """
    seen: Set[Tuple[str, str, str]] = set()
    validated: List[AvailabilitySlot] = []

    for slot in slots:
        if not slot.is_valid():
            raise InvalidSlotError(f"Invalid slot {slot.label()}: start must be before end")

        if not is_slot_within_window(slot, window):
            raise SlotOutsideWindowError(
                f"Slot {slot.label()} is outside the project window"
            )

        if slot.key() not in seen:
            seen.add(slot.key())
            validated.append(slot)

    return validated
