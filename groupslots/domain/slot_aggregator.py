"""
Collapse identical availability slots across participants.
"""

from typing import Dict, List, Sequence, Tuple

from .models import AggregatedSlot, ParticipantAvailability


def aggregate_slots(responses: Sequence[ParticipantAvailability]) -> List[AggregatedSlot]:
    """
    Bucket slots by their literal (date, start, end) triple.

    Slots differing by even one minute stay in separate buckets; range
    merging is the timeline builder's job. Degenerate slots are dropped.

    Returns:
        Aggregated slots sorted by date, then start time
    """
    buckets: Dict[Tuple[str, str, str], List[str]] = {}

    for response in responses:
        for slot in response.slots:
            if not slot.is_valid():
                continue

            participant_ids = buckets.setdefault(slot.key(), [])
            if response.id not in participant_ids:
                participant_ids.append(response.id)

    aggregated = [
        AggregatedSlot(
            date=date,
            start_time=start_time,
            end_time=end_time,
            participant_ids=frozenset(participant_ids),
        )
        for (date, start_time, end_time), participant_ids in buckets.items()
    ]

    return sorted(aggregated, key=lambda slot: (slot.date, slot.start_time, slot.end_time))
