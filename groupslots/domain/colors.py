"""
Stable display colors for participants.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence

from .models import ParticipantAvailability

PALETTE = [
    "#0ea5e9",
    "#22c55e",
    "#f97316",
    "#a855f7",
    "#ec4899",
    "#14b8a6",
    "#f59e0b",
    "#ef4444",
    "#6366f1",
    "#10b981",
]

HIGHLIGHT_AMOUNT = 0.35


@dataclass(frozen=True)
class ParticipantColor:
    primary: str
    highlight: str


def brighten(hex_color: str, amount: float = 0.25) -> str:
    """Scale each RGB channel by ``1 + amount``, capped at 255."""
    value = int(hex_color.lstrip("#"), 16)
    channels = [(value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF]
    r, g, b = (min(255, math.floor(channel * (1 + amount) + 0.5)) for channel in channels)
    return f"rgb({r}, {g}, {b})"


def _color_for(index: int) -> ParticipantColor:
    primary = PALETTE[index % len(PALETTE)]
    return ParticipantColor(primary=primary, highlight=brighten(primary, HIGHLIGHT_AMOUNT))


def build_participant_color_map(
    participants: Sequence[ParticipantAvailability]
) -> Dict[str, ParticipantColor]:
    """Assign palette colors by participant position."""
    return {
        participant.id: _color_for(index)
        for index, participant in enumerate(participants)
    }


def build_color_map_from_ids(ids: Iterable[str]) -> Dict[str, ParticipantColor]:
    """Assign palette colors to unique ids in first-seen order."""
    unique_ids = list(dict.fromkeys(ids))
    return {participant_id: _color_for(index) for index, participant_id in enumerate(unique_ids)}
