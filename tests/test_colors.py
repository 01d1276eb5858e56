"""
Tests for participant colors.
"""

from groupslots.domain.colors import (
    PALETTE,
    brighten,
    build_color_map_from_ids,
    build_participant_color_map,
)
from groupslots.domain.models import ParticipantAvailability


def test_brighten_caps_channels():
    assert brighten("#0ea5e9", 0.35) == "rgb(19, 223, 255)"
    assert brighten("#000000") == "rgb(0, 0, 0)"


def test_participant_colors_follow_position_and_wrap():
    participants = [ParticipantAvailability(id=f"p{index}") for index in range(11)]

    colors = build_participant_color_map(participants)

    assert colors["p0"].primary == PALETTE[0]
    assert colors["p3"].primary == PALETTE[3]
    assert colors["p10"].primary == PALETTE[0]
    assert colors["p0"].highlight == brighten(PALETTE[0], 0.35)


def test_color_map_from_ids_uses_first_seen_order():
    colors = build_color_map_from_ids(["b", "a", "b"])

    assert list(colors) == ["b", "a"]
    assert colors["b"].primary == PALETTE[0]
    assert colors["a"].primary == PALETTE[1]
