"""
Mapping between store rows (snake_case columns) and domain models.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..domain.models import (
    ActivityEntry,
    AvailabilitySlot,
    Invitee,
    NewInvitee,
    ParticipantAvailability,
    Project,
    ProjectWindow,
)

logger = logging.getLogger(__name__)


def project_from_row(row: Mapping[str, Any]) -> Project:
    return Project(
        id=str(row["id"]),
        title=row.get("title") or "",
        description=row.get("description"),
        window=ProjectWindow(
            start_date=row.get("start_date"),
            end_date=row.get("end_date"),
            start_time=row.get("start_time"),
            end_time=row.get("end_time"),
        ),
    )


def project_payload(title: str, description: Optional[str], window: ProjectWindow) -> Dict[str, Any]:
    """Build the row written when an organizer creates a project."""
    return {
        "title": title,
        "description": description,
        "start_date": window.start_date,
        "end_date": window.end_date,
        "start_time": window.start_time,
        "end_time": window.end_time,
    }


def invitee_from_row(row: Mapping[str, Any]) -> Invitee:
    return Invitee(
        id=str(row["id"]),
        project_id=str(row["project_id"]),
        name=row.get("name") or "",
        password=row.get("password"),
    )


def invitee_payload(project_id: str, invitee: NewInvitee) -> Dict[str, Any]:
    return {
        "project_id": project_id,
        "name": invitee.name,
        "password": invitee.password or None,
    }


def slots_from_json(raw_slots: Optional[Sequence[Any]]) -> List[AvailabilitySlot]:
    """Parse stored slot objects, skipping entries that are not slot-shaped."""
    slots: List[AvailabilitySlot] = []

    for raw in raw_slots or []:
        try:
            slots.append(AvailabilitySlot.from_dict(raw))
        except (KeyError, TypeError) as exc:
            logger.warning("Skipping malformed slot entry %r: %s", raw, exc)

    return slots


def response_from_row(row: Mapping[str, Any]) -> ParticipantAvailability:
    invitee_id = row.get("invitee_id")
    return ParticipantAvailability(
        id=str(row["id"]),
        slots=slots_from_json(row.get("slots")),
        name=row.get("name") or "",
        project_id=row.get("project_id"),
        invitee_id=str(invitee_id) if invitee_id is not None else None,
    )


def response_payload(
    project_id: str,
    invitee: Invitee,
    slots: Sequence[AvailabilitySlot],
) -> Dict[str, Any]:
    """Build the row written when an invitee saves their availability."""
    return {
        "project_id": project_id,
        "invitee_id": invitee.id,
        "name": invitee.name,
        "slots": [slot.to_dict() for slot in slots],
    }


def activity_payload(
    project_id: str,
    action: str,
    actor_name: Optional[str],
    invitee_id: Optional[str],
    details: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    return {
        "project_id": project_id,
        "invitee_id": invitee_id,
        "actor_name": actor_name,
        "action": action,
        "details": details,
    }


def activity_from_row(row: Mapping[str, Any]) -> ActivityEntry:
    invitee_id = row.get("invitee_id")
    details = row.get("details")
    return ActivityEntry(
        id=str(row["id"]),
        project_id=str(row["project_id"]),
        action=row.get("action") or "",
        actor_name=row.get("actor_name"),
        invitee_id=str(invitee_id) if invitee_id is not None else None,
        details=details if isinstance(details, dict) else {},
        created_at=row.get("created_at"),
    )
