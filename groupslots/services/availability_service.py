"""
Application services for collecting and visualizing group availability.

The service coordinates reads and writes through a store adapter and
delegates aggregation, timeline building and edit math to the domain
layer. This keeps the CLI thin and improves testability by allowing the
store dependency to be replaced via a simple protocol.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..domain.exceptions import (
    AuthenticationError,
    InvalidProjectError,
    InvalidSlotError,
    PermissionDeniedError,
    ProjectNotFoundError,
)
from ..domain.models import (
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
    minutes_to_time,
)
from ..domain.segment_editor import EditBounds, EditMode, apply_edit, replace_slot, segment_to_slot
from ..domain.slot_aggregator import aggregate_slots
from ..domain.timeline_builder import TimelineBuilder
from ..domain.window import validate_slots

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 3
ACTIVITY_LIMIT = 100


class AvailabilityStoreProtocol(Protocol):
    """Protocol describing the store behaviour needed by the service."""

    def get_project(self, project_id: str) -> Optional[Project]:
        """Return the project, or None if it does not exist."""

    def create_project(
        self,
        title: str,
        description: Optional[str],
        window: ProjectWindow,
    ) -> Project:
        """Insert a project row and return it with its generated id."""

    def add_invitees(self, project_id: str, invitees: Sequence[NewInvitee]) -> List[Invitee]:
        """Insert invitee rows and return them with their generated ids."""

    def list_invitees(self, project_id: str) -> List[Invitee]:
        """Return the project's invitees in creation order."""

    def list_responses(self, project_id: str) -> List[ParticipantAvailability]:
        """Return all availability responses of the project."""

    def upsert_response(
        self,
        project_id: str,
        invitee: Invitee,
        slots: Sequence[AvailabilitySlot],
    ) -> ParticipantAvailability:
        """Create or replace the invitee's availability response."""

    def log_activity(
        self,
        project_id: str,
        action: str,
        *,
        actor_name: Optional[str] = None,
        invitee_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Append an entry to the project's activity log."""

    def list_activity(self, project_id: str, limit: int = 100) -> List[ActivityEntry]:
        """Return the project's activity entries, newest first."""


@dataclass(frozen=True)
class ProjectCreation:
    """A freshly created project with its organizer login."""
    project: Project
    invitees: List[Invitee]
    admin: Invitee


class AvailabilityService:
    """
    Orchestrates invitee login, availability submission and timeline reads.

    Dependency inversion toward a protocol makes it easy to plug in the
    REST store or the local JSON store.
    """

    def __init__(
        self,
        store: AvailabilityStoreProtocol,
        timeline_builder: Optional[TimelineBuilder] = None,
    ) -> None:
        self._store = store
        self._timeline_builder = timeline_builder or TimelineBuilder()

    def get_project(self, project_id: str) -> Project:
        """
        Raises:
            ProjectNotFoundError: If the store has no such project
        """
        project = self._store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(f"Project not found: {project_id}")
        return project

    def create_project(
        self,
        title: str,
        invitees: Sequence[NewInvitee],
        *,
        start_date: Optional[str],
        end_date: Optional[str],
        start_minutes: int = 9 * 60,
        end_minutes: int = 18 * 60,
        description: Optional[str] = None,
    ) -> ProjectCreation:
        """
        Create a project, its invitees and the organizer's ``admin`` login.

        The admin invitee gets a random 4-digit passcode.

        Raises:
            InvalidProjectError: If the title, window or invitee list is rejected
        """
        title = title.strip()
        if len(title) < MIN_TITLE_LENGTH:
            raise InvalidProjectError(f"Title must be at least {MIN_TITLE_LENGTH} characters")
        if not start_date or not end_date:
            raise InvalidProjectError("Both start and end date of the project are required")

        try:
            window = ProjectWindow(
                start_date=start_date,
                end_date=end_date,
                start_time=minutes_to_time(start_minutes),
                end_time=minutes_to_time(end_minutes),
            )
        except ValueError as e:
            raise InvalidProjectError(str(e)) from e

        cleaned = _clean_invitees(invitees)
        admin_draft = NewInvitee(name=ADMIN_NAME, password=generate_admin_passcode())

        project = self._store.create_project(title, (description or "").strip() or None, window)
        created = self._store.add_invitees(project.id, [*cleaned, admin_draft])

        admin = next(invitee for invitee in created if invitee.is_admin())
        others = [invitee for invitee in created if not invitee.is_admin()]
        logger.info("Created project %s with %d invitee(s)", project.id, len(others))

        self._log(
            project.id,
            "project_created",
            actor_name="organizer",
            summary="Project created",
            data={"inviteeCount": len(others)},
        )
        return ProjectCreation(project=project, invitees=others, admin=admin)

    def list_invitees(self, project_id: str) -> List[Invitee]:
        self.get_project(project_id)
        return self._store.list_invitees(project_id)

    def list_participants(self, project_id: str) -> List[Invitee]:
        """Invitees without the organizer's admin account."""
        return [invitee for invitee in self.list_invitees(project_id) if not invitee.is_admin()]

    def list_activity(
        self,
        project_id: str,
        viewer: Invitee,
        limit: int = ACTIVITY_LIMIT,
    ) -> List[ActivityEntry]:
        """
        Return the newest activity entries of the project.

        Raises:
            PermissionDeniedError: If the viewer is not the admin invitee
        """
        self.get_project(project_id)
        if not viewer.is_admin() or viewer.project_id != project_id:
            raise PermissionDeniedError("Only the project admin can view the activity log")
        return self._store.list_activity(project_id, limit)

    def list_responses(self, project_id: str) -> List[ParticipantAvailability]:
        self.get_project(project_id)
        return self._store.list_responses(project_id)

    def authenticate(self, project_id: str, name: str, password: Optional[str] = None) -> Invitee:
        """
        Match an invitee by name and password.

        Names are compared exactly after trimming surrounding whitespace.

        Raises:
            AuthenticationError: If no invitee matches
        """
        self.get_project(project_id)
        wanted = name.strip()

        for invitee in self._store.list_invitees(project_id):
            if invitee.name.strip() == wanted and invitee.check_password(password):
                logger.info("Invitee '%s' logged in to project %s", invitee.name, project_id)
                self._log(
                    project_id,
                    "login_success",
                    actor_name=invitee.name,
                    invitee_id=invitee.id,
                    summary="Invitee logged in",
                )
                return invitee

        logger.info("Failed login for '%s' in project %s", wanted, project_id)
        self._log(
            project_id,
            "login_failed",
            actor_name=wanted,
            summary="Login failed",
        )
        raise AuthenticationError(f"Invalid name or password for '{wanted}'")

    def load_timeline(self, project_id: str) -> TimelineByDate:
        """Build the availability timeline from the current responses."""
        responses = self.list_responses(project_id)
        timeline = self._timeline_builder.build(responses)
        logger.debug(
            "Built timeline for project %s: %d responses, %d dates",
            project_id,
            len(responses),
            len(timeline),
        )
        return timeline

    def load_aggregated_slots(self, project_id: str) -> List[AggregatedSlot]:
        return aggregate_slots(self.list_responses(project_id))

    def save_availability(
        self,
        project_id: str,
        invitee: Invitee,
        slots: Sequence[AvailabilitySlot],
    ) -> List[AvailabilitySlot]:
        """
        Validate and persist an invitee's slots.

        Returns:
            The saved slots (duplicates removed)

        Raises:
            InvalidSlotError: If a slot is malformed or outside the project window
        """
        project = self.get_project(project_id)
        validated = validate_slots(slots, project.window)

        self._store.upsert_response(project_id, invitee, validated)
        logger.info(
            "Saved %d slot(s) for '%s' in project %s",
            len(validated),
            invitee.name,
            project_id,
        )
        self._log(
            project_id,
            "availability_saved",
            actor_name=invitee.name,
            invitee_id=invitee.id,
            summary="Availability updated",
            data={"slotCount": len(validated)},
        )
        return validated

    def edit_segment(
        self,
        project_id: str,
        invitee: Invitee,
        date: str,
        segment: TimelineSegment,
        mode: EditMode,
        delta_minutes: float,
        *,
        step: int = 15,
        min_duration: int = 15,
    ) -> List[AvailabilitySlot]:
        """
        Move or resize one of the invitee's slots and save the result.

        The edit is bounded by the project's daily time window.

        Returns:
            The invitee's saved slots after the edit
        """
        project = self.get_project(project_id)
        bounds = EditBounds(
            min_minutes=project.window.start_minutes(),
            max_minutes=project.window.end_minutes(),
            step=step,
            min_duration=min_duration,
        )
        edited = apply_edit(segment, mode, delta_minutes, bounds)

        current = self._find_response(project_id, invitee)
        existing_slots = current.slots if current else []
        original_key = segment_to_slot(date, segment).key()
        if not any(slot.key() == original_key for slot in existing_slots):
            raise InvalidSlotError(
                f"No slot {date} {segment.label()} found for '{invitee.name}'"
            )

        updated = replace_slot(existing_slots, date, segment, edited)

        logger.debug(
            "Edited segment %s -> %s on %s (%s)",
            segment.label(),
            edited.label(),
            date,
            EditMode(mode).value,
        )
        return self.save_availability(project_id, invitee, updated)

    def _find_response(self, project_id: str, invitee: Invitee) -> Optional[ParticipantAvailability]:
        for response in self._store.list_responses(project_id):
            if response.invitee_id == invitee.id:
                return response
        return None

    def _log(
        self,
        project_id: str,
        action: str,
        *,
        actor_name: Optional[str] = None,
        invitee_id: Optional[str] = None,
        summary: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Write an activity entry; a failing log write never fails the caller."""
        details: Dict[str, Any] = {"summary": summary}
        if data:
            details["data"] = data

        try:
            self._store.log_activity(
                project_id,
                action,
                actor_name=actor_name,
                invitee_id=invitee_id,
                details=details,
            )
        except Exception as exc:
            logger.warning("Could not write activity log entry '%s': %s", action, exc)


def generate_admin_passcode() -> str:
    return str(1000 + secrets.randbelow(9000))


def _clean_invitees(invitees: Sequence[NewInvitee]) -> List[NewInvitee]:
    """Trim names and passwords, rejecting empty, reserved and duplicate names."""
    if not invitees:
        raise InvalidProjectError("At least one invitee is required")

    cleaned: List[NewInvitee] = []
    seen = set()
    for invitee in invitees:
        name = invitee.name.strip()
        if not name:
            raise InvalidProjectError("Invitee name must not be empty")
        if name.lower() == ADMIN_NAME:
            raise InvalidProjectError(f"The name '{ADMIN_NAME}' is reserved")
        if name in seen:
            raise InvalidProjectError(f"Invitee '{name}' was added twice")
        seen.add(name)
        cleaned.append(NewInvitee(name=name, password=(invitee.password or "").strip() or None))

    return cleaned
