"""
Tests for the AvailabilityService orchestration layer.
"""

from typing import Dict, List

import pytest

from groupslots.domain.exceptions import (
    AuthenticationError,
    InvalidProjectError,
    InvalidSlotError,
    PermissionDeniedError,
    ProjectNotFoundError,
    SlotOutsideWindowError,
)
from groupslots.domain.models import (
    ActivityEntry,
    AvailabilitySlot,
    Invitee,
    NewInvitee,
    ParticipantAvailability,
    Project,
    ProjectWindow,
    TimelineSegment,
)
from groupslots.domain.segment_editor import EditMode
from groupslots.services.availability_service import AvailabilityService


class StubStore:
    """Minimal in-memory store matching AvailabilityStoreProtocol."""

    def __init__(self, projects, invitees, responses=None):
        self.projects: Dict[str, Project] = {project.id: project for project in projects}
        self.invitees: List[Invitee] = list(invitees)
        self.responses: List[ParticipantAvailability] = list(responses or [])
        self.activity: List[Dict] = []
        self.upserts = 0

    def get_project(self, project_id):
        return self.projects.get(project_id)

    def create_project(self, title, description, window):
        project = Project(id=f"proj-{len(self.projects) + 1}", title=title, description=description, window=window)
        self.projects[project.id] = project
        return project

    def add_invitees(self, project_id, invitees):
        created = [
            Invitee(id=f"i-{len(self.invitees) + n}", project_id=project_id, name=draft.name, password=draft.password)
            for n, draft in enumerate(invitees)
        ]
        self.invitees.extend(created)
        return created

    def list_invitees(self, project_id):
        return [invitee for invitee in self.invitees if invitee.project_id == project_id]

    def list_responses(self, project_id):
        return [response for response in self.responses if response.project_id == project_id]

    def upsert_response(self, project_id, invitee, slots):
        self.upserts += 1
        for response in self.responses:
            if response.invitee_id == invitee.id:
                response.slots = list(slots)
                return response

        response = ParticipantAvailability(
            id=f"r-{invitee.id}",
            slots=list(slots),
            name=invitee.name,
            project_id=project_id,
            invitee_id=invitee.id,
        )
        self.responses.append(response)
        return response

    def log_activity(self, project_id, action, *, actor_name=None, invitee_id=None, details=None):
        self.activity.append(
            {"project_id": project_id, "action": action, "actor_name": actor_name, "details": details}
        )

    def list_activity(self, project_id, limit=100):
        entries = [
            ActivityEntry(id=str(n), project_id=row["project_id"], action=row["action"],
                          actor_name=row["actor_name"], details=row["details"] or {})
            for n, row in enumerate(self.activity)
            if row["project_id"] == project_id
        ]
        return list(reversed(entries))[:limit]


class FailingLogStore(StubStore):
    def log_activity(self, *args, **kwargs):
        raise RuntimeError("log table unavailable")


SARA = Invitee(id="i-sara", project_id="proj", name="Sara", password="secret")
OMID = Invitee(id="i-omid", project_id="proj", name="Omid")
ADMIN = Invitee(id="i-admin", project_id="proj", name="admin", password="4821")


def _project():
    return Project(
        id="proj",
        title="Kickoff",
        window=ProjectWindow(
            start_date="2024-03-10",
            end_date="2024-03-12",
            start_time="09:00",
            end_time="17:00",
        ),
    )


def _build_service(responses=None, store_class=StubStore):
    store = store_class(projects=[_project()], invitees=[SARA, OMID, ADMIN], responses=responses)
    return AvailabilityService(store=store), store


def _response(invitee, *slots):
    return ParticipantAvailability(
        id=f"r-{invitee.id}",
        slots=[AvailabilitySlot(date, start, end) for date, start, end in slots],
        name=invitee.name,
        project_id="proj",
        invitee_id=invitee.id,
    )


class TestAuthenticate:
    """Tests for name + password login."""

    def test_matching_name_and_password(self):
        service, store = _build_service()

        assert service.authenticate("proj", " Sara ", "secret") == SARA
        assert store.activity[-1]["action"] == "login_success"

    def test_wrong_password_fails(self):
        service, store = _build_service()

        with pytest.raises(AuthenticationError):
            service.authenticate("proj", "Sara", "nope")
        assert store.activity[-1]["action"] == "login_failed"

    def test_name_is_case_sensitive(self):
        service, _ = _build_service()

        with pytest.raises(AuthenticationError):
            service.authenticate("proj", "sara", "secret")

    def test_invitee_without_password(self):
        service, _ = _build_service()

        assert service.authenticate("proj", "Omid") == OMID

    def test_unknown_project(self):
        service, _ = _build_service()

        with pytest.raises(ProjectNotFoundError):
            service.authenticate("missing", "Sara", "secret")

    def test_activity_log_failure_is_not_fatal(self):
        service, _ = _build_service(store_class=FailingLogStore)

        assert service.authenticate("proj", "Omid") == OMID


class TestReadViews:
    """Tests for the timeline and aggregated slot views."""

    def test_load_timeline(self):
        service, _ = _build_service(
            responses=[
                _response(SARA, ("2024-03-10", "09:00", "10:00")),
                _response(OMID, ("2024-03-10", "09:30", "10:30")),
            ]
        )

        timeline = service.load_timeline("proj")

        assert [
            (segment.start_minutes, segment.end_minutes, set(segment.participant_ids))
            for segment in timeline["2024-03-10"]
        ] == [
            (540, 570, {"r-i-sara"}),
            (570, 600, {"r-i-sara", "r-i-omid"}),
            (600, 630, {"r-i-omid"}),
        ]

    def test_load_aggregated_slots(self):
        service, _ = _build_service(
            responses=[
                _response(SARA, ("2024-03-11", "14:00", "15:00")),
                _response(OMID, ("2024-03-11", "14:00", "15:00")),
            ]
        )

        aggregated = service.load_aggregated_slots("proj")

        assert len(aggregated) == 1
        assert aggregated[0].participant_ids == {"r-i-sara", "r-i-omid"}

    def test_unknown_project(self):
        service, _ = _build_service()

        with pytest.raises(ProjectNotFoundError):
            service.load_timeline("missing")


class TestSaveAvailability:
    """Tests for saving slots."""

    def test_saves_validated_slots_and_logs(self):
        service, store = _build_service()
        slots = [
            AvailabilitySlot("2024-03-10", "09:00", "10:00"),
            AvailabilitySlot("2024-03-10", "09:00", "10:00"),
        ]

        saved = service.save_availability("proj", SARA, slots)

        assert saved == slots[:1]
        assert store.responses[0].slots == slots[:1]
        assert store.activity[-1]["action"] == "availability_saved"
        assert store.activity[-1]["details"] == {
            "summary": "Availability updated",
            "data": {"slotCount": 1},
        }

    def test_slot_outside_window_is_not_saved(self):
        service, store = _build_service()

        with pytest.raises(SlotOutsideWindowError):
            service.save_availability("proj", SARA, [AvailabilitySlot("2024-03-10", "08:00", "10:00")])

        assert store.upserts == 0


class TestEditSegment:
    """Tests for segment edits routed back into slots."""

    def test_move_rewrites_slot(self):
        service, store = _build_service(
            responses=[_response(SARA, ("2024-03-10", "09:00", "10:00"), ("2024-03-11", "09:00", "10:00"))]
        )
        segment = TimelineSegment(540, 600, frozenset({"r-i-sara"}))

        saved = service.edit_segment("proj", SARA, "2024-03-10", segment, EditMode.MOVE, 30)

        assert saved == [
            AvailabilitySlot("2024-03-10", "09:30", "10:30"),
            AvailabilitySlot("2024-03-11", "09:00", "10:00"),
        ]
        assert store.responses[0].slots == saved

    def test_edit_bounded_by_project_window(self):
        service, _ = _build_service(responses=[_response(SARA, ("2024-03-10", "16:00", "17:00"))])
        segment = TimelineSegment(960, 1020, frozenset({"r-i-sara"}))

        saved = service.edit_segment("proj", SARA, "2024-03-10", segment, EditMode.RESIZE_END, 60)

        assert saved == [AvailabilitySlot("2024-03-10", "16:00", "17:00")]

    def test_custom_step(self):
        service, _ = _build_service(responses=[_response(SARA, ("2024-03-10", "10:00", "11:00"))])
        segment = TimelineSegment(600, 660, frozenset({"r-i-sara"}))

        saved = service.edit_segment(
            "proj", SARA, "2024-03-10", segment, EditMode.RESIZE_START, -20, step=30, min_duration=30
        )

        assert saved == [AvailabilitySlot("2024-03-10", "09:30", "11:00")]

    def test_missing_slot_raises(self):
        service, store = _build_service(responses=[_response(SARA, ("2024-03-10", "09:00", "10:00"))])
        segment = TimelineSegment(600, 660, frozenset({"r-i-sara"}))

        with pytest.raises(InvalidSlotError, match="No slot"):
            service.edit_segment("proj", SARA, "2024-03-10", segment, EditMode.MOVE, 15)

        assert store.upserts == 0


class TestCreateProject:
    """Tests for project creation by an organizer."""

    def _create(self, service, **overrides):
        kwargs = dict(
            title="  Kickoff  ",
            invitees=[NewInvitee(" Sara ", " secret "), NewInvitee("Omid", "")],
            start_date="2024-03-10",
            end_date="2024-03-12",
            start_minutes=9 * 60,
            end_minutes=17 * 60 + 30,
        )
        kwargs.update(overrides)
        title = kwargs.pop("title")
        invitees = kwargs.pop("invitees")
        return service.create_project(title, invitees, **kwargs)

    def test_creates_project_invitees_and_admin(self):
        service, store = _build_service()

        created = self._create(service)

        project = store.projects[created.project.id]
        assert project.title == "Kickoff"
        assert project.window == ProjectWindow("2024-03-10", "2024-03-12", "09:00", "17:30")
        assert [(i.name, i.password) for i in created.invitees] == [("Sara", "secret"), ("Omid", None)]
        assert created.admin.name == "admin"
        assert len(created.admin.password) == 4
        assert created.admin.password.isdigit()
        assert 1000 <= int(created.admin.password) <= 9999
        assert store.activity[-1]["action"] == "project_created"
        assert store.activity[-1]["actor_name"] == "organizer"
        assert store.activity[-1]["details"]["data"] == {"inviteeCount": 2}

    def test_admin_can_log_in_to_new_project(self):
        service, _ = _build_service()
        created = self._create(service)

        admin = service.authenticate(created.project.id, "admin", created.admin.password)

        assert admin.is_admin()

    def test_title_too_short(self):
        service, store = _build_service()

        with pytest.raises(InvalidProjectError, match="at least 3 characters"):
            self._create(service, title=" ab ")
        assert len(store.projects) == 1

    def test_dates_required(self):
        service, _ = _build_service()

        with pytest.raises(InvalidProjectError, match="start and end date"):
            self._create(service, end_date=None)

    def test_reversed_time_window(self):
        service, _ = _build_service()

        with pytest.raises(InvalidProjectError, match="must be before end time"):
            self._create(service, start_minutes=600, end_minutes=540)

    def test_at_least_one_invitee(self):
        service, _ = _build_service()

        with pytest.raises(InvalidProjectError, match="At least one invitee"):
            self._create(service, invitees=[])

    def test_admin_name_is_reserved(self):
        service, _ = _build_service()

        with pytest.raises(InvalidProjectError, match="reserved"):
            self._create(service, invitees=[NewInvitee("Admin")])

    def test_duplicate_names_after_trimming(self):
        service, store = _build_service()

        with pytest.raises(InvalidProjectError, match="added twice"):
            self._create(service, invitees=[NewInvitee("Sara"), NewInvitee(" Sara")])
        assert len(store.projects) == 1

    def test_empty_invitee_name(self):
        service, _ = _build_service()

        with pytest.raises(InvalidProjectError, match="must not be empty"):
            self._create(service, invitees=[NewInvitee("   ")])


class TestParticipantsAndActivity:
    """Tests for the participant list and the admin activity view."""

    def test_participants_exclude_admin(self):
        service, _ = _build_service()

        assert service.list_participants("proj") == [SARA, OMID]
        assert ADMIN in service.list_invitees("proj")

    def test_admin_reads_activity_newest_first(self):
        service, _ = _build_service()
        service.authenticate("proj", "Sara", "secret")
        service.authenticate("proj", "Omid")

        entries = service.list_activity("proj", ADMIN)

        assert [entry.action for entry in entries] == ["login_success", "login_success"]
        assert [entry.actor_name for entry in entries] == ["Omid", "Sara"]

    def test_non_admin_cannot_read_activity(self):
        service, _ = _build_service()

        with pytest.raises(PermissionDeniedError):
            service.list_activity("proj", SARA)

    def test_admin_of_other_project_cannot_read_activity(self):
        service, _ = _build_service()
        other_admin = Invitee(id="x", project_id="other", name="admin", password="1111")

        with pytest.raises(PermissionDeniedError):
            service.list_activity("proj", other_admin)
