"""
Local JSON-file store for offline use and tests.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pendulum

from ..domain.exceptions import StoreError
from ..domain.models import (
    ActivityEntry,
    AvailabilitySlot,
    Invitee,
    NewInvitee,
    ParticipantAvailability,
    Project,
    ProjectWindow,
)
from .rows import (
    activity_from_row,
    activity_payload,
    invitee_from_row,
    invitee_payload,
    project_from_row,
    project_payload,
    response_from_row,
    response_payload,
)

logger = logging.getLogger(__name__)

COLLECTIONS = ("projects", "invitees", "responses", "activity_logs")


class JsonFileStore:
    """
    Store that keeps all project data in a single JSON document.

    The document holds one list of rows per collection (``projects``,
    ``invitees``, ``responses``, ``activity_logs``) using the same column
    names as the hosted tables. Every write is saved back to the file.
    """

    def __init__(self, data_file: Path):
        self.data_file = Path(data_file)
        self._data = self._load()

    def _load(self) -> Dict[str, List[Dict[str, Any]]]:
        if not self.data_file.exists():
            logger.info("Data file %s does not exist yet, starting empty", self.data_file)
            return {name: [] for name in COLLECTIONS}

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Could not read data file {self.data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise StoreError(f"Data file {self.data_file} must contain a JSON object")

        for name in COLLECTIONS:
            data.setdefault(name, [])
        return data

    def _save(self) -> None:
        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.data_file, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)
        except OSError as exc:
            raise StoreError(f"Could not write data file {self.data_file}: {exc}") from exc

    @staticmethod
    def _now() -> str:
        # Fixed-width so rows sort by creation time as plain strings
        return pendulum.now("UTC").format("YYYY-MM-DD[T]HH:mm:ss.SSSSSSZ")

    def _rows(self, collection: str, project_id: str) -> List[Dict[str, Any]]:
        rows = [row for row in self._data[collection] if str(row.get("project_id")) == project_id]
        return sorted(rows, key=lambda row: row.get("created_at") or "")

    def get_project(self, project_id: str) -> Optional[Project]:
        for row in self._data["projects"]:
            if str(row.get("id")) == project_id:
                try:
                    return project_from_row(row)
                except (KeyError, ValueError) as exc:
                    raise StoreError(f"Invalid project row for {project_id}: {exc}") from exc
        return None

    def create_project(
        self,
        title: str,
        description: Optional[str],
        window: ProjectWindow,
    ) -> Project:
        row = dict(
            project_payload(title, description, window),
            id=str(uuid.uuid4()),
            created_at=self._now(),
        )
        self._data["projects"].append(row)
        self._save()
        return project_from_row(row)

    def add_invitees(self, project_id: str, invitees: Sequence[NewInvitee]) -> List[Invitee]:
        now = self._now()
        rows = [
            dict(invitee_payload(project_id, invitee), id=str(uuid.uuid4()), created_at=now)
            for invitee in invitees
        ]
        self._data["invitees"].extend(rows)
        self._save()
        return [invitee_from_row(row) for row in rows]

    def list_invitees(self, project_id: str) -> List[Invitee]:
        return [invitee_from_row(row) for row in self._rows("invitees", project_id)]

    def list_responses(self, project_id: str) -> List[ParticipantAvailability]:
        return [response_from_row(row) for row in self._rows("responses", project_id)]

    def upsert_response(
        self,
        project_id: str,
        invitee: Invitee,
        slots: Sequence[AvailabilitySlot],
    ) -> ParticipantAvailability:
        """Replace the invitee's existing response or append a new one."""
        payload = response_payload(project_id, invitee, slots)
        now = self._now()

        for row in self._data["responses"]:
            if row.get("invitee_id") == invitee.id:
                row.update(payload)
                row["updated_at"] = now
                break
        else:
            row = dict(payload, id=str(uuid.uuid4()), created_at=now, updated_at=now)
            self._data["responses"].append(row)

        self._save()
        return response_from_row(row)

    def log_activity(
        self,
        project_id: str,
        action: str,
        *,
        actor_name: Optional[str] = None,
        invitee_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        row = activity_payload(project_id, action, actor_name, invitee_id, details)
        row.update(id=str(uuid.uuid4()), created_at=self._now())
        self._data["activity_logs"].append(row)
        self._save()

    def list_activity(self, project_id: str, limit: int = 100) -> List[ActivityEntry]:
        """Return the newest activity entries first."""
        rows = self._rows("activity_logs", project_id)
        return [activity_from_row(row) for row in reversed(rows)][:limit]
