"""
REST client for the hosted project database (PostgREST-style endpoints).
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import requests

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


class RestStoreClient:
    """
    Client for the project tables exposed under ``/rest/v1``.

    Tables used: ``projects``, ``project_invitees``,
    ``availability_responses`` and ``project_activity_logs``.
    """

    REST_PATH = "/rest/v1"

    def __init__(self, base_url: str, api_key: str, timeout: int = 30):
        """
        Initialize the store client.

        Args:
            base_url: Root URL of the hosted project
            api_key: Service or anon key sent as ``apikey`` and bearer token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _url(self, table: str) -> str:
        return f"{self.base_url}{self.REST_PATH}/{table}"

    def _get(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        try:
            response = requests.get(
                self._url(table),
                headers=self.headers,
                params=params,
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise StoreError(f"Failed to read {table}: {e}") from e
        except ValueError as e:
            raise StoreError(f"Invalid JSON response from {table}: {e}") from e

        if not isinstance(data, list):
            raise StoreError(f"Unexpected response from {table}: expected a list of rows")
        return data

    def _post(
        self,
        table: str,
        payload: Union[Dict[str, Any], List[Dict[str, Any]]],
        params: Optional[Dict[str, str]] = None,
        prefer: str = "return=minimal",
    ) -> requests.Response:
        headers = dict(self.headers, Prefer=prefer)
        try:
            response = requests.post(
                self._url(table),
                headers=headers,
                params=params,
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise StoreError(f"Failed to write {table}: {e}") from e
        return response

    def get_project(self, project_id: str) -> Optional[Project]:
        rows = self._get(
            "projects",
            {
                "select": "id,title,description,start_date,end_date,start_time,end_time",
                "id": f"eq.{project_id}",
            },
        )
        if not rows:
            return None

        try:
            return project_from_row(rows[0])
        except (KeyError, ValueError) as e:
            raise StoreError(f"Invalid project row for {project_id}: {e}") from e

    def _returned_rows(self, table: str, response: requests.Response) -> List[Dict[str, Any]]:
        try:
            rows = response.json()
        except ValueError as e:
            raise StoreError(f"Invalid JSON response from {table}: {e}") from e

        if not rows:
            raise StoreError(f"Write to {table} returned no row")
        return rows

    def create_project(
        self,
        title: str,
        description: Optional[str],
        window: ProjectWindow,
    ) -> Project:
        response = self._post(
            "projects",
            project_payload(title, description, window),
            prefer="return=representation",
        )
        rows = self._returned_rows("projects", response)
        logger.info("Created project %s", rows[0].get("id"))
        return project_from_row(rows[0])

    def add_invitees(self, project_id: str, invitees: Sequence[NewInvitee]) -> List[Invitee]:
        """Insert all invitees in a single request."""
        response = self._post(
            "project_invitees",
            [invitee_payload(project_id, invitee) for invitee in invitees],
            prefer="return=representation",
        )
        return [invitee_from_row(row) for row in self._returned_rows("project_invitees", response)]

    def list_invitees(self, project_id: str) -> List[Invitee]:
        rows = self._get(
            "project_invitees",
            {
                "select": "id,project_id,name,password,created_at",
                "project_id": f"eq.{project_id}",
                "order": "created_at.asc",
            },
        )
        return [invitee_from_row(row) for row in rows]

    def list_responses(self, project_id: str) -> List[ParticipantAvailability]:
        rows = self._get(
            "availability_responses",
            {
                "select": "id,project_id,invitee_id,name,slots,created_at",
                "project_id": f"eq.{project_id}",
                "order": "created_at.asc",
            },
        )
        return [response_from_row(row) for row in rows]

    def upsert_response(
        self,
        project_id: str,
        invitee: Invitee,
        slots: Sequence[AvailabilitySlot],
    ) -> ParticipantAvailability:
        """
        Create or replace the invitee's response (one row per invitee).

        Raises:
            StoreError: If the write fails or returns no row
        """
        response = self._post(
            "availability_responses",
            response_payload(project_id, invitee, slots),
            params={"on_conflict": "invitee_id"},
            prefer="resolution=merge-duplicates,return=representation",
        )

        rows = self._returned_rows("availability_responses", response)
        return response_from_row(rows[0])

    def log_activity(
        self,
        project_id: str,
        action: str,
        *,
        actor_name: Optional[str] = None,
        invitee_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._post(
            "project_activity_logs",
            activity_payload(project_id, action, actor_name, invitee_id, details),
        )
        logger.debug("Logged activity '%s' for project %s", action, project_id)

    def list_activity(self, project_id: str, limit: int = 100) -> List[ActivityEntry]:
        """Return the newest activity entries first."""
        rows = self._get(
            "project_activity_logs",
            {
                "select": "id,project_id,invitee_id,actor_name,action,details,created_at",
                "project_id": f"eq.{project_id}",
                "order": "created_at.desc",
                "limit": str(limit),
            },
        )
        return [activity_from_row(row) for row in rows]
