"""Adapters that supply teams and roles from mock data, files or Dataverse."""

from __future__ import annotations

import copy
import json
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests

from .config import AppConfig, RemoteConfig
from .join import RolesByTeam, group_roles_by_team
from .records import TEAM_ROLES, Role, Team, parse_roles, parse_teams

logger = logging.getLogger(__name__)


class SourceLoadError(ValueError):
    """Raised when teams or roles cannot be loaded from a source."""


MOCK_TEAMS_RESPONSE: Dict[str, Any] = {
    "value": [
        {
            "teamid": "d4d7cd62-e35c-4807-83c1-8651724af010",
            "name": "APAC Sales Squad",
            "_businessunitid_value": "BU-SALES",
            "com_team_category": 1001,
            TEAM_ROLES: [
                {"roleid": "role-001", "name": "Sales Manager"},
                {"roleid": "role-099", "name": "Quote Approver"},
            ],
        },
        {
            "teamid": "3afbfda6-7409-4412-a89f-5dca3a940079",
            "name": "Customer Care Core",
            "_businessunitid_value": "BU-SERVICE",
            "com_team_category": 2003,
            TEAM_ROLES: [{"roleid": "role-201", "name": "Case Agent"}],
        },
        {
            "teamid": "7f74218f-0fd4-4f64-9750-0c2709fcc7af",
            "name": "DataOps Guild",
            "_businessunitid_value": "BU-OPS",
            "com_team_category": 3100,
            TEAM_ROLES: [
                {"roleid": "role-310", "name": "System Customizer"},
                {"roleid": "role-311", "name": "Environment Maker"},
            ],
        },
    ]
}

MOCK_SEPARATE_TEAMS_RESPONSE: Dict[str, Any] = {
    "value": [
        {
            "teamid": "d4d7cd62-e35c-4807-83c1-8651724af010",
            "name": "APAC Sales Squad",
            "_businessunitid_value": "BU-SALES",
            "emailaddress": "apac.sales@contoso.example",
        },
        {
            "teamid": "3afbfda6-7409-4412-a89f-5dca3a940079",
            "name": "Customer Care Core",
            "_businessunitid_value": "BU-SERVICE",
            "emailaddress": "care@contoso.example",
        },
        {
            "teamid": "5b0e2c1a-8d7e-4b55-9a61-0f0d4c3e2b19",
            "name": "Audit Observers",
            "_businessunitid_value": "BU-OPS",
        },
    ]
}

MOCK_SEPARATE_ROLES_RESPONSE: Dict[str, Any] = {
    "value": [
        {
            "parentId": "d4d7cd62-e35c-4807-83c1-8651724af010",
            "roleid": "role-001",
            "name": "Sales Manager",
            "privilege": "Organization",
            "environment": "Production",
        },
        {
            "parentId": "d4d7cd62-e35c-4807-83c1-8651724af010",
            "roleid": "role-099",
            "name": "Quote Approver",
            "privilege": "Business Unit",
            "environment": "Production",
        },
        {
            "parentId": "3afbfda6-7409-4412-a89f-5dca3a940079",
            "roleid": "role-201",
            "name": "Case Agent",
            "privilege": "User",
            "environment": "Sandbox",
        },
    ]
}


@dataclass
class LoadedSource:
    """Teams plus, for the separate variant, roles grouped by team id."""

    teams: List[Team]
    roles_by_team: Optional[RolesByTeam] = None
    label: str = ""


def read_json_content(file_obj: Any) -> Any:
    """Decode JSON from an uploaded file object or a filesystem path."""

    if file_obj is None:
        raise SourceLoadError("No file provided.")

    try:
        if hasattr(file_obj, "read"):
            if hasattr(file_obj, "seek"):
                file_obj.seek(0)
            content = file_obj.read()
            if isinstance(content, bytes):
                content = content.decode("utf-8-sig")
            return json.loads(content)

        path = Path(file_obj)
        with path.open("r", encoding="utf-8-sig") as handle:
            return json.load(handle)
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        raise SourceLoadError(str(exc)) from exc


def teams_from_payload(payload: Any) -> List[Team]:
    """Parse the ``{"value": [...]}`` team envelope.

    A missing ``value`` key reads as no teams; a non-list ``value`` or a
    non-object root is rejected.
    """

    if not isinstance(payload, Mapping):
        raise SourceLoadError("Expected a JSON object with a 'value' list")
    items = payload.get("value")
    if items is None:
        return []
    if not isinstance(items, list):
        raise SourceLoadError("'value' must be a list of teams")
    return parse_teams(items)


def roles_from_payload(payload: Any) -> Dict[str, List[Role]]:
    """Parse roles either as ``{"value": [...]}`` with ``parentId`` on each
    role, or as an object mapping team ids to role lists."""

    if not isinstance(payload, Mapping):
        raise SourceLoadError("Expected a JSON object of roles")
    if "value" in payload:
        items = payload["value"]
        if not isinstance(items, list):
            raise SourceLoadError("'value' must be a list of roles")
        return group_roles_by_team(parse_roles(items))
    return {str(team_id): parse_roles(items) for team_id, items in payload.items()}


def load_teams_file(file_obj: Any) -> List[Team]:
    teams = teams_from_payload(read_json_content(file_obj))
    logger.info("Loaded %d teams from %s", len(teams), _describe(file_obj))
    return teams


def load_roles_file(file_obj: Any) -> Dict[str, List[Role]]:
    roles = roles_from_payload(read_json_content(file_obj))
    logger.info(
        "Loaded roles for %d teams from %s", len(roles), _describe(file_obj)
    )
    return roles


def load_mock(variant: str = "embedded") -> LoadedSource:
    if variant == "separate":
        teams = teams_from_payload(copy.deepcopy(MOCK_SEPARATE_TEAMS_RESPONSE))
        roles = roles_from_payload(copy.deepcopy(MOCK_SEPARATE_ROLES_RESPONSE))
        return LoadedSource(teams=teams, roles_by_team=roles, label="mock")
    teams = teams_from_payload(copy.deepcopy(MOCK_TEAMS_RESPONSE))
    return LoadedSource(teams=teams, label="mock")


class DataverseClient:
    """Fetch teams and their roles from the Dataverse Web API.

    The team request is a hard dependency; role requests are issued one per
    team on a bounded thread pool and a failure only empties that team's
    roles.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        max_workers: int = 4,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url:
            raise ValueError("A base URL is required for the Dataverse client")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_workers = max(1, int(max_workers))
        self._session = session or requests.Session()
        self._headers = {
            "Accept": "application/json",
            "OData-MaxVersion": "4.0",
            "OData-Version": "4.0",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_config(cls, remote: RemoteConfig, session: Optional[requests.Session] = None) -> "DataverseClient":
        token = os.environ.get(remote.token_env) if remote.token_env else None
        if not token:
            logger.warning("No access token found in $%s; sending unauthenticated requests", remote.token_env)
        return cls(
            remote.base_url or "",
            token=token,
            timeout=remote.timeout,
            max_workers=remote.max_workers,
            session=session,
        )

    def fetch_teams(self, select: Optional[Sequence[str]] = None) -> List[Team]:
        url = f"{self.base_url}/teams"
        params = {"$select": ",".join(select)} if select else None
        logger.info("Fetching teams from %s", url)
        try:
            response = self._session.get(url, headers=self._headers, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise SourceLoadError(f"Team request failed: {exc}") from exc
        if not response.ok:
            raise SourceLoadError(f"Team request failed with status {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise SourceLoadError(f"Team response is not valid JSON: {exc}") from exc
        return teams_from_payload(payload)

    def fetch_team_roles(self, team_id: str) -> List[Role]:
        url = f"{self.base_url}/teams({team_id})/teamroles_association"
        try:
            response = self._session.get(url, headers=self._headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Role request for team %s failed: %s", team_id, exc)
            return []
        if not response.ok:
            logger.warning("Role request for team %s returned status %s", team_id, response.status_code)
            return []
        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Role response for team %s is not valid JSON: %s", team_id, exc)
            return []
        items = payload.get("value") if isinstance(payload, Mapping) else None
        roles = parse_roles(items)
        logger.debug("Team %s has %d roles", team_id, len(roles))
        return roles

    def fetch_roles_by_team(self, teams: Sequence[Team]) -> Dict[str, List[Role]]:
        team_ids: List[str] = []
        for team in teams:
            if team.key and team.key not in team_ids:
                team_ids.append(team.key)
        if not team_ids:
            return {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(self.fetch_team_roles, team_ids))
        return dict(zip(team_ids, results))


def load_remote(remote: RemoteConfig, session: Optional[requests.Session] = None) -> LoadedSource:
    client = DataverseClient.from_config(remote, session=session)
    teams = client.fetch_teams(remote.team_select)
    roles = client.fetch_roles_by_team(teams)
    return LoadedSource(teams=teams, roles_by_team=roles, label="remote")


def load_source(config: AppConfig, session: Optional[requests.Session] = None) -> LoadedSource:
    """Load teams (and roles) according to ``config.source``."""

    kind = config.source.kind
    if kind == "mock":
        return load_mock(config.variant)

    if kind == "json":
        if config.source.teams is None:
            raise SourceLoadError("source.teams must point to a JSON file")
        teams = load_teams_file(config.source.teams)
        roles: Optional[RolesByTeam] = None
        if config.variant == "separate":
            roles = load_roles_file(config.source.roles) if config.source.roles else {}
        return LoadedSource(teams=teams, roles_by_team=roles, label="json")

    if kind == "remote":
        return load_remote(config.remote, session=session)

    raise SourceLoadError(f"Unknown source kind '{kind}'")


def _describe(file_obj: Any) -> str:
    name = getattr(file_obj, "name", None)
    return str(name if name is not None else file_obj)


__all__ = [
    "DataverseClient",
    "LoadedSource",
    "MOCK_SEPARATE_ROLES_RESPONSE",
    "MOCK_SEPARATE_TEAMS_RESPONSE",
    "MOCK_TEAMS_RESPONSE",
    "SourceLoadError",
    "load_mock",
    "load_remote",
    "load_roles_file",
    "load_source",
    "load_teams_file",
    "read_json_content",
    "roles_from_payload",
    "teams_from_payload",
]
