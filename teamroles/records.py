"""Open record types for Dataverse teams and their security roles."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple

# Source attribute names as they appear in the exported JSON.
TEAM_ID = "teamid"
TEAM_NAME = "name"
TEAM_BUSINESS_UNIT = "_businessunitid_value"
TEAM_CATEGORY = "com_team_category"
TEAM_EMAIL = "emailaddress"
TEAM_DESCRIPTION = "description"
TEAM_ROLES = "teamroles_association"

ROLE_ID = "roleid"
ROLE_NAME = "name"
ROLE_PRIVILEGE = "privilege"
ROLE_ENVIRONMENT = "environment"
ROLE_PARENT_ID = "parentId"


class _MissingType:
    """Marker for attributes absent from the source payload."""

    _instance: Optional["_MissingType"] = None

    def __new__(cls) -> "_MissingType":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _MissingType()


@dataclass
class Record:
    """Known attributes plus a bag of anything else found on the payload.

    Subclasses declare ``ATTRIBUTES`` mapping the source attribute name to the
    dataclass field holding it.  Known fields that were not present on the
    payload hold :data:`MISSING` so the original shape can be reproduced.
    """

    ATTRIBUTES: ClassVar[Mapping[str, str]] = {}

    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Record":
        known: Dict[str, Any] = {}
        extras: Dict[str, Any] = {}
        for key, value in data.items():
            target = cls.ATTRIBUTES.get(key)
            if target is None:
                extras[key] = value
            else:
                known[target] = value
        return cls(extras=extras, **known)

    def get(self, attribute: str, default: Any = None) -> Any:
        """Look up ``attribute`` by its source name."""

        target = self.ATTRIBUTES.get(attribute)
        if target is not None:
            value = getattr(self, target)
            return default if value is MISSING else value
        return self.extras.get(attribute, default)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for attribute, target in self.ATTRIBUTES.items():
            value = getattr(self, target)
            if value is not MISSING:
                payload[attribute] = value
        payload.update(self.extras)
        return payload


@dataclass
class Role(Record):
    """A security role, either embedded on a team or loaded on its own."""

    ATTRIBUTES: ClassVar[Mapping[str, str]] = {
        ROLE_ID: "id",
        ROLE_NAME: "name",
        ROLE_PRIVILEGE: "privilege",
        ROLE_ENVIRONMENT: "environment",
        ROLE_PARENT_ID: "parent_id",
    }

    id: Any = MISSING
    name: Any = MISSING
    privilege: Any = MISSING
    environment: Any = MISSING
    parent_id: Any = MISSING


@dataclass
class Team(Record):
    """A Dataverse team with optional embedded role associations."""

    ATTRIBUTES: ClassVar[Mapping[str, str]] = {
        TEAM_ID: "id",
        TEAM_NAME: "name",
        TEAM_BUSINESS_UNIT: "business_unit",
        TEAM_CATEGORY: "category",
        TEAM_EMAIL: "email",
        TEAM_DESCRIPTION: "description",
    }

    id: Any = MISSING
    name: Any = MISSING
    business_unit: Any = MISSING
    category: Any = MISSING
    email: Any = MISSING
    description: Any = MISSING
    roles: Tuple[Role, ...] = ()
    has_embedded_roles: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Team":
        payload = dict(data)
        embedded = payload.pop(TEAM_ROLES, MISSING)
        team = super().from_mapping(payload)
        if embedded is not MISSING:
            team.has_embedded_roles = True
            team.roles = tuple(parse_roles(embedded))
            if not isinstance(embedded, list):
                # Keep the odd value for the preview, but expose no roles.
                team.extras[TEAM_ROLES] = embedded
        return team

    @property
    def key(self) -> str:
        """Identity used when joining separately loaded roles."""

        value = self.id
        if value is MISSING or value is None:
            return ""
        return str(value)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.has_embedded_roles and TEAM_ROLES not in payload:
            payload[TEAM_ROLES] = [role.to_dict() for role in self.roles]
        return payload


def parse_roles(items: Any) -> List[Role]:
    """Build roles from a list of mappings, skipping non-mapping entries."""

    if not isinstance(items, list):
        return []
    return [Role.from_mapping(item) for item in items if isinstance(item, Mapping)]


def parse_teams(items: Any) -> List[Team]:
    if not isinstance(items, list):
        return []
    return [Team.from_mapping(item) for item in items if isinstance(item, Mapping)]


def teams_to_payload(teams: Sequence[Team]) -> Dict[str, Any]:
    """Rebuild the ``{"value": [...]}`` envelope, extras included."""

    return {"value": [team.to_dict() for team in teams]}


__all__ = [
    "MISSING",
    "Record",
    "Role",
    "Team",
    "parse_roles",
    "parse_teams",
    "teams_to_payload",
]
