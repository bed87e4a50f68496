"""Join teams with their roles.

Roles either arrive embedded on each team (single export) or separately,
grouped by owning team id (two sources).  Both cases share one interface so
flattening and export do not care which one produced the aggregates.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .records import MISSING, Role, Team

logger = logging.getLogger(__name__)

RolesByTeam = Mapping[str, Sequence[Role]]


@dataclass(frozen=True)
class Aggregate:
    """A team paired with its resolved, ordered roles."""

    team: Team
    roles: Tuple[Role, ...] = ()


class RolesJoin(ABC):
    """Produce one :class:`Aggregate` per team, in input order."""

    @abstractmethod
    def roles_for(self, team: Team) -> Sequence[Role]:
        """Return the roles owned by ``team``."""

    def join(self, teams: Iterable[Team]) -> List[Aggregate]:
        return [Aggregate(team=team, roles=tuple(self.roles_for(team))) for team in teams]


class EmbeddedRolesJoin(RolesJoin):
    """Roles already live on each team; joining is a projection."""

    def roles_for(self, team: Team) -> Sequence[Role]:
        return team.roles


class SeparateRolesJoin(RolesJoin):
    """Look roles up by team id in a pre-grouped mapping."""

    def __init__(self, roles_by_team: RolesByTeam) -> None:
        self._roles_by_team = roles_by_team

    def roles_for(self, team: Team) -> Sequence[Role]:
        return self._roles_by_team.get(team.key) or ()


def group_roles_by_team(roles: Iterable[Role]) -> Dict[str, List[Role]]:
    """Group roles by their ``parentId`` keeping input order within a group."""

    grouped: Dict[str, List[Role]] = {}
    orphaned = 0
    for role in roles:
        parent = role.parent_id
        if parent is MISSING or parent is None or parent == "":
            orphaned += 1
            continue
        grouped.setdefault(str(parent), []).append(role)
    if orphaned:
        logger.debug("Skipped %d roles without a parent team id", orphaned)
    return grouped


def create_join(
    roles: Optional[Union[RolesByTeam, Sequence[Role]]] = None,
) -> RolesJoin:
    if roles is None:
        return EmbeddedRolesJoin()
    if isinstance(roles, Mapping):
        return SeparateRolesJoin(roles)
    return SeparateRolesJoin(group_roles_by_team(roles))


def join(
    teams: Sequence[Team],
    roles: Optional[Union[RolesByTeam, Sequence[Role]]] = None,
) -> List[Aggregate]:
    """Pair every team with its roles.

    ``roles`` is ``None`` for embedded roles, a mapping of team id to roles,
    or a flat role sequence carrying ``parentId`` references.
    """

    return create_join(roles).join(teams)


__all__ = [
    "Aggregate",
    "EmbeddedRolesJoin",
    "RolesJoin",
    "SeparateRolesJoin",
    "create_join",
    "group_roles_by_team",
    "join",
]
