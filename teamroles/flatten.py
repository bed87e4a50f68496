"""Flatten team/role aggregates into spreadsheet rows."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .join import Aggregate
from .records import (
    ROLE_ENVIRONMENT,
    ROLE_ID,
    ROLE_NAME,
    ROLE_PRIVILEGE,
    TEAM_BUSINESS_UNIT,
    TEAM_CATEGORY,
    TEAM_EMAIL,
    TEAM_ID,
    TEAM_NAME,
    Record,
)

TEAM = "team"
ROLE = "role"

EMPTY_PLACEHOLDER = "-"

FlatRow = Dict[str, str]


@dataclass(frozen=True)
class Column:
    """One output column bound to a single source attribute."""

    key: str
    label: str
    source: str
    attribute: str


@dataclass(frozen=True)
class TableLayout:
    """Ordered columns of the exported table."""

    name: str
    columns: Sequence[Column]

    @property
    def header(self) -> List[str]:
        return [column.label for column in self.columns]

    @property
    def keys(self) -> List[str]:
        return [column.key for column in self.columns]

    @property
    def team_columns(self) -> List[Column]:
        return [column for column in self.columns if column.source == TEAM]

    @property
    def role_columns(self) -> List[Column]:
        return [column for column in self.columns if column.source == ROLE]


EMBEDDED_LAYOUT = TableLayout(
    name="embedded",
    columns=(
        Column("teamName", "Team Name", TEAM, TEAM_NAME),
        Column("teamId", "Team ID", TEAM, TEAM_ID),
        Column("bu", "Business Unit", TEAM, TEAM_BUSINESS_UNIT),
        Column("category", "Category", TEAM, TEAM_CATEGORY),
        Column("roleId", "Role ID", ROLE, ROLE_ID),
        Column("roleName", "Role Name", ROLE, ROLE_NAME),
    ),
)

SEPARATE_LAYOUT = TableLayout(
    name="separate",
    columns=(
        Column("teamName", "Team Name", TEAM, TEAM_NAME),
        Column("teamId", "Team ID", TEAM, TEAM_ID),
        Column("bu", "Business Unit", TEAM, TEAM_BUSINESS_UNIT),
        Column("email", "Email", TEAM, TEAM_EMAIL),
        Column("roleName", "Role Name", ROLE, ROLE_NAME),
        Column("privilege", "Privilege", ROLE, ROLE_PRIVILEGE),
        Column("environment", "Environment", ROLE, ROLE_ENVIRONMENT),
    ),
)

LAYOUTS = {layout.name: layout for layout in (EMBEDDED_LAYOUT, SEPARATE_LAYOUT)}


def get_layout(name: str) -> TableLayout:
    try:
        return LAYOUTS[name]
    except KeyError:
        raise ValueError(
            f"Unknown table layout '{name}'; expected one of {', '.join(sorted(LAYOUTS))}"
        ) from None


def format_cell(value: Any) -> str:
    """Render a source value as cell text.

    Only strings and numbers produce text; everything else, booleans and NaN
    included, renders as an empty cell.
    """

    if isinstance(value, str):
        return value
    if isinstance(value, (bool, np.bool_)):
        return ""
    if isinstance(value, (int, np.integer)):
        return str(value)
    if isinstance(value, (float, np.floating)):
        if math.isnan(value):
            return ""
        return str(value)
    return ""


def _extract(record: Optional[Record], column: Column) -> str:
    if record is None:
        return ""
    return format_cell(record.get(column.attribute))


def flatten(
    aggregates: Iterable[Aggregate],
    layout: TableLayout = EMBEDDED_LAYOUT,
) -> List[FlatRow]:
    """Expand each aggregate into one row per role.

    A team without roles still yields exactly one row with blank role
    columns.
    """

    rows: List[FlatRow] = []
    team_columns = layout.team_columns
    role_columns = layout.role_columns
    for aggregate in aggregates:
        team_values = {column.key: _extract(aggregate.team, column) for column in team_columns}
        roles = aggregate.roles or (None,)
        for role in roles:
            role_values = {column.key: _extract(role, column) for column in role_columns}
            rows.append({key: team_values.get(key, role_values.get(key, "")) for key in layout.keys})
    return rows


def rows_to_frame(rows: Sequence[FlatRow], layout: TableLayout = EMBEDDED_LAYOUT) -> pd.DataFrame:
    """Tabulate rows with the layout's labels as column names."""

    frame = pd.DataFrame(list(rows), columns=layout.keys, dtype=str)
    frame.columns = layout.header
    return frame


def display_frame(rows: Sequence[FlatRow], layout: TableLayout = EMBEDDED_LAYOUT) -> pd.DataFrame:
    frame = rows_to_frame(rows, layout)
    return frame.replace("", EMPTY_PLACEHOLDER)


__all__ = [
    "Column",
    "EMBEDDED_LAYOUT",
    "EMPTY_PLACEHOLDER",
    "FlatRow",
    "LAYOUTS",
    "SEPARATE_LAYOUT",
    "TableLayout",
    "display_frame",
    "flatten",
    "format_cell",
    "get_layout",
    "rows_to_frame",
]
