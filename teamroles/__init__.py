"""Team roles export core package.

This package joins Dataverse teams with their security roles, flattens the
result into spreadsheet rows and serializes those rows as tab separated text
for pasting into Excel.  It powers both the command line interface and the
Streamlit front end shipped with this repository.
"""

from .config import AppConfig, OutputConfig, RemoteConfig, SourceConfig, load_config
from .flatten import (
    EMBEDDED_LAYOUT,
    SEPARATE_LAYOUT,
    Column,
    FlatRow,
    TableLayout,
    flatten,
    get_layout,
    rows_to_frame,
)
from .join import Aggregate, EmbeddedRolesJoin, RolesJoin, SeparateRolesJoin, join
from .records import Role, Team
from .reporting import export_rows
from .sources import DataverseClient, LoadedSource, SourceLoadError, load_source
from .tsv import sanitize_value, serialize, serialize_rows

__all__ = [
    "Aggregate",
    "AppConfig",
    "Column",
    "DataverseClient",
    "EMBEDDED_LAYOUT",
    "EmbeddedRolesJoin",
    "FlatRow",
    "LoadedSource",
    "OutputConfig",
    "RemoteConfig",
    "Role",
    "RolesJoin",
    "SEPARATE_LAYOUT",
    "SeparateRolesJoin",
    "SourceConfig",
    "SourceLoadError",
    "TableLayout",
    "Team",
    "export_rows",
    "flatten",
    "get_layout",
    "join",
    "load_config",
    "load_source",
    "rows_to_frame",
    "sanitize_value",
    "serialize",
    "serialize_rows",
]
