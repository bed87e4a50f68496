"""Streamlit UI for browsing Dataverse teams and roles as an Excel-ready table."""
from __future__ import annotations

import streamlit as st

from teamroles import flatten, get_layout, join, load_config, serialize_rows
from teamroles.flatten import display_frame
from teamroles.records import teams_to_payload
from teamroles.reporting import rows_to_excel_bytes
from teamroles.sources import (
    SourceLoadError,
    load_mock,
    read_json_content,
    roles_from_payload,
    teams_from_payload,
)

st.set_page_config(page_title="Dataverse Teams & Roles", layout="wide")

CONFIG = load_config()


def _state(key: str, default):
    if key not in st.session_state:
        st.session_state[key] = default
    return st.session_state[key]


def _clear() -> None:
    st.session_state["teams"] = []
    st.session_state["roles_by_team"] = None
    st.session_state["last_source"] = None
    st.session_state["error"] = None


_state("teams", [])
_state("roles_by_team", None)
_state("last_source", None)
_state("error", None)

st.title("Dataverse Teams & Roles")
st.write(
    'Load teams exported from Dataverse (`{"value": [...]}`) and review each team '
    "with its roles in a table you can paste into Excel."
)

with st.sidebar:
    st.header("1. Load JSON")
    variant = st.radio(
        "Roles",
        options=["embedded", "separate"],
        index=0 if CONFIG.variant == "embedded" else 1,
        format_func=lambda value: "Embedded on teams" if value == "embedded" else "Separate roles file",
    )
    if variant == "embedded":
        st.caption(
            "Each team should include `_businessunitid_value`, `com_team_category` "
            "and `teamroles_association`."
        )
    teams_file = st.file_uploader("Teams JSON", type=["json"], key="teams_upload")
    roles_file = None
    if variant == "separate":
        roles_file = st.file_uploader("Roles JSON", type=["json"], key="roles_upload")

    if st.button("Load uploaded JSON", disabled=teams_file is None):
        try:
            teams = teams_from_payload(read_json_content(teams_file))
            roles = None
            if variant == "separate":
                roles = roles_from_payload(read_json_content(roles_file)) if roles_file else {}
        except SourceLoadError as exc:
            st.session_state["error"] = f"Failed to load JSON file: {exc}"
        else:
            st.session_state["teams"] = teams
            st.session_state["roles_by_team"] = roles
            st.session_state["last_source"] = "json"
            st.session_state["error"] = None

    if st.button("Load sample JSON", type="primary"):
        loaded = load_mock(variant)
        st.session_state["teams"] = loaded.teams
        st.session_state["roles_by_team"] = loaded.roles_by_team
        st.session_state["last_source"] = "mock"
        st.session_state["error"] = None

    st.button("Clear", on_click=_clear, disabled=not st.session_state["teams"])

teams = st.session_state["teams"]
roles_by_team = st.session_state["roles_by_team"]

if st.session_state["error"]:
    st.error(st.session_state["error"], icon="⚠️")
if st.session_state["last_source"]:
    label = "Showing sample data" if st.session_state["last_source"] == "mock" else "Showing JSON file"
    st.caption(f"{label} / {len(teams)} teams")

layout = get_layout(variant)
rows = flatten(join(teams, roles_by_team), layout) if teams else []

st.subheader(f"2. Result table (for Excel) · Teams: {len(teams)}")
if not rows:
    st.info("No data yet. Load a JSON file or use the sample data.")
else:
    st.dataframe(display_frame(rows, layout), hide_index=True, use_container_width=True)

    payload = serialize_rows(rows, layout)
    st.caption("Copy the team and role combinations as tab separated text.")
    st.code(payload, language=None)
    left, right = st.columns(2)
    with left:
        if st.download_button(
            "Download TSV",
            data=payload.encode("utf-8"),
            file_name="teams_roles.tsv",
            mime="text/tab-separated-values",
        ):
            st.toast("TSV export downloaded")
    with right:
        try:
            workbook = rows_to_excel_bytes(rows, layout)
        except Exception as exc:  # pragma: no cover - surfaced to the operator
            st.toast(f"Export failed: {exc}")
        else:
            st.download_button(
                "Download XLSX",
                data=workbook,
                file_name="teams_roles.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            )

st.subheader(f"3. JSON preview · {len(teams)} items")
if teams:
    st.json(teams_to_payload(teams)["value"], expanded=False)
else:
    st.code("// No data yet", language=None)
