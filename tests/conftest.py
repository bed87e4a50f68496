from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List
import sys

import pytest

# Ensure project root is on sys.path for absolute imports
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from teamroles.records import Role, Team


@pytest.fixture
def root() -> Path:
    return ROOT


@pytest.fixture
def embedded_payload() -> Dict[str, Any]:
    return {
        "value": [
            {
                "teamid": "t1",
                "name": "Sales",
                "_businessunitid_value": "BU-SALES",
                "com_team_category": 1001,
                "teamroles_association": [
                    {"roleid": "r1", "name": "Sales Manager"},
                    {"roleid": "r2", "name": "Quote Approver"},
                ],
                "teamtype": 0,
            },
            {
                "teamid": "t2",
                "name": "Observers",
                "teamroles_association": [],
            },
        ]
    }


@pytest.fixture
def separate_teams() -> List[Team]:
    return [
        Team(id="t1", name="A", business_unit="BU-1", email="a@example.com"),
        Team(id="t2", name="B"),
        Team(id="t3", name="C"),
    ]


@pytest.fixture
def separate_roles() -> Dict[str, List[Role]]:
    return {
        "t1": [
            Role(id="r1", name="X", privilege="Organization", environment="Prod"),
            Role(id="r2", name="Y"),
        ],
        "t3": [Role(id="r3", name="Z", environment="Sandbox")],
    }
