import io
import json
import logging
import threading

import pytest
import requests

from teamroles.config import AppConfig, RemoteConfig, SourceConfig
from teamroles.sources import (
    DataverseClient,
    SourceLoadError,
    load_mock,
    load_remote,
    load_source,
    load_teams_file,
    read_json_content,
    roles_from_payload,
    teams_from_payload,
)

BASE_URL = "https://example.crm.dynamics.com/api/data/v9.2"


class StubResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self._text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._payload


class StubSession:
    def __init__(self, responses):
        self._responses = responses
        self.calls = []
        self._lock = threading.Lock()

    def get(self, url, headers=None, params=None, timeout=None):
        with self._lock:
            self.calls.append({"url": url, "headers": headers, "params": params, "timeout": timeout})
        response = self._responses[url]
        if isinstance(response, Exception):
            raise response
        return response


def test_read_json_content_accepts_file_objects_and_paths(tmp_path):
    path = tmp_path / "teams.json"
    path.write_text('{"value": []}', encoding="utf-8")

    assert read_json_content(path) == {"value": []}
    assert read_json_content(io.BytesIO(b'{"value": [1]}')) == {"value": [1]}


def test_malformed_json_reports_decode_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text('{"value": [', encoding="utf-8")

    with pytest.raises(SourceLoadError) as excinfo:
        load_teams_file(path)

    assert "Expecting" in str(excinfo.value)


def test_missing_file_is_a_source_error(tmp_path):
    with pytest.raises(SourceLoadError):
        read_json_content(tmp_path / "missing.json")


def test_teams_from_payload_handles_envelope_shapes():
    assert teams_from_payload({}) == []
    assert [team.id for team in teams_from_payload({"value": [{"teamid": "t1"}]})] == ["t1"]
    with pytest.raises(SourceLoadError):
        teams_from_payload([{"teamid": "t1"}])
    with pytest.raises(SourceLoadError):
        teams_from_payload({"value": "t1"})


def test_roles_from_payload_accepts_value_list_and_mapping():
    grouped = roles_from_payload(
        {"value": [{"parentId": "t1", "name": "X"}, {"parentId": "t1", "name": "Y"}]}
    )
    assert [role.name for role in grouped["t1"]] == ["X", "Y"]

    mapped = roles_from_payload({"t2": [{"name": "Z"}]})
    assert [role.name for role in mapped["t2"]] == ["Z"]


def test_load_mock_returns_fresh_copies():
    first = load_mock()
    first.teams[0].name = "changed"

    second = load_mock()
    assert second.teams[0].name == "APAC Sales Squad"
    assert second.roles_by_team is None
    assert len(second.teams) == 3

    separate = load_mock("separate")
    assert set(separate.roles_by_team) == {
        "d4d7cd62-e35c-4807-83c1-8651724af010",
        "3afbfda6-7409-4412-a89f-5dca3a940079",
    }


def test_load_source_reads_json_files_for_separate_variant(root):
    config = AppConfig(
        variant="separate",
        source=SourceConfig(
            kind="json",
            teams=root / "sample_data" / "teams.json",
            roles=root / "sample_data" / "roles.json",
        ),
    )

    loaded = load_source(config)

    assert loaded.label == "json"
    assert len(loaded.teams) == 3
    assert loaded.teams[0].extras == {"teamtype": 0}
    assert [role.name for role in loaded.roles_by_team["d4d7cd62-e35c-4807-83c1-8651724af010"]] == [
        "Sales Manager",
        "Quote Approver",
    ]


def test_load_source_requires_teams_path():
    with pytest.raises(SourceLoadError):
        load_source(AppConfig(source=SourceConfig(kind="json")))


def test_client_fetches_teams_and_roles_with_headers():
    session = StubSession(
        {
            f"{BASE_URL}/teams": StubResponse(payload={"value": [{"teamid": "t1"}, {"teamid": "t2"}]}),
            f"{BASE_URL}/teams(t1)/teamroles_association": StubResponse(
                payload={"value": [{"roleid": "r1", "name": "X"}]}
            ),
            f"{BASE_URL}/teams(t2)/teamroles_association": StubResponse(payload={"value": []}),
        }
    )
    client = DataverseClient(BASE_URL + "/", token="secret", max_workers=2, session=session)

    teams = client.fetch_teams(["teamid", "name"])
    roles = client.fetch_roles_by_team(teams)

    assert [team.id for team in teams] == ["t1", "t2"]
    assert [role.id for role in roles["t1"]] == ["r1"]
    assert roles["t2"] == []
    assert session.calls[0]["params"] == {"$select": "teamid,name"}
    assert session.calls[0]["headers"]["Authorization"] == "Bearer secret"
    assert session.calls[0]["headers"]["OData-Version"] == "4.0"


def test_team_request_failure_aborts_load():
    session = StubSession({f"{BASE_URL}/teams": StubResponse(status_code=401)})
    client = DataverseClient(BASE_URL, session=session)

    with pytest.raises(SourceLoadError, match="401"):
        client.fetch_teams()


def test_role_request_failures_degrade_to_empty_roles(caplog):
    session = StubSession(
        {
            f"{BASE_URL}/teams(t1)/teamroles_association": StubResponse(status_code=500),
            f"{BASE_URL}/teams(t2)/teamroles_association": requests.ConnectionError("reset"),
            f"{BASE_URL}/teams(t3)/teamroles_association": StubResponse(text="not json"),
            f"{BASE_URL}/teams(t4)/teamroles_association": StubResponse(payload={"value": [{"name": "Z"}]}),
        }
    )
    client = DataverseClient(BASE_URL, session=session)
    teams = teams_from_payload({"value": [{"teamid": f"t{index}"} for index in range(1, 5)] + [{"name": "no id"}]})

    with caplog.at_level(logging.WARNING, logger="teamroles.sources"):
        roles = client.fetch_roles_by_team(teams)

    assert roles == {"t1": [], "t2": [], "t3": [], "t4": roles["t4"]}
    assert [role.name for role in roles["t4"]] == ["Z"]
    assert len(session.calls) == 4
    assert "status 500" in caplog.text


def test_load_remote_reads_token_from_environment(monkeypatch):
    monkeypatch.setenv("TEST_DATAVERSE_TOKEN", "abc")
    session = StubSession(
        {
            f"{BASE_URL}/teams": StubResponse(payload={"value": [{"teamid": "t1", "name": "A"}]}),
            f"{BASE_URL}/teams(t1)/teamroles_association": StubResponse(payload={"value": [{"name": "X"}]}),
        }
    )
    remote = RemoteConfig(base_url=BASE_URL, token_env="TEST_DATAVERSE_TOKEN", team_select=[])

    loaded = load_remote(remote, session=session)

    assert loaded.label == "remote"
    assert [role.name for role in loaded.roles_by_team["t1"]] == ["X"]
    assert session.calls[0]["params"] is None
    assert all(call["headers"]["Authorization"] == "Bearer abc" for call in session.calls)


def test_client_requires_base_url():
    with pytest.raises(ValueError):
        DataverseClient("")
