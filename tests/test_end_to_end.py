"""
The client layer driving the in-process backend, the way the Streamlit app does.
"""

import pytest

from client.errors import SessionExpiredError
from client.health_probe import HealthStatus
from models.query_models import QueryMode, UploadCandidate
from services import nl_service


@pytest.fixture
def uploaded(live_app, people_csv):
    live_app.uploads.submit(UploadCandidate(filename="a.csv", content=people_csv, mime_type="text/csv"))
    return live_app


def test_health(live_app):
    assert live_app.health.check() == HealthStatus.CONNECTED


def test_age_filter_scenario(uploaded, backend):
    session_id = uploaded.sessions.session_id
    assert uploaded.sessions.is_active is True
    assert uploaded.uploads.last_upload.table == f"data_{session_id}"
    assert uploaded.uploads.last_upload.rows == 3

    result = uploaded.queries.dispatch("SELECT * FROM data WHERE Age > 25")

    assert result.row_count == 2
    assert result.row_count <= 3
    assert {row["Name"] for row in result.rows} == {"Alice", "Cara"}

    # the backend saw the real table name
    direct = backend.post(
        "/api/query",
        json={"sql": f"SELECT * FROM data_{session_id} WHERE Age > 25", "session_id": session_id},
    ).json()
    assert direct["cached"] is True


def test_select_all_from_alias(uploaded):
    result = uploaded.queries.dispatch("SELECT * FROM data")
    assert 0 < result.row_count <= 3


def test_history_keeps_last_ten(uploaded):
    for n in range(1, 12):
        uploaded.queries.dispatch(f"SELECT * FROM data LIMIT {n}")

    queries = [item.query for item in uploaded.history]
    assert len(queries) == 10
    assert queries[0] == "SELECT * FROM data LIMIT 11"
    assert "SELECT * FROM data LIMIT 1" not in queries


def test_preview_and_schema(uploaded):
    preview = uploaded.queries.load_preview()
    assert preview.row_count == 3

    schema = uploaded.queries.fetch_schema()
    assert schema.startswith(f"Table: data_{uploaded.sessions.session_id}")
    assert "Name" in schema


def test_end_session_removes_it_from_backend(uploaded, backend):
    session_id = uploaded.sessions.session_id
    uploaded.queries.dispatch("SELECT * FROM data")

    assert uploaded.sessions.end_session() is True

    assert uploaded.sessions.is_active is False
    assert len(uploaded.history) == 0
    assert uploaded.queries.result is None
    assert backend.get(f"/api/session/{session_id}/status").status_code == 404


def test_new_upload_replaces_session(uploaded, backend):
    first = uploaded.sessions.session_id

    uploaded.uploads.submit(UploadCandidate(filename="b.csv", content=b"City\nOslo\nLima\n"))

    assert uploaded.sessions.session_id != first
    assert backend.get(f"/api/session/{first}/status").status_code == 404
    assert uploaded.queries.dispatch("SELECT City FROM data ORDER BY City").rows == [
        {"City": "Lima"},
        {"City": "Oslo"},
    ]


def test_sample_upload(live_app):
    upload = live_app.uploads.submit_sample()

    assert upload.filename == "test.csv"
    assert upload.rows == 10
    assert live_app.queries.dispatch("SELECT COUNT(*) AS n FROM data").rows == [{"n": 10}]


def test_session_deleted_behind_the_clients_back(uploaded, backend):
    uploaded.queries.dispatch("SELECT * FROM data")
    backend.delete(f"/api/session/{uploaded.sessions.session_id}")

    with pytest.raises(SessionExpiredError):
        uploaded.queries.dispatch("SELECT * FROM data")

    assert uploaded.sessions.is_active is False
    assert len(uploaded.history) == 0


def test_natural_language_round(uploaded, monkeypatch):
    def translate(question, schema):
        table = schema.splitlines()[0].split(": ", 1)[1]
        return f"SELECT Name FROM {table} WHERE Age > 25 ORDER BY Name"

    monkeypatch.setattr(nl_service, "client", object())
    monkeypatch.setattr(nl_service, "generate_sql", translate)

    uploaded.queries.set_mode(QueryMode.NATURAL)
    result = uploaded.queries.dispatch("who is older than 25?")

    assert result.rows == [{"Name": "Alice"}, {"Name": "Cara"}]
    assert result.generated_sql.startswith(f"SELECT Name FROM data_{uploaded.sessions.session_id}")

    uploaded.queries.set_mode(QueryMode.SQL)
    selection = uploaded.queries.replay(0)
    assert selection.query == "who is older than 25?"
    assert selection.mode == QueryMode.NATURAL
