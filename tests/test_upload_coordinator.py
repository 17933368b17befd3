import pytest
import requests

from client.app_state import AppState
from client.errors import OperationInFlightError, SessionCreationError, UploadBindError, ValidationError
from client.upload_coordinator import UploadCoordinator
from fakes import FakeResponse, SESSION_ID
from models.query_models import UploadCandidate

CSV = b"Name,Age\nAlice,30\nBob,22\nCara,28\n"


def upload_body(session_id="s1"):
    return {
        "message": "File uploaded successfully",
        "filename": "a.csv",
        "rows": 3,
        "columns": ["Name", "Age"],
        "table": f"data_{session_id}",
        "session_id": session_id,
    }


def script_success(fake_http, session_id="s1"):
    fake_http.on("POST", "/api/session/create", FakeResponse(200, {"session_id": session_id, "message": "ok"}))
    fake_http.on("POST", "/api/upload", FakeResponse(200, upload_body(session_id)))


@pytest.mark.parametrize("filename, mime_type, ok", [
    ("a.csv", None, True),
    ("REPORT.CSV", "application/octet-stream", True),
    ("export", "text/csv", True),
    ("notes.txt", "text/plain", False),
    ("data.csv.txt", None, False),
])
def test_validate(filename, mime_type, ok):
    candidate = UploadCandidate(filename=filename, content=CSV, mime_type=mime_type)
    assert UploadCoordinator.validate(candidate) is ok


def test_txt_file_never_reaches_the_network(fake_app, fake_http):
    candidate = UploadCandidate(filename="notes.txt", content=b"hello", mime_type="text/plain")

    with pytest.raises(ValidationError):
        fake_app.uploads.select(candidate)
    with pytest.raises(ValidationError):
        fake_app.uploads.submit(candidate)

    assert fake_http.calls == []
    assert fake_app.sessions.is_active is False


def test_rejected_selection_replaces_previous_one(fake_app, fake_http):
    fake_app.uploads.select(UploadCandidate(filename="a.csv", content=CSV))
    with pytest.raises(ValidationError):
        fake_app.uploads.select(UploadCandidate(filename="notes.txt", content=b"x"))

    assert fake_app.uploads.selected is None
    with pytest.raises(ValidationError):
        fake_app.uploads.submit()
    assert fake_http.calls == []


def test_submit_without_selection(fake_app, fake_http):
    with pytest.raises(ValidationError):
        fake_app.uploads.submit()
    assert fake_http.calls == []


def test_submit_creates_then_binds(fake_app, fake_http):
    script_success(fake_http)
    fake_app.uploads.select(UploadCandidate(filename="a.csv", content=CSV, mime_type="text/csv"))

    upload = fake_app.uploads.submit()

    assert fake_http.paths() == [("POST", "/api/session/create"), ("POST", "/api/upload")]
    sent = fake_http.last_kwargs("POST", "/api/upload")
    assert sent["data"] == {"session_id": "s1"}
    assert sent["files"]["file"] == ("a.csv", CSV, "text/csv")

    assert upload.rows == 3
    assert fake_app.sessions.is_active is True
    assert fake_app.sessions.session_id == "s1"
    assert fake_app.uploads.selected is None
    assert fake_app.uploads.last_upload == upload


def test_session_creation_failure_skips_upload(fake_app, fake_http):
    fake_http.on("POST", "/api/session/create", requests.ConnectionError("refused"))

    with pytest.raises(SessionCreationError):
        fake_app.uploads.submit(UploadCandidate(filename="a.csv", content=CSV))

    assert fake_http.paths() == [("POST", "/api/session/create")]
    assert fake_app.sessions.is_active is False


def test_bind_failure_leaves_orphan_and_inactive(fake_app, fake_http):
    fake_http.on("POST", "/api/session/create", FakeResponse(200, {"session_id": "s1", "message": "ok"}))
    fake_http.on("POST", "/api/upload", FakeResponse(400, {"error": "CSV file is empty"}))
    candidate = fake_app.uploads.select(UploadCandidate(filename="a.csv", content=b""))

    with pytest.raises(UploadBindError) as exc:
        fake_app.uploads.submit()

    assert exc.value.session_id == "s1"
    assert "CSV file is empty" in exc.value.message
    assert fake_app.sessions.is_active is False
    assert fake_app.sessions.session_id is None
    # no retry and no teardown of the orphan
    assert fake_http.paths() == [("POST", "/api/session/create"), ("POST", "/api/upload")]
    assert fake_app.uploads.selected is candidate


def test_bind_transport_failure(fake_app, fake_http):
    fake_http.on("POST", "/api/session/create", FakeResponse(200, {"session_id": "s1", "message": "ok"}))
    fake_http.on("POST", "/api/upload", requests.Timeout("slow"))

    with pytest.raises(UploadBindError):
        fake_app.uploads.submit(UploadCandidate(filename="a.csv", content=CSV))
    assert fake_app.sessions.is_active is False


def test_new_upload_ends_current_session_first(active_app, fake_http):
    fake_http.on("DELETE", f"/api/session/{SESSION_ID}", FakeResponse(200, {"message": "deleted"}))
    script_success(fake_http, session_id="s2")

    active_app.uploads.submit(UploadCandidate(filename="b.csv", content=CSV))

    assert fake_http.paths() == [
        ("DELETE", f"/api/session/{SESSION_ID}"),
        ("POST", "/api/session/create"),
        ("POST", "/api/upload"),
    ]
    assert active_app.sessions.session_id == "s2"


def test_submit_sample_uses_the_same_flow(fake_http, tmp_path):
    sample = tmp_path / "test.csv"
    sample.write_bytes(CSV)
    script_success(fake_http)
    app = AppState("http://testserver", http=fake_http, sample_path=str(sample))

    app.uploads.submit_sample()

    sent = fake_http.last_kwargs("POST", "/api/upload")
    assert sent["files"]["file"] == ("test.csv", CSV, "text/csv")
    assert app.sessions.is_active is True


def test_second_submit_while_in_flight_is_refused(fake_app, fake_http):
    candidate = UploadCandidate(filename="a.csv", content=CSV)
    fake_http.on("POST", "/api/upload", FakeResponse(200, upload_body()))

    def create_session(**kwargs):
        assert fake_app.uploads.in_flight is True
        with pytest.raises(OperationInFlightError):
            fake_app.uploads.submit(candidate)
        return FakeResponse(200, {"session_id": "s1", "message": "ok"})

    fake_http.on("POST", "/api/session/create", create_session)

    fake_app.uploads.submit(candidate)
    assert fake_http.paths().count(("POST", "/api/session/create")) == 1
    assert fake_app.uploads.in_flight is False


def test_missing_sample_file(fake_http, tmp_path):
    app = AppState("http://testserver", http=fake_http, sample_path=str(tmp_path / "missing.csv"))

    with pytest.raises(ValidationError) as exc:
        app.uploads.submit_sample()

    assert exc.value.message == "Sample file is not available"
    assert fake_http.calls == []
    assert app.sessions.is_active is False
