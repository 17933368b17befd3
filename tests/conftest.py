import pytest
from fastapi.testclient import TestClient

from client.app_state import AppState
from fakes import FakeHttp, SESSION_ID
from main import app

BASE_URL = "http://testserver"


# In-process reference backend; entering the context runs the startup hook
@pytest.fixture(scope="function")
def backend():
    with TestClient(app, base_url=BASE_URL) as client:
        yield client


# Client layer talking to the in-process backend
@pytest.fixture(scope="function")
def live_app(backend):
    return AppState(BASE_URL, http=backend)


@pytest.fixture(scope="function")
def fake_http():
    return FakeHttp()


# Client layer talking to the scripted fake
@pytest.fixture(scope="function")
def fake_app(fake_http):
    return AppState(BASE_URL, http=fake_http)


# Fake-backed client with SESSION_ID already active
@pytest.fixture(scope="function")
def active_app(fake_app):
    fake_app.sessions.activate(SESSION_ID)
    return fake_app


@pytest.fixture
def people_csv():
    return b"Name,Age\nAlice,30\nBob,22\nCara,28\n"
