import os
import tempfile

# Must be set before importing app: configuration is read at import time and
# load_dotenv() does not override existing env vars.
os.environ["AUTH_USER"] = "tester"
os.environ["AUTH_PASS"] = "secret"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ.setdefault("REPO_DIR", tempfile.mkdtemp(prefix="mdtodo-"))
os.environ.setdefault("GH_REPO", "someone/todo")

import pytest
from fastapi.testclient import TestClient

from app import app, get_store
from tests.helpers import FakeRepo
from todo_store import TodoStore


@pytest.fixture
def fake_repo():
    return FakeRepo()


@pytest.fixture
def client(fake_repo):
    """
    A TestClient whose store talks to an in-memory repo.

    Used without the context manager so the startup hook (which clones the
    configured remote) does not run.
    """
    store = TodoStore(fake_repo)
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app, raise_server_exceptions=True)
    app.dependency_overrides.clear()


@pytest.fixture
def logged_in(client):
    """The same client, carrying a valid session cookie."""
    r = client.post(
        "/login",
        data={"username": "tester", "password": "secret"},
        follow_redirects=False,
    )
    assert r.status_code == 303
    return client
