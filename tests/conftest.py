import os
import tempfile
import uuid

import pytest

_tmp = tempfile.mkdtemp(prefix="searchtool-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_tmp, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_tmp, "uploads")
os.environ["SECRET_KEY"] = "test-secret"

from fastapi.testclient import TestClient  # noqa: E402

from searchtool.main import app  # noqa: E402


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(client):
    """Register a user with the given role and return auth headers."""
    def _make(role="viewer", name="Test User"):
        email = f"{role}-{uuid.uuid4().hex[:8]}@example.com"
        password = "s3cret-pass"
        resp = client.post("/api/auth/register", json={
            "email": email, "name": name, "password": password, "role": role,
        })
        assert resp.status_code == 201, resp.text
        login = client.post("/api/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        return {"Authorization": f"Bearer {login.json()['token']}"}
    return _make


@pytest.fixture
def admin_headers(make_user):
    return make_user("admin", name="Admin")


@pytest.fixture
def consultant(client, admin_headers):
    resp = client.post("/api/consultants", headers=admin_headers, json={
        "name": "Ada Mensah",
        "category": "Water",
        "expertise": ["GIS"],
        "tags": ["hydrology"],
    })
    assert resp.status_code == 201, resp.text
    return resp.json()
