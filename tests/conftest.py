import os

os.environ["RATE_LIMIT"] = "10000/minute"
os.environ["ADMIN_EMAILS"] = "Boss@Acme-Signs.com, owner@acme-signs.com"
os.environ["ORPHAN_RECONCILE_INTERVAL_SECONDS"] = "0"
os.environ["ORPHAN_GRACE_PERIOD_SECONDS"] = "3600"
os.environ["MAX_UPLOAD_SIZE_BYTES"] = "1024"

import pytest
from fastapi.testclient import TestClient

from app.core.policy import Caller
from app.database.supabase_client import get_supabase, get_service_supabase
from app.main import app
from app.modules.auth.service import clear_auth_cache
from app.storage.object_store import ObjectStore, get_object_store
from tests.fakes import FakeSupabase, InMemoryBlobBackend


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def blobs():
    return InMemoryBlobBackend()


@pytest.fixture
def object_store(blobs):
    return ObjectStore(blobs)


@pytest.fixture
def client(db, object_store):
    clear_auth_cache()
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_service_supabase] = lambda: db
    app.dependency_overrides[get_object_store] = lambda: object_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    clear_auth_cache()


@pytest.fixture
def signup(client):
    """Register and log in through the API; returns (headers, user_id)."""
    def _signup(email, password="secret-pass", full_name=None):
        body = {"email": email, "password": password}
        if full_name:
            body["full_name"] = full_name
        response = client.post("/api/v1/auth/register", json=body)
        assert response.status_code == 201, response.text
        response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        data = response.json()
        return {"Authorization": f"Bearer {data['access_token']}"}, data["user_id"]
    return _signup


@pytest.fixture
def alice():
    return Caller(id="11111111-1111-1111-1111-111111111111", email="alice@acme-signs.com")


@pytest.fixture
def bob():
    return Caller(id="22222222-2222-2222-2222-222222222222", email="bob@acme-signs.com")


@pytest.fixture
def admin():
    return Caller(id="33333333-3333-3333-3333-333333333333", email="boss@acme-signs.com", role="admin")
