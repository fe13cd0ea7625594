import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import Settings


@pytest.fixture
def make_settings(tmp_path):
    """Build settings pointing at a throwaway SQLite file."""

    def _make(**overrides):
        values = {
            "database_url": f"sqlite:///{tmp_path / 'test.db'}",
            "seed_users": ["Alice Johnson", "Bob Smith"],
            "seed_projects": ["Drift"],
            "legacy_users": ["Guest"],
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def make_client(make_settings):
    """Create a test client for an app built with the given setting overrides."""
    clients = []

    def _make(**overrides):
        app = create_app(make_settings(**overrides))
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def user_ids(client):
    """Map of seeded user name -> id."""
    return {u["name"]: u["id"] for u in client.get("/api/users").json()}


def add_entry(client, user_id, work_date, start_time, end_time, **extra):
    payload = {
        "user_id": user_id,
        "work_date": work_date,
        "start_time": start_time,
        "end_time": end_time,
        **extra,
    }
    response = client.post("/api/time-entries", json=payload)
    assert response.status_code == 201, response.text
    return response.json()
