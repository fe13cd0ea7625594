"""Storage and startup failures surface as generic errors."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

import app as app_module
from app import create_app
from conftest import add_entry


def _drop_entries_table(client):
    with client.app.state.engine.begin() as conn:
        conn.execute(text("DROP TABLE time_entries"))


@pytest.mark.parametrize(
    "path, detail",
    [
        ("/api/time-entries", "Database error"),
        ("/api/summary", "Database error"),
        ("/api/export.csv", "CSV export failed"),
        ("/api/export.xlsx", "Excel export failed"),
        ("/api/export-summary.xlsx", "Summary Excel export failed"),
    ],
)
def test_read_endpoints_hide_storage_errors(client, path, detail):
    _drop_entries_table(client)

    response = client.get(path)
    assert response.status_code == 500
    assert response.json() == {"detail": detail}
    assert "time_entries" not in response.text
    assert "SELECT" not in response.text


def test_create_hides_storage_errors(client, user_ids):
    _drop_entries_table(client)

    response = client.post(
        "/api/time-entries",
        json={
            "user_id": user_ids["Bob Smith"],
            "work_date": "2024-01-15",
            "start_time": "09:00",
            "end_time": "10:00",
        },
    )
    assert response.status_code == 500
    assert response.json() == {"detail": "Database error"}


def test_delete_hides_storage_errors(client, user_ids):
    bob = user_ids["Bob Smith"]
    entry = add_entry(client, bob, "2024-01-15", "09:00", "10:00")
    _drop_entries_table(client)

    response = client.delete(f"/api/time-entries/{entry['id']}", params={"user_id": bob})
    assert response.status_code == 500
    assert response.json() == {"detail": "Delete failed"}


def test_create_without_any_project(make_client):
    client = make_client(seed_projects=[])
    user_id = client.get("/api/users").json()[0]["id"]

    response = client.post(
        "/api/time-entries",
        json={"user_id": user_id, "work_date": "2024-01-15", "start_time": "09:00", "end_time": "10:00"},
    )
    assert response.status_code == 500
    assert response.json() == {"detail": "No project configured"}
    assert client.get("/api/time-entries").json() == []


def test_startup_fails_when_seeding_fails(make_settings, monkeypatch):
    def broken_seed(session, settings):
        raise RuntimeError("seed failed")

    monkeypatch.setattr(app_module, "seed_database", broken_seed)
    app = create_app(make_settings())

    with pytest.raises(RuntimeError, match="seed failed"):
        with TestClient(app):
            pass
