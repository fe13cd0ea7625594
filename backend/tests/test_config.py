import pytest

from config import load_settings

ENV_VARS = [
    "DATABASE_URL",
    "DATABASE_PATH",
    "ENV",
    "PORT",
    "TRACK_BREAKS",
    "SHOW_PROJECTS",
    "DELETE_REQUIRES_USER",
    "SEED_USERS",
    "SEED_PROJECTS",
    "LEGACY_USERS",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()
    assert settings.port == 3000
    assert settings.database_url == "sqlite:///./timeregistration.db"
    assert settings.track_breaks is False
    assert settings.show_projects is False
    assert settings.delete_requires_user is True
    assert settings.seed_projects == ["Drift"]
    assert settings.legacy_users == ["Mads", "Maria", "Guest"]
    assert settings.log_level == "INFO"


def test_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("TRACK_BREAKS", "true")
    monkeypatch.setenv("SHOW_PROJECTS", "1")
    monkeypatch.setenv("DELETE_REQUIRES_USER", "no")
    monkeypatch.setenv("SEED_USERS", " Ann , Ben ,,")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()
    assert settings.port == 8080
    assert settings.track_breaks is True
    assert settings.show_projects is True
    assert settings.delete_requires_user is False
    assert settings.seed_users == ["Ann", "Ben"]
    assert settings.log_level == "DEBUG"


def test_postgres_scheme_rewritten(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://app:secret@db:5432/appdb")
    assert load_settings().database_url == "postgresql://app:secret@db:5432/appdb"


def test_production_requires_database_url(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        load_settings()
