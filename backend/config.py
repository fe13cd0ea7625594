import os
from dataclasses import dataclass, field


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list[str]:
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]


@dataclass
class Settings:
    database_url: str
    port: int = 3000
    track_breaks: bool = False
    show_projects: bool = False
    delete_requires_user: bool = True
    seed_users: list[str] = field(default_factory=list)
    seed_projects: list[str] = field(default_factory=lambda: ["Drift"])
    legacy_users: list[str] = field(default_factory=list)
    log_level: str = "INFO"


def resolve_database_url() -> str:
    """Get database URL from environment, default to SQLite for local dev."""
    db_path = os.getenv("DATABASE_PATH", "./timeregistration.db")
    env = os.getenv("ENV", "dev").lower()

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        # Guard against SQLite fallback in production
        if env in ("prod", "production"):
            raise RuntimeError(
                "DATABASE_URL missing in production; refusing to start with SQLite. "
                "Please configure DATABASE_URL environment variable."
            )
        database_url = f"sqlite:///{db_path}"

    # SQLAlchemy needs postgresql:// but hosting providers often hand out postgres://
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def load_settings() -> Settings:
    """Build settings from environment variables."""
    return Settings(
        database_url=resolve_database_url(),
        port=int(os.getenv("PORT", "3000")),
        track_breaks=_env_flag("TRACK_BREAKS", False),
        show_projects=_env_flag("SHOW_PROJECTS", False),
        delete_requires_user=_env_flag("DELETE_REQUIRES_USER", True),
        seed_users=_env_list("SEED_USERS", "Alice Johnson,Bob Smith,Carol Davis"),
        seed_projects=_env_list("SEED_PROJECTS", "Drift"),
        legacy_users=_env_list("LEGACY_USERS", "Mads,Maria,Guest"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
