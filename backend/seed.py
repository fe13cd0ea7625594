import logging

from sqlmodel import Session, col, delete, select

from config import Settings
from models import Project, User

logger = logging.getLogger(__name__)


def purge_legacy_users(session: Session, names: list[str]) -> int:
    """Remove old bootstrap users; their entries go with them (ON DELETE CASCADE)."""
    if not names:
        return 0
    stmt = (
        delete(User)
        .where(col(User.name).in_(names))
        .execution_options(synchronize_session="fetch")
    )
    result = session.exec(stmt)
    # Cascaded entries never pass through the ORM; drop cached state so freed ids can be reused
    session.expire_all()
    return result.rowcount or 0


def seed_projects(session: Session, settings: Settings) -> int:
    """Insert configured projects that are missing."""
    if not settings.seed_projects:
        return 0

    if not settings.show_projects:
        # A single technical project fills project_id; only needed if none exists
        if session.exec(select(Project)).first():
            return 0
        session.add(Project(name=settings.seed_projects[0]))
        return 1

    existing = set(session.exec(select(Project.name)).all())
    missing = [name for name in settings.seed_projects if name not in existing]
    session.add_all(Project(name=name) for name in missing)
    return len(missing)


def seed_users(session: Session, names: list[str]) -> int:
    """Insert configured users that are missing."""
    existing = set(session.exec(select(User.name)).all())
    missing = []
    for name in names:
        if name not in existing and name not in missing:
            missing.append(name)
    session.add_all(User(name=name) for name in missing)
    return len(missing)


def seed_database(session: Session, settings: Settings):
    """Seed reference data. Safe to run on every startup: rows are only added if absent."""
    purged = purge_legacy_users(session, settings.legacy_users)
    projects = seed_projects(session, settings)
    users = seed_users(session, settings.seed_users)
    session.commit()
    logger.info(
        f"Seed complete: {purged} legacy users removed, "
        f"{projects} projects and {users} users added"
    )


if __name__ == "__main__":
    from config import load_settings
    from db import create_db_and_tables, make_engine

    logging.basicConfig(level=logging.INFO)
    settings = load_settings()
    engine = make_engine(settings.database_url)
    create_db_and_tables(engine)
    with Session(engine) as session:
        seed_database(session, settings)
