import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    options = {"connect_args": {"check_same_thread": False}}
    # in-memory sqlite: one shared connection or every session sees an empty db
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db():
    from models import user, role, risk  # noqa: F401  registers the tables

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_roles(db)
        seed_admin(db)
    finally:
        db.close()

    return engine


def seed_roles(db):
    """Upsert one roles row per role catalog entry."""
    from models.role import Role
    from services.role_catalog import ROLE_CATALOG

    for entry in ROLE_CATALOG.values():
        role = db.query(Role).filter(Role.name == entry.name).first()
        if role:
            role.description = entry.description
        else:
            db.add(Role(name=entry.name, description=entry.description))
    db.commit()
    logger.info("Seeded %d catalog roles", len(ROLE_CATALOG))


def seed_admin(db):
    """Create the first administrator from ADMIN_EMAIL and ADMIN_PASSWORD, if set."""
    if not (settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD):
        return None
    from services.access_requests import create_admin

    return create_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


if __name__ == "__main__":
    init_db()
    print("Database tables created successfully")
