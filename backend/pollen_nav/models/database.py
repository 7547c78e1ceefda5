"""Database engine and session factory for SQLAlchemy."""

from sqlalchemy import create_engine, text
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from ..config import settings


class Base(DeclarativeBase):
    pass


engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False},  # SQLite needs this for multi-thread
    echo=False,
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_database(bind=None) -> None:
    """Create all tables.

    Models must be imported before create_all() so they register with Base.metadata.
    """
    from . import stored_record  # noqa: F401
    bind = engine if bind is None else bind
    Base.metadata.create_all(bind=bind)

    if bind.url.database not in (None, "", ":memory:"):
        with bind.connect() as conn:
            conn.execute(text("PRAGMA journal_mode=WAL"))
            conn.commit()
