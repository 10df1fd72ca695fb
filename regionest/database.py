"""
SQLite schema and session factory for the persistent result cache.

One engine is created per database file and reused by every session.
"""

from functools import lru_cache
from pathlib import Path
from sqlalchemy import create_engine, Column, Float, String, Text
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class CacheEntry(Base):
    """Serialized estimate or suggestion payload."""

    __tablename__ = "cache_entries"

    key = Column(String, primary_key=True)  # estimate:<name>|<min>-<max>|<h> or regions:<name>
    payload = Column(Text, nullable=False)  # JSON
    stored_at = Column(Float, nullable=False, index=True)  # epoch seconds

    def __repr__(self):
        return f"<CacheEntry {self.key!r} stored_at={self.stored_at}>"


@lru_cache(maxsize=None)
def _engine(url: str):
    return create_engine(url)


def engine_for(db_path) -> object:
    """Return the shared engine for ``db_path``."""
    return _engine(f"sqlite:///{Path(db_path)}")


def init_database(db_path) -> None:
    """
    Create the cache table, and any missing parent directories.

    Args:
        db_path: Path to SQLite database file
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(engine_for(db_path))


def get_session(db_path):
    """
    Open a session on the cache database.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session; the caller closes it
    """
    Session = sessionmaker(bind=engine_for(db_path))
    return Session()
