"""
Tests for database.py - SQLite cache table.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from regionest.database import CacheEntry, init_database, get_session


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, tmp_path):
        """Test that init_database creates the database file."""
        db_path = tmp_path / "test.db"
        assert not db_path.exists()

        init_database(db_path)

        assert db_path.exists()

    def test_init_creates_tables(self, tmp_path):
        """Test that init_database creates the cache table."""
        db_path = tmp_path / "test.db"
        init_database(db_path)

        session = get_session(db_path)
        assert session.query(CacheEntry).count() == 0
        session.close()

    def test_init_creates_parent_directories(self, tmp_path):
        """Test that init_database creates parent directories if missing."""
        db_path = tmp_path / "nested" / "dir" / "test.db"
        assert not db_path.parent.exists()

        init_database(db_path)

        assert db_path.exists()

    def test_init_is_idempotent(self, tmp_path):
        db_path = tmp_path / "test.db"
        init_database(db_path)
        init_database(db_path)

        session = get_session(db_path)
        assert session.query(CacheEntry).count() == 0
        session.close()


class TestCacheEntryCRUD:
    """Test CRUD operations on the CacheEntry model."""

    @pytest.fixture
    def db_session(self, tmp_path):
        """Create a temporary database and return a session."""
        db_path = tmp_path / "test.db"
        init_database(db_path)
        session = get_session(db_path)
        yield session
        session.close()

    def test_create_and_read(self, db_session):
        db_session.add(CacheEntry(key="estimate:渋谷区|18-35|x", payload='{"maleInRange": 1}', stored_at=1.0))
        db_session.commit()

        result = db_session.get(CacheEntry, "estimate:渋谷区|18-35|x")
        assert result is not None
        assert result.payload == '{"maleInRange": 1}'
        assert result.stored_at == 1.0

    def test_payload_is_required(self, db_session):
        db_session.add(CacheEntry(key="k", stored_at=1.0))

        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_duplicate_key_rejected(self, db_session):
        db_session.add(CacheEntry(key="k", payload="{}", stored_at=1.0))
        db_session.commit()
        db_session.expunge_all()

        db_session.add(CacheEntry(key="k", payload="{}", stored_at=2.0))
        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_delete(self, db_session):
        db_session.add(CacheEntry(key="k", payload="{}", stored_at=1.0))
        db_session.commit()

        db_session.delete(db_session.get(CacheEntry, "k"))
        db_session.commit()

        assert db_session.query(CacheEntry).count() == 0


class TestEngineReuse:
    def test_same_path_shares_engine(self, tmp_path):
        from regionest.database import engine_for

        db_path = tmp_path / "test.db"
        assert engine_for(db_path) is engine_for(str(db_path))
        assert engine_for(db_path) is not engine_for(tmp_path / "other.db")
