"""Tests for shared/repository.py."""

import pytest
from unittest.mock import MagicMock

from shared.repository import BaseRepository
from tests.fakes import supabase_mock


class TestBaseRepository:
    """Tests for BaseRepository base class."""

    def test_init_stores_db_client(self):
        """Should store the database client in _db attribute."""
        mock_db = MagicMock()
        repo = BaseRepository(mock_db)
        assert repo._db is mock_db

    def test_generic_type_parameter(self):
        """Should work with generic type parameter."""
        class MockModel:
            pass

        class TestRepository(BaseRepository[MockModel]):
            pass

        mock_db = MagicMock()
        repo = TestRepository(mock_db)
        assert repo._db is mock_db

    @pytest.mark.asyncio
    async def test_fetch_one_returns_first_row(self):
        """_fetch_one should filter on the column and return the first row."""
        db, query = supabase_mock([{"id": "1"}, {"id": "2"}])
        repo = BaseRepository(db)

        row = await repo._fetch_one("billings", "user_id", "user-1")

        assert row == {"id": "1"}
        db.table.assert_called_once_with("billings")
        query.select.assert_called_once_with("*")
        query.eq.assert_called_once_with("user_id", "user-1")
        query.limit.assert_called_once_with(1)

    @pytest.mark.asyncio
    async def test_fetch_one_returns_none_when_empty(self):
        db, _ = supabase_mock([])
        repo = BaseRepository(db)

        assert await repo._fetch_one("billings", "user_id", "user-1") is None
