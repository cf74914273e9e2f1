"""Tests for shared/repository.py."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from shared.exceptions import StorageError
from shared.repository import BaseRepository


class TestBaseRepository:
    """Tests for BaseRepository base class."""

    def test_init_stores_db_client(self):
        """Should store the database client in _db attribute."""
        mock_db = MagicMock()
        repo = BaseRepository(mock_db)
        assert repo._db is mock_db

    def test_execute_returns_query_result(self):
        repo = BaseRepository(MagicMock())
        query = MagicMock()
        query.execute.return_value.data = [{"id": "123"}]

        result = repo._execute(query)

        assert result.data == [{"id": "123"}]

    def test_execute_wraps_client_failures(self):
        """Client exceptions surface as StorageError with the cause attached."""
        repo = BaseRepository(MagicMock())
        query = MagicMock()
        query.execute.side_effect = ConnectionError("connection reset")

        with pytest.raises(StorageError) as exc_info:
            repo._execute(query)

        assert exc_info.value.details["cause"] == "connection reset"
        assert isinstance(exc_info.value.__cause__, ConnectionError)


class TestTimestampMapping:
    def test_to_iso(self):
        when = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
        assert BaseRepository._to_iso(when) == "2025-01-15T12:00:00+00:00"
        assert BaseRepository._to_iso(None) is None

    def test_from_iso_accepts_z_suffix(self):
        """PostgREST returns timestamps with either +00:00 or Z."""
        parsed = BaseRepository._from_iso("2025-01-15T12:00:00Z")
        assert parsed == datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

    def test_from_iso_empty(self):
        assert BaseRepository._from_iso(None) is None
        assert BaseRepository._from_iso("") is None
