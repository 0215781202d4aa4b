"""Tests for Database connection setup."""

from sqlalchemy import text

from localshelf.infrastructure.persistence import Database


class TestSqlitePragmas:
    """Pragmas applied to every new SQLite connection."""

    async def test_journal_mode_is_wal(self, database: Database):
        async with database.session_scope() as session:
            mode = (await session.execute(text("PRAGMA journal_mode"))).scalar_one()
        assert mode.lower() == "wal"

    async def test_foreign_keys_are_left_at_sqlite_default(self, database: Database):
        # local_tracks has no FK to local_folders, so nothing turns enforcement on
        async with database.session_scope() as session:
            enabled = (await session.execute(text("PRAGMA foreign_keys"))).scalar_one()
        assert enabled == 0
