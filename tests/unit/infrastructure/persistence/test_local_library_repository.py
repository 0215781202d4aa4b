"""Tests for LocalLibraryRepository.

Hey future me - the repository never commits, so every test works inside ONE
session_scope() unless it explicitly checks what survives a commit/rollback.
"""

import pytest

from localshelf.domain.entities import Track, TrackTags
from localshelf.domain.value_objects import identify
from localshelf.infrastructure.persistence import (
    Database,
    LocalLibraryRepository,
    LocalTrackModel,
)
from localshelf.infrastructure.persistence.repositories import DELETE_CHUNK_SIZE


def _track(path: str, **tags) -> Track:
    return Track(uuid=identify(path), path=path, tags=TrackTags(**tags))


class TestLocalLibraryRepository:
    """Test folder and track persistence."""

    async def test_add_folder_is_idempotent(self, database: Database):
        async with database.session_scope() as session:
            repo = LocalLibraryRepository(session)
            first = await repo.add_folder("/music")
            second = await repo.add_folder("/music")

        assert first.id == second.id
        async with database.session_scope() as session:
            folders = await LocalLibraryRepository(session).get_local_folders()
        assert [f.path for f in folders] == ["/music"]

    async def test_get_folder_by_path(self, database: Database):
        async with database.session_scope() as session:
            repo = LocalLibraryRepository(session)
            await repo.add_folder("/music")
            assert (await repo.get_folder_by_path("/music")).path == "/music"
            assert await repo.get_folder_by_path("/nope") is None

    async def test_tags_round_trip_through_json(self, database: Database):
        track = _track("/music/a.mp3", title="Song", year=2001, duration=12.5)
        async with database.session_scope() as session:
            await LocalLibraryRepository(session).replace_folder_tracks("/music", [track])

        async with database.session_scope() as session:
            [stored] = await LocalLibraryRepository(session).get_tracks()
        assert stored == track

    async def test_replace_reports_counts(self, database: Database):
        async with database.session_scope() as session:
            repo = LocalLibraryRepository(session)
            await repo.replace_folder_tracks(
                "/music", [_track("/music/a.mp3"), _track("/music/b.mp3")]
            )
            upserted, deleted = await repo.replace_folder_tracks(
                "/music", [_track("/music/a.mp3", title="New")]
            )

        assert (upserted, deleted) == (1, 1)

    async def test_unchanged_rows_keep_created_at(self, database: Database):
        track = _track("/music/a.mp3", title="Same")
        async with database.session_scope() as session:
            await LocalLibraryRepository(session).replace_folder_tracks("/music", [track])
        async with database.session_scope() as session:
            before = await session.get(LocalTrackModel, track.uuid)
            created = before.created_at

        async with database.session_scope() as session:
            await LocalLibraryRepository(session).replace_folder_tracks("/music", [track])
            after = await session.get(LocalTrackModel, track.uuid)
            assert after.created_at == created

    async def test_prefix_does_not_match_sibling(self, database: Database):
        async with database.session_scope() as session:
            repo = LocalLibraryRepository(session)
            await repo.replace_folder_tracks("/music/a", [_track("/music/a/1.mp3")])
            await repo.replace_folder_tracks("/music/ab", [_track("/music/ab/1.mp3")])
            await repo.replace_folder_tracks("/music/a", [])

            assert [t.path for t in await repo.get_tracks()] == ["/music/ab/1.mp3"]

    async def test_like_wildcards_in_folder_names_are_literal(self, database: Database):
        async with database.session_scope() as session:
            repo = LocalLibraryRepository(session)
            await repo.replace_folder_tracks("/music/x_y", [_track("/music/x_y/1.mp3")])
            await repo.replace_folder_tracks("/music/xzy", [_track("/music/xzy/1.mp3")])

            under = await repo.get_tracks_under("/music/x_y")

        assert [t.path for t in under] == ["/music/x_y/1.mp3"]

    async def test_remove_deletes_in_chunks(self, database: Database):
        tracks = [_track(f"/big/{i:05d}.mp3") for i in range(DELETE_CHUNK_SIZE + 7)]
        async with database.session_scope() as session:
            repo = LocalLibraryRepository(session)
            await repo.add_folder("/big")
            await repo.replace_folder_tracks("/big", tracks)

        async with database.session_scope() as session:
            removed = await LocalLibraryRepository(session).remove_local_folder("/big")

        assert len(removed) == len(tracks)
        async with database.session_scope() as session:
            repo = LocalLibraryRepository(session)
            assert await repo.get_tracks() == []
            assert await repo.get_local_folders() == []

    async def test_rollback_discards_everything(self, database: Database):
        with pytest.raises(RuntimeError):
            async with database.session_scope() as session:
                repo = LocalLibraryRepository(session)
                await repo.add_folder("/music")
                await repo.replace_folder_tracks("/music", [_track("/music/a.mp3")])
                raise RuntimeError("boom")

        async with database.session_scope() as session:
            repo = LocalLibraryRepository(session)
            assert await repo.get_tracks() == []
            assert await repo.get_local_folders() == []
