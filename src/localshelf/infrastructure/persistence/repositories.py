"""Repository implementations for the local library store."""

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from localshelf.domain.entities import Folder, Track, TrackTags
from localshelf.domain.ports import ILocalLibraryStore
from localshelf.domain.value_objects import folder_prefix, is_path_under

from .models import LocalFolderModel, LocalTrackModel, utc_now

logger = logging.getLogger(__name__)

# SQLite caps bound parameters per statement - delete stale uuids in chunks
DELETE_CHUNK_SIZE = 500


def _chunks(items: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _to_track(model: LocalTrackModel) -> Track:
    return Track(uuid=model.uuid, path=model.path, tags=TrackTags.from_dict(model.tags))


def _to_folder(model: LocalFolderModel) -> Folder:
    return Folder(id=model.id, path=model.path)


class LocalLibraryRepository(ILocalLibraryStore):
    """SQLAlchemy implementation of the local library store.

    Hey future me - this repository NEVER commits! It works inside the session it was
    given, and Database.session_scope() commits or rolls back the whole unit of work.
    That's what makes a multi-folder reconcile all-or-nothing.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def get_tracks(self) -> list[Track]:
        """Return every stored track, ordered by path."""
        stmt = select(LocalTrackModel).order_by(LocalTrackModel.path)
        result = await self.session.execute(stmt)
        return [_to_track(model) for model in result.scalars().all()]

    async def get_tracks_under(self, folder_path: str) -> list[Track]:
        """Return the tracks whose path lies below ``folder_path``."""
        models = await self._track_models_under(folder_path)
        return [_to_track(model) for model in models]

    async def get_local_folders(self) -> list[Folder]:
        """Return every registered folder, ordered by path."""
        stmt = select(LocalFolderModel).order_by(LocalFolderModel.path)
        result = await self.session.execute(stmt)
        return [_to_folder(model) for model in result.scalars().all()]

    async def get_folder_by_path(self, path: str) -> Folder | None:
        """Return the folder registered at ``path``, if any."""
        model = await self._folder_model(path)
        return _to_folder(model) if model else None

    async def add_folder(self, path: str) -> Folder:
        """Register a folder. Returns the existing folder when already registered."""
        existing = await self._folder_model(path)
        if existing:
            logger.debug("Folder already registered: %s", path)
            return _to_folder(existing)

        model = LocalFolderModel(path=path)
        self.session.add(model)
        await self.session.flush()
        logger.info("Registered folder %s (id=%s)", path, model.id)
        return _to_folder(model)

    async def remove_local_folder(self, path: str) -> list[Track]:
        """Delete a folder row and every track under its prefix.

        Returns:
            The removed tracks (empty when nothing was stored below the folder)
        """
        folder_model = await self._folder_model(path)
        track_models = await self._track_models_under(path)
        removed = [_to_track(model) for model in track_models]

        uuids = [model.uuid for model in track_models]
        for chunk in _chunks(uuids, DELETE_CHUNK_SIZE):
            await self.session.execute(
                delete(LocalTrackModel).where(LocalTrackModel.uuid.in_(chunk))
            )

        if folder_model:
            await self.session.delete(folder_model)
        await self.session.flush()
        return removed

    async def replace_folder_tracks(
        self, folder_path: str, tracks: Iterable[Track]
    ) -> tuple[int, int]:
        """Make the stored tracks under ``folder_path`` exactly ``tracks``.

        Rows are matched by uuid, so unchanged files keep their row (and created_at);
        rows whose file is gone are deleted.

        Returns:
            Tuple of (upserted, deleted) counts
        """
        existing = {model.uuid: model for model in await self._track_models_under(folder_path)}
        fresh = {track.uuid: track for track in tracks}

        stale = [uuid for uuid in existing if uuid not in fresh]
        for chunk in _chunks(stale, DELETE_CHUNK_SIZE):
            await self.session.execute(
                delete(LocalTrackModel).where(LocalTrackModel.uuid.in_(chunk))
            )

        for uuid, track in fresh.items():
            tags = track.tags.to_dict()
            model = existing.get(uuid)
            if model is None:
                self.session.add(LocalTrackModel(uuid=uuid, path=track.path, tags=tags))
            elif model.tags != tags or model.path != track.path:
                model.path = track.path
                model.tags = tags
                model.updated_at = utc_now()

        await self.session.flush()
        return len(fresh), len(stale)

    async def _folder_model(self, path: str) -> LocalFolderModel | None:
        stmt = select(LocalFolderModel).where(LocalFolderModel.path == path)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _track_models_under(self, folder_path: str) -> Sequence[LocalTrackModel]:
        # autoescape: folder names may legitimately contain % or _
        stmt = select(LocalTrackModel).where(
            LocalTrackModel.path.startswith(folder_prefix(folder_path), autoescape=True)
        )
        result = await self.session.execute(stmt)
        # SQLite LIKE ignores ASCII case; re-check so /Music/A never claims /music/a
        return [
            model
            for model in result.scalars().all()
            if is_path_under(model.path, folder_path)
        ]
