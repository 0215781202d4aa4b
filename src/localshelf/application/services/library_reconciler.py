"""Applies scan results and folder changes to the persisted index."""

import asyncio
import logging
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError

from localshelf.domain.entities import Folder, ScanOutcome, Track
from localshelf.domain.exceptions import ReconciliationError
from localshelf.infrastructure.persistence import Database, LocalLibraryRepository

logger = logging.getLogger(__name__)


class LibraryReconciler:
    """The single writer of the local library index.

    Hey future me - every write goes through self._lock AND one session_scope(), so two
    concurrent callers never interleave their deletes/upserts and a failed merge rolls
    back completely. Paths passed in here must already be normalized (the service does it).
    """

    def __init__(self, database: Database) -> None:
        self._database = database
        self._lock = asyncio.Lock()

    async def get_tracks(self) -> list[Track]:
        """Return every stored track."""
        async with self._database.session_scope() as session:
            return await LocalLibraryRepository(session).get_tracks()

    async def get_local_folders(self) -> list[Folder]:
        """Return every registered folder."""
        async with self._database.session_scope() as session:
            return await LocalLibraryRepository(session).get_local_folders()

    async def add_folder(self, path: str) -> Folder:
        """Register a folder, or return the existing one for the same path.

        Raises:
            ReconciliationError: If the store rejects the write
        """
        async with self._lock:
            try:
                async with self._database.session_scope() as session:
                    return await LocalLibraryRepository(session).add_folder(path)
            except SQLAlchemyError as e:
                raise ReconciliationError(f"Failed to register folder {path}: {e}") from e

    async def remove_local_folder(self, path: str) -> list[Track]:
        """Delete a folder and every track below it.

        Returns:
            The removed tracks; empty when the folder was never registered

        Raises:
            ReconciliationError: If the store rejects the delete
        """
        async with self._lock:
            try:
                async with self._database.session_scope() as session:
                    repo = LocalLibraryRepository(session)
                    if await repo.get_folder_by_path(path) is None:
                        logger.warning(f"Cannot remove unknown folder {path}")
                        return []
                    removed = await repo.remove_local_folder(path)
            except SQLAlchemyError as e:
                raise ReconciliationError(f"Failed to remove folder {path}: {e}") from e

        logger.info(f"Removed folder {path} with {len(removed)} track(s)")
        return removed

    async def merge_scan_result(
        self, outcome: ScanOutcome, folders: Sequence[str]
    ) -> dict[str, Track]:
        """Replace the stored tracks of every scanned folder in ONE transaction.

        Hey future me - two folders are deliberately left alone:
        - failed roots (unplugged drive) keep their old tracks instead of being wiped
        - folders removed while the scan was running are skipped, or we'd resurrect
          the tracks remove_local_folder() just deleted

        Args:
            outcome: Result of LibraryScanner.scan_folders_and_get_meta()
            folders: The folder paths that were scanned

        Returns:
            The whole index after the merge, keyed by uuid

        Raises:
            ReconciliationError: If any write fails (nothing is committed then)
        """
        async with self._lock:
            try:
                async with self._database.session_scope() as session:
                    repo = LocalLibraryRepository(session)
                    registered = {folder.path for folder in await repo.get_local_folders()}

                    for folder in dict.fromkeys(folders):
                        if folder in outcome.failed_roots:
                            logger.info(f"Keeping stored tracks of unreachable folder {folder}")
                            continue
                        if folder not in registered:
                            logger.info(f"Folder {folder} was removed during the scan, skipping")
                            continue
                        fresh = outcome.tracks_by_folder.get(folder, {})
                        upserted, deleted = await repo.replace_folder_tracks(
                            folder, fresh.values()
                        )
                        logger.debug(
                            f"Reconciled {folder}: {upserted} upserted, {deleted} deleted"
                        )

                    tracks = await repo.get_tracks()
            except SQLAlchemyError as e:
                logger.error(f"Reconcile failed, rolled back: {e}", exc_info=True)
                raise ReconciliationError(f"Failed to store scan result: {e}") from e

        return {track.uuid: track for track in tracks}
