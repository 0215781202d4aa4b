"""Caller-facing local library operations.

Hey future me - this is what the HTTP router talks to, and it's the ONLY place that
sends notification events. The flow for every scan is the same:

    normalize paths -> register folders -> scan (progress events) -> merge -> "local-files"

At most one scan runs at a time. Starting a new one (set_folders/refresh_all) cancels the
running scan first; the superseded caller gets ScanCancelledError and nothing of its
result is merged.
"""

import asyncio
import logging
from collections.abc import Sequence

from localshelf.application.services.library_reconciler import LibraryReconciler
from localshelf.application.services.library_scanner import LibraryScanner
from localshelf.domain.entities import Folder, ProgressTick, ScanOutcome, Track
from localshelf.domain.exceptions import PathError, ScanCancelledError, ValidationError
from localshelf.domain.ports import (
    CHANNEL_ERROR,
    CHANNEL_LOCAL_FILES,
    CHANNEL_PROGRESS,
    CHANNEL_QUEUE_ADD,
    CHANNEL_WARNINGS,
    INotificationSink,
)
from localshelf.domain.value_objects import normalize_folder_path
from localshelf.infrastructure.platform import Platform

logger = logging.getLogger(__name__)


def _tracks_payload(tracks: dict[str, Track]) -> dict[str, dict]:
    return {uuid: track.to_dict() for uuid, track in tracks.items()}


class LocalLibraryService:
    """Register, remove and refresh watched folders; import dropped files."""

    def __init__(
        self,
        scanner: LibraryScanner,
        reconciler: LibraryReconciler,
        notifier: INotificationSink,
        platform: Platform,
    ) -> None:
        self._scanner = scanner
        self._reconciler = reconciler
        self._notifier = notifier
        self._platform = platform
        self._active_scan: asyncio.Task[dict[str, Track]] | None = None
        # Folder entities of the running scan, by path - remove_folder() marks them removed
        self._scanning: dict[str, Folder] = {}

    @property
    def is_scanning(self) -> bool:
        return self._active_scan is not None and not self._active_scan.done()

    def normalize(self, path: str) -> str:
        """Validate and normalize one caller-supplied path."""
        if not path or not path.strip():
            raise ValidationError("Path must not be empty")
        return normalize_folder_path(path.strip(), self._platform.is_windows())

    # =========================================================================
    # READS
    # =========================================================================

    async def get_tracks(self) -> dict[str, Track]:
        """Return the whole index keyed by uuid."""
        return {track.uuid: track for track in await self._reconciler.get_tracks()}

    async def get_folder_paths(self) -> list[str]:
        """Return the normalized paths of all registered folders."""
        return [folder.path for folder in await self._reconciler.get_local_folders()]

    # =========================================================================
    # FOLDER CHANGES
    # =========================================================================

    async def register_folders(self, paths: Sequence[str]) -> list[Folder]:
        """Normalize and register folders without scanning them.

        Raises:
            ValidationError: If no path is given or a path is empty
        """
        if not paths:
            raise ValidationError("At least one folder path is required")
        normalized = list(dict.fromkeys(self.normalize(path) for path in paths))
        return [await self._reconciler.add_folder(path) for path in normalized]

    async def set_folders(self, paths: Sequence[str]) -> dict[str, Track]:
        """Register folders, scan them and publish the updated index.

        Returns:
            The whole index after the merge

        Raises:
            ValidationError: On empty input
            PathError: If none of the folders could be opened
            ReconciliationError: If storing the result failed
            ScanCancelledError: If a newer scan superseded this one
        """
        folders = await self.register_folders(paths)
        return await self.scan_folders(folders)

    async def scan_folders(self, folders: Sequence[Folder]) -> dict[str, Track]:
        """Scan already registered folders and publish the updated index.

        Raises:
            PathError: If none of the folders could be opened
            ReconciliationError: If storing the result failed
            ScanCancelledError: If a newer scan superseded this one
        """
        tracks = await self._run_exclusive(folders)
        self._notifier.send(CHANNEL_LOCAL_FILES, _tracks_payload(tracks))
        return tracks

    async def remove_folder(self, path: str) -> list[Track]:
        """Unregister a folder, drop its tracks and publish the remaining index.

        Returns:
            The removed tracks
        """
        normalized = self.normalize(path)
        scanning = self._scanning.get(normalized)
        if scanning is not None and not scanning.is_removed:
            scanning.mark_removed()

        removed = await self._reconciler.remove_local_folder(normalized)
        self._notifier.send(CHANNEL_LOCAL_FILES, _tracks_payload(await self.get_tracks()))
        return removed

    async def refresh_all(self) -> None:
        """Re-scan every registered folder.

        Never raises for scan or store failures - those become a "local-files-error"
        event. A refresh that gets superseded by a newer scan is silently dropped.
        """
        try:
            folders = await self._reconciler.get_local_folders()
            tracks = await self._run_exclusive(folders)
        except ScanCancelledError:
            logger.info("Refresh superseded by a newer scan")
            return
        except Exception as e:
            logger.error(f"Refresh failed: {e}", exc_info=True)
            self._notifier.send(
                CHANNEL_ERROR, {"message": str(e), "type": type(e).__name__}
            )
            return

        self._notifier.send(CHANNEL_LOCAL_FILES, _tracks_payload(tracks))

    async def import_single_files(self, paths: Sequence[str]) -> list[Track]:
        """Extract explicit files for the play queue (drag and drop). Nothing is stored.

        Returns:
            Tracks of the files that could be read, in input order
        """
        normalized = [self.normalize(path) for path in paths]
        tracks, warnings = await self._scanner.get_metas(normalized)
        if warnings:
            self._notifier.send(CHANNEL_WARNINGS, [w.to_dict() for w in warnings])
        self._notifier.send(CHANNEL_QUEUE_ADD, [track.to_dict() for track in tracks])
        return tracks

    async def cancel_scan(self) -> bool:
        """Cancel the running scan, if any, and wait until it has unwound.

        Returns:
            True if a scan was cancelled
        """
        task = self._active_scan
        if task is None or task.done():
            return False
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return True

    # =========================================================================
    # SCAN PLUMBING
    # =========================================================================

    # Hey future me - two callers can both be waiting on cancel_scan() for the SAME old task.
    # Whoever resumes first starts its scan; the other one must see that scan and cancel it
    # too, so keep cancelling until nothing is active. No await between the last check and
    # create_task/assignment, or a third caller could slip in again.
    async def _run_exclusive(self, folders: Sequence[Folder]) -> dict[str, Track]:
        while self.is_scanning:
            if await self.cancel_scan():
                logger.info("Cancelled running scan in favour of a new one")

        task = asyncio.create_task(self._scan_and_merge(list(folders)))
        self._active_scan = task
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task.cancelled() and (current is None or not current.cancelling()):
                raise ScanCancelledError("Scan was superseded and nothing was stored") from None
            raise
        finally:
            if self._active_scan is task:
                self._active_scan = None

    async def _scan_and_merge(self, folders: list[Folder]) -> dict[str, Track]:
        paths = [folder.path for folder in folders]
        for folder in folders:
            folder.start_scan()
            self._scanning[folder.path] = folder

        def on_progress(scan_progress: int, scan_total: int) -> None:
            self._notifier.send(
                CHANNEL_PROGRESS, ProgressTick(scan_progress, scan_total).as_payload()
            )

        try:
            outcome = await self._scanner.scan_folders_and_get_meta(paths, on_progress)
            self._report_warnings(outcome)
            if paths and outcome.failed_roots.issuperset(paths):
                raise PathError(", ".join(paths), "none of the folders could be opened")
            return await self._reconciler.merge_scan_result(outcome, paths)
        finally:
            for folder in folders:
                if self._scanning.get(folder.path) is folder:
                    del self._scanning[folder.path]
                if not folder.is_removed:
                    folder.finish_scan()

    def _report_warnings(self, outcome: ScanOutcome) -> None:
        if not outcome.warnings:
            return
        logger.warning(
            f"Scan finished with {len(outcome.warnings)} warning(s) "
            f"({outcome.failed_files} file(s) skipped)"
        )
        self._notifier.send(CHANNEL_WARNINGS, [w.to_dict() for w in outcome.warnings])
