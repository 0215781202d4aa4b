"""Scan orchestration: concurrent walkers feeding a bounded extraction pool."""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from localshelf.application.services.filesystem_walker import walk
from localshelf.application.services.metadata_extractor import MetadataExtractor
from localshelf.domain.entities import (
    ScanOutcome,
    ScanWarning,
    ScanWarningKind,
    Track,
)
from localshelf.domain.exceptions import PathError, WalkError
from localshelf.domain.value_objects import AUDIO_EXTENSIONS
from localshelf.infrastructure.observability import set_correlation_id

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class ScanProgressCounter:
    """Discovered/processed counters of one scan.

    Hey future me - both counters are ONLY touched from the event loop thread (walkers
    bump ``total``, workers bump ``progress`` after awaiting their executor future).
    That single-writer rule is what guarantees progress <= total and monotonic ticks
    without a lock. Never call complete() from inside an executor thread!
    """

    def __init__(self, on_progress: ProgressCallback | None = None) -> None:
        self.total = 0
        self.progress = 0
        self._on_progress = on_progress

    def discover(self) -> None:
        self.total += 1

    def complete(self) -> None:
        """Count one processed file and report the new (progress, total) pair."""
        self.progress += 1
        if self._on_progress is None:
            return
        try:
            self._on_progress(self.progress, self.total)
        except Exception:
            # The progress sink is fire-and-forget - a broken sink must not stop the scan
            logger.exception("Progress callback failed")


class LibraryScanner:
    """Runs one walker per folder and extracts every discovered file.

    Walkers put paths on an unbounded queue, so discovery never waits behind extraction.
    A fixed pool of worker coroutines drains the queue and runs the (blocking) mutagen
    parse in a ThreadPoolExecutor of the same size - that bounds open file handles.
    """

    def __init__(
        self,
        extractor: MetadataExtractor,
        *,
        max_concurrent_extractions: int = 4,
        audio_extensions: frozenset[str] = AUDIO_EXTENSIONS,
        follow_symlinks: bool = False,
        is_windows: bool = False,
    ) -> None:
        if max_concurrent_extractions < 1:
            raise ValueError("max_concurrent_extractions must be at least 1")
        self._extractor = extractor
        self._max_workers = max_concurrent_extractions
        self._audio_extensions = audio_extensions
        self._follow_symlinks = follow_symlinks
        self._is_windows = is_windows
        self._executor = ThreadPoolExecutor(
            max_workers=max_concurrent_extractions,
            thread_name_prefix="localshelf-extract",
        )

    async def scan_folders_and_get_meta(
        self,
        folders: Sequence[str],
        on_progress: ProgressCallback | None = None,
    ) -> ScanOutcome:
        """Scan all folders concurrently and collect their tracks.

        Args:
            folders: Normalized folder paths
            on_progress: Called with (scan_progress, scan_total) after every processed file

        Returns:
            ScanOutcome with tracks grouped by folder, warnings and failed roots.
            A folder that could not be opened appears in ``failed_roots`` only.
        """
        outcome = ScanOutcome()
        folder_paths = list(dict.fromkeys(folders))
        if not folder_paths:
            return outcome

        scan_id = set_correlation_id()
        started = time.monotonic()
        logger.info(f"Scan {scan_id} started for {len(folder_paths)} folder(s)")

        counter = ScanProgressCounter(on_progress)
        queue: asyncio.Queue[tuple[str, str] | None] = asyncio.Queue()
        for folder in folder_paths:
            outcome.tracks_by_folder[folder] = {}

        walkers = [
            asyncio.create_task(self._walk_folder(folder, queue, counter, outcome))
            for folder in folder_paths
        ]
        workers = [
            asyncio.create_task(self._drain(queue, counter, outcome))
            for _ in range(self._max_workers)
        ]

        try:
            await asyncio.gather(*walkers)
            # Walkers are done, so every path is queued - one stop marker per worker
            for _ in workers:
                queue.put_nowait(None)
            await asyncio.gather(*workers)
        except BaseException:
            for task in (*walkers, *workers):
                task.cancel()
            await asyncio.gather(*walkers, *workers, return_exceptions=True)
            logger.info(f"Scan {scan_id} aborted after {counter.progress} file(s)")
            raise

        outcome.discovered = counter.total
        logger.info(
            f"Scan {scan_id} finished in {time.monotonic() - started:.1f}s: "
            f"{counter.total} file(s), {len(outcome.tracks)} track(s), "
            f"{outcome.failed_files} failed, {len(outcome.failed_roots)} folder(s) unreachable"
        )
        return outcome

    async def get_metas(self, paths: Sequence[str]) -> tuple[list[Track], list[ScanWarning]]:
        """Extract explicitly given files (no folder registration, no walk).

        Returns:
            Tuple of (tracks in input order, warnings for files that failed)
        """
        loop = asyncio.get_running_loop()
        results = await asyncio.gather(
            *(
                loop.run_in_executor(self._executor, self._extractor.try_extract, path)
                for path in paths
            )
        )
        tracks = [result for result in results if isinstance(result, Track)]
        warnings = [result for result in results if isinstance(result, ScanWarning)]
        return tracks, warnings

    def shutdown(self) -> None:
        """Stop the extraction threads. In-flight parses finish, queued ones are dropped."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    async def _walk_folder(
        self,
        folder: str,
        queue: "asyncio.Queue[tuple[str, str] | None]",
        counter: ScanProgressCounter,
        outcome: ScanOutcome,
    ) -> None:
        def on_warning(error: WalkError) -> None:
            outcome.warnings.append(
                ScanWarning(path=error.path, kind=ScanWarningKind.WALK, message=error.message)
            )

        try:
            async for file_path in walk(
                folder,
                audio_extensions=self._audio_extensions,
                follow_symlinks=self._follow_symlinks,
                on_warning=on_warning,
                is_windows=self._is_windows,
            ):
                counter.discover()
                queue.put_nowait((folder, file_path))
        except PathError as e:
            logger.warning(e.message)
            outcome.tracks_by_folder.pop(folder, None)
            outcome.failed_roots.add(folder)
            outcome.warnings.append(
                ScanWarning(path=folder, kind=ScanWarningKind.PATH, message=e.message)
            )

    async def _drain(
        self,
        queue: "asyncio.Queue[tuple[str, str] | None]",
        counter: ScanProgressCounter,
        outcome: ScanOutcome,
    ) -> None:
        loop = asyncio.get_running_loop()
        while True:
            item = await queue.get()
            if item is None:
                return
            folder, file_path = item
            result = await loop.run_in_executor(
                self._executor, self._extractor.try_extract, file_path
            )
            if isinstance(result, Track):
                outcome.tracks_by_folder[folder][result.uuid] = result
            else:
                outcome.warnings.append(result)
            counter.complete()
