"""Recursive audio file discovery below one root folder."""

import asyncio
import logging
import os
import stat
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass

from localshelf.domain.exceptions import PathError, WalkError
from localshelf.domain.value_objects import (
    AUDIO_EXTENSIONS,
    is_audio_file,
    normalize_folder_path,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Entry:
    path: str
    is_dir: bool
    is_file: bool


def _check_root(root: str) -> str:
    """Validate the root and return its real path (used for cycle detection)."""
    try:
        st = os.stat(root)
    except FileNotFoundError:
        raise PathError(root, "folder does not exist") from None
    except PermissionError:
        raise PathError(root, "permission denied") from None
    except OSError as e:
        raise PathError(root, e.strerror or str(e)) from e

    if not stat.S_ISDIR(st.st_mode):
        raise PathError(root, "not a directory")
    if not os.access(root, os.R_OK | os.X_OK):
        raise PathError(root, "permission denied")
    return os.path.realpath(root)


def _list_dir(directory: str, follow_symlinks: bool) -> tuple[list[_Entry], list[WalkError]]:
    """List one directory completely.

    Hey future me - this runs in a worker thread and returns a plain list. The scandir
    handle is closed before we get back to the event loop, so a consumer that abandons
    the walk generator halfway never leaks a directory descriptor!
    """
    entries: list[_Entry] = []
    errors: list[WalkError] = []

    with os.scandir(directory) as it:
        for dir_entry in it:
            try:
                is_symlink = dir_entry.is_symlink()
                is_dir = dir_entry.is_dir(follow_symlinks=follow_symlinks)
                is_file = dir_entry.is_file()
                points_to_dir = dir_entry.is_dir()
            except OSError as e:
                errors.append(WalkError(dir_entry.path, e.strerror or str(e)))
                continue

            if is_symlink and not is_file and not points_to_dir:
                errors.append(WalkError(dir_entry.path, "broken symbolic link"))
                continue

            entries.append(
                _Entry(
                    path=dir_entry.path,
                    is_dir=is_dir,
                    is_file=is_file,
                )
            )

    entries.sort(key=lambda entry: entry.path)
    return entries, errors


async def walk(
    root: str,
    *,
    audio_extensions: frozenset[str] = AUDIO_EXTENSIONS,
    follow_symlinks: bool = False,
    on_warning: Callable[[WalkError], None] | None = None,
    is_windows: bool = False,
) -> AsyncIterator[str]:
    """Yield every audio file below ``root``, depth first.

    Every directory listing runs via ``asyncio.to_thread`` so the event loop keeps
    serving extraction workers and progress events while we wait on the disk.

    Args:
        root: Normalized folder path to walk
        audio_extensions: Lowercase extension allowlist (with leading dot)
        follow_symlinks: Descend into symlinked directories (cycles are detected)
        on_warning: Receives a WalkError for every entry that could not be traversed
        is_windows: Normalize yielded paths to forward slashes

    Yields:
        File path strings, in the same separator convention as stored folders

    Raises:
        PathError: If the root is missing, not a directory or not readable
    """
    root_real = await asyncio.to_thread(_check_root, root)

    def report(error: WalkError) -> None:
        logger.debug(f"Walk warning: {error.message}")
        if on_warning is not None:
            on_warning(error)

    visited = {root_real}
    # Stack of directories still to list; popped from the end (depth first)
    pending = [root]

    while pending:
        directory = pending.pop()
        try:
            entries, errors = await asyncio.to_thread(
                _list_dir, directory, follow_symlinks
            )
        except OSError as e:
            report(WalkError(directory, e.strerror or str(e)))
            continue

        for error in errors:
            report(error)

        subdirectories: list[str] = []
        for entry in entries:
            if entry.is_dir:
                # Without follow_symlinks no linked directory reaches this point
                if follow_symlinks:
                    real = await asyncio.to_thread(os.path.realpath, entry.path)
                    if real in visited:
                        logger.debug(f"Skipping symlink cycle at {entry.path}")
                        continue
                    visited.add(real)
                subdirectories.append(entry.path)
            elif entry.is_file and is_audio_file(entry.path, audio_extensions):
                yield normalize_folder_path(entry.path, is_windows)

        # Reversed so the alphabetically first subdirectory is walked first
        pending.extend(reversed(subdirectories))
