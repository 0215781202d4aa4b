"""Folder path normalization and prefix membership.

Hey future me - folder paths are STORAGE KEYS! Always run them through
normalize_folder_path() before comparing, storing or prefix matching,
otherwise "C:\\Music" and "C:/Music" become two different folders.
"""

# Canonical separator used in every stored path
SEPARATOR = "/"


def normalize_folder_path(path: str, is_windows: bool) -> str:
    """Canonicalize a path string for the host separator convention.

    Pure function, no I/O. On a backslash-separated platform every backslash
    becomes a forward slash; on other platforms the path is returned as is.

    Args:
        path: Raw path as supplied by the caller
        is_windows: True when the host uses backslash separators

    Returns:
        Normalized path string
    """
    if is_windows:
        return path.replace("\\", SEPARATOR)
    return path


def folder_prefix(folder_path: str) -> str:
    """Return the prefix every track path below ``folder_path`` starts with.

    The trailing separator matters: "/music/a" must not claim "/music/ab/x.mp3".
    """
    return folder_path.rstrip(SEPARATOR) + SEPARATOR


def is_path_under(path: str, folder_path: str) -> bool:
    """Check whether ``path`` lies strictly below ``folder_path``."""
    return path.startswith(folder_prefix(folder_path))
