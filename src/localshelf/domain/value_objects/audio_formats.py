"""Audio container allowlist used by the filesystem walker."""

from pathlib import PurePath

# Hey future me - this is the single source of truth for "is this an audio file?".
# Settings.scan.audio_extensions defaults to this set; keep entries lowercase with the dot!
AUDIO_EXTENSIONS = frozenset(
    {
        # Lossy
        ".mp3",
        ".m4a",
        ".mp4",
        ".aac",
        ".ogg",
        ".oga",
        ".opus",
        ".wma",
        ".3gp",
        # Lossless
        ".flac",
        ".wav",
        ".aiff",
        ".aif",
        ".alac",
        ".ape",
        ".wv",
    }
)


def is_audio_file(filename: str, extensions: frozenset[str] = AUDIO_EXTENSIONS) -> bool:
    """Check if a filename has a supported audio extension.

    Args:
        filename: Filename or path to check.
        extensions: Allowlist of lowercase extensions (with leading dot).

    Returns:
        True if the file has a supported audio extension.
    """
    return PurePath(filename).suffix.lower() in extensions
