"""Domain value objects."""

from localshelf.domain.value_objects.audio_formats import AUDIO_EXTENSIONS, is_audio_file
from localshelf.domain.value_objects.paths import (
    SEPARATOR,
    folder_prefix,
    is_path_under,
    normalize_folder_path,
)
from localshelf.domain.value_objects.track_identity import TRACK_NAMESPACE, identify

__all__ = [
    "AUDIO_EXTENSIONS",
    "SEPARATOR",
    "TRACK_NAMESPACE",
    "folder_prefix",
    "identify",
    "is_audio_file",
    "is_path_under",
    "normalize_folder_path",
]
