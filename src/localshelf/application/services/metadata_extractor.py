"""Per-file tag extraction with mutagen."""

import logging
from pathlib import Path
from typing import Any

from mutagen import File as MutagenFile  # type: ignore[attr-defined]
from mutagen import MutagenError
from mutagen.asf import ASFBaseAttribute

from localshelf.domain.entities import ScanWarning, ScanWarningKind, Track, TrackTags
from localshelf.domain.exceptions import ExtractionError, ExtractionErrorKind
from localshelf.domain.value_objects import identify, normalize_folder_path

logger = logging.getLogger(__name__)

# Hey future me - ONE table for all three tag families mutagen hands us:
# ID3 frame ids (MP3, WAV, AIFF), Vorbis comment keys (FLAC, OGG, Opus), MP4 atoms (M4A)
# and ASF attribute names (WMA).
# Vorbis keys are case-insensitive in mutagen, so lowercase keys match "TITLE" too.
# Several keys may map to the same field - the first one present wins (table order).
TAG_MAPPINGS: dict[str, str] = {
    # ID3
    "TIT2": "title",
    "TPE1": "artist",
    "TPE2": "album_artist",
    "TALB": "album",
    "TCON": "genre",
    "TDRC": "year",
    "TYER": "year",
    "TRCK": "track_number",
    "TPOS": "disc_number",
    # Vorbis
    "title": "title",
    "artist": "artist",
    "albumartist": "album_artist",
    "album artist": "album_artist",
    "album": "album",
    "genre": "genre",
    "date": "year",
    "year": "year",
    "tracknumber": "track_number",
    "tracktotal": "track_total",
    "totaltracks": "track_total",
    "discnumber": "disc_number",
    # MP4
    "©nam": "title",
    "©ART": "artist",
    "aART": "album_artist",
    "©alb": "album",
    "©gen": "genre",
    "©day": "year",
    "trkn": "track_number",
    "disk": "disc_number",
    # ASF
    "Title": "title",
    "Author": "artist",
    "WM/AlbumArtist": "album_artist",
    "WM/AlbumTitle": "album",
    "WM/Genre": "genre",
    "WM/Year": "year",
    "WM/TrackNumber": "track_number",
    "WM/PartOfSet": "disc_number",
}

_TEXT_FIELDS = {"title", "artist", "album_artist", "album", "genre"}


def _first_value(value: Any) -> Any:
    """Unwrap list values, ID3 frames and ASF attributes down to their first scalar."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, ASFBaseAttribute):
        return value.value
    if hasattr(value, "text"):
        text = value.text
        value = (text[0] if text else None) if isinstance(text, list) else text
    return value


def _to_int(value: Any) -> int | None:
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


def _split_number(value: Any) -> tuple[int | None, int | None]:
    """Parse "3", "3/12" or an MP4 (3, 12) tuple into (number, total)."""
    if isinstance(value, tuple):
        number = _to_int(value[0]) if len(value) > 0 else None
        total = _to_int(value[1]) if len(value) > 1 else None
        # MP4 stores "no total" as 0
        return number or None, total or None
    if isinstance(value, int):
        return value, None
    text = str(value)
    number_part, _, total_part = text.partition("/")
    return _to_int(number_part), _to_int(total_part) if total_part else None


def _parse_year(value: Any) -> int | None:
    # "2003-05-17", "2003" or an ID3TimeStamp - only the first 4 digits count
    text = str(value).strip()[:4]
    return int(text) if len(text) == 4 and text.isdigit() else None


def extract_tags(audio: Any) -> dict[str, Any]:
    """Map mutagen tags onto TrackTags field names.

    Args:
        audio: Object returned by ``mutagen.File``

    Returns:
        Dict of present fields only
    """
    tags: dict[str, Any] = {}
    audio_tags = getattr(audio, "tags", None)
    if not audio_tags:
        return tags

    for tag_key, field_name in TAG_MAPPINGS.items():
        if field_name in tags:
            continue
        try:
            if tag_key not in audio_tags:
                continue
            raw = audio_tags[tag_key]
        except (KeyError, ValueError):
            # Vorbis rejects keys with non-ASCII chars (the MP4 atoms) with ValueError
            continue

        value = _first_value(raw)
        if value is None:
            continue

        if field_name in _TEXT_FIELDS:
            text = str(value).strip()
            if text:
                tags[field_name] = text
        elif field_name == "year":
            year = _parse_year(value)
            if year is not None:
                tags["year"] = year
        elif field_name == "track_number":
            number, total = _split_number(value)
            if number is not None:
                tags["track_number"] = number
            if total is not None and "track_total" not in tags:
                tags["track_total"] = total
        elif field_name == "disc_number":
            number, _total = _split_number(value)
            if number is not None:
                tags["disc_number"] = number
        elif field_name == "track_total":
            total = _to_int(value)
            if total:
                tags["track_total"] = total

    return tags


def extract_stream_info(audio: Any) -> dict[str, Any]:
    """Duration, bitrate and sample rate from the audio stream."""
    info: dict[str, Any] = {}
    stream = getattr(audio, "info", None)
    if stream is None:
        return info
    if getattr(stream, "length", None):
        info["duration"] = round(float(stream.length), 3)
    if getattr(stream, "bitrate", None):
        info["bitrate"] = int(stream.bitrate)
    if getattr(stream, "sample_rate", None):
        info["sample_rate"] = int(stream.sample_rate)
    return info


class MetadataExtractor:
    """Reads tags of one audio file into a Track.

    Hey future me - extract() is SYNCHRONOUS and does blocking file I/O! The scanner
    always calls it through its ThreadPoolExecutor, never directly on the event loop.
    It raises ExtractionError and nothing else, so one bad file never kills a batch.
    """

    def __init__(self, is_windows: bool = False) -> None:
        self._is_windows = is_windows

    def extract(self, file_path: str) -> Track:
        """Extract tags and assign the stable uuid.

        Args:
            file_path: Absolute path of the audio file

        Returns:
            Track with every tag the file carries

        Raises:
            ExtractionError: UNREADABLE, UNSUPPORTED_FORMAT or CORRUPT
        """
        path = normalize_folder_path(file_path, self._is_windows)

        try:
            with open(file_path, "rb") as handle:
                handle.read(1)
        except OSError as e:
            raise ExtractionError(
                path, ExtractionErrorKind.UNREADABLE, e.strerror or str(e)
            ) from e

        try:
            audio = MutagenFile(file_path)
        except MutagenError as e:
            raise ExtractionError(path, ExtractionErrorKind.CORRUPT, str(e)) from e
        except Exception as e:
            # mutagen parsers raise plain struct/index/value errors on truncated files
            raise ExtractionError(
                path, ExtractionErrorKind.CORRUPT, f"{type(e).__name__}: {e}"
            ) from e

        if audio is None:
            raise ExtractionError(
                path, ExtractionErrorKind.UNSUPPORTED_FORMAT, "no parser recognised the file"
            )

        fields: dict[str, Any] = {"format": Path(file_path).suffix.lstrip(".").lower()}
        fields.update(extract_stream_info(audio))
        fields.update(extract_tags(audio))

        tags = TrackTags.from_dict(fields)
        return Track(uuid=identify(path, fields), path=path, tags=tags)

    def try_extract(self, file_path: str) -> Track | ScanWarning:
        """Like extract(), but returns a ScanWarning instead of raising."""
        try:
            return self.extract(file_path)
        except ExtractionError as e:
            logger.debug(f"Skipping {e.path}: {e.reason}")
            return ScanWarning(
                path=e.path, kind=ScanWarningKind(e.kind.value), message=e.message
            )
