"""Tests for MetadataExtractor."""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from mutagen import MutagenError
from mutagen.asf import ASFDWordAttribute, ASFUnicodeAttribute

from localshelf.application.services.metadata_extractor import (
    MetadataExtractor,
    extract_tags,
)
from localshelf.domain.entities import ScanWarning, ScanWarningKind, Track
from localshelf.domain.exceptions import ExtractionError, ExtractionErrorKind
from localshelf.domain.value_objects import identify

MUTAGEN_FILE = "localshelf.application.services.metadata_extractor.MutagenFile"


class FakeFrame:
    """Mimics an ID3 text frame (value lives in .text)."""

    def __init__(self, *text):
        self.text = list(text)


def _audio(tags, length=183.5, bitrate=320000, sample_rate=44100):
    return SimpleNamespace(
        tags=tags,
        info=SimpleNamespace(length=length, bitrate=bitrate, sample_rate=sample_rate),
    )


class TestExtractTags:
    """Test the tag mapping table."""

    def test_id3_frames(self):
        tags = extract_tags(
            _audio(
                {
                    "TIT2": FakeFrame("Song"),
                    "TPE1": FakeFrame("Artist"),
                    "TPE2": FakeFrame("Various Artists"),
                    "TALB": FakeFrame("Album"),
                    "TCON": FakeFrame("Rock", "Pop"),
                    "TDRC": FakeFrame("2003-05-17"),
                    "TRCK": FakeFrame("3/12"),
                    "TPOS": FakeFrame("2/2"),
                }
            )
        )

        assert tags == {
            "title": "Song",
            "artist": "Artist",
            "album_artist": "Various Artists",
            "album": "Album",
            "genre": "Rock",
            "year": 2003,
            "track_number": 3,
            "track_total": 12,
            "disc_number": 2,
        }

    def test_vorbis_comments(self):
        tags = extract_tags(
            _audio(
                {
                    "title": ["Song"],
                    "albumartist": ["AA"],
                    "date": ["1999"],
                    "tracknumber": ["7"],
                    "tracktotal": ["10"],
                }
            )
        )

        assert tags == {
            "title": "Song",
            "album_artist": "AA",
            "year": 1999,
            "track_number": 7,
            "track_total": 10,
        }

    def test_mp4_atoms(self):
        tags = extract_tags(
            _audio(
                {
                    "©nam": ["Song"],
                    "©ART": ["Artist"],
                    "©day": ["2020-01-01T00:00:00Z"],
                    "trkn": [(4, 0)],
                    "disk": [(1, 2)],
                }
            )
        )

        assert tags == {
            "title": "Song",
            "artist": "Artist",
            "year": 2020,
            "track_number": 4,
            "disc_number": 1,
        }

    def test_asf_attributes(self):
        tags = extract_tags(
            _audio(
                {
                    "Title": [ASFUnicodeAttribute("Song")],
                    "Author": [ASFUnicodeAttribute("Artist")],
                    "WM/AlbumTitle": [ASFUnicodeAttribute("Album")],
                    "WM/Year": [ASFUnicodeAttribute("2004")],
                    "WM/TrackNumber": [ASFDWordAttribute(7)],
                    "WM/PartOfSet": [ASFUnicodeAttribute("1/2")],
                }
            )
        )

        assert tags == {
            "title": "Song",
            "artist": "Artist",
            "album": "Album",
            "year": 2004,
            "track_number": 7,
            "disc_number": 1,
        }

    def test_garbage_numbers_are_dropped(self):
        tags = extract_tags(_audio({"TRCK": FakeFrame("A-side"), "TDRC": FakeFrame("??")}))
        assert tags == {}

    def test_no_tags(self):
        assert extract_tags(_audio(None)) == {}


class TestMetadataExtractor:
    """Test MetadataExtractor.extract() and try_extract()."""

    @pytest.fixture
    def extractor(self) -> MetadataExtractor:
        return MetadataExtractor()

    def test_real_wav_file(self, extractor: MetadataExtractor, tmp_path: Path, make_wav):
        path = str(make_wav(tmp_path / "tone.wav", seconds=0.5))

        track = extractor.extract(path)

        assert track.uuid == identify(path)
        assert track.path == path
        assert track.tags.format == "wav"
        assert track.tags.sample_rate == 8000
        assert track.tags.duration == pytest.approx(0.5, abs=0.01)
        assert track.tags.title is None

    def test_real_corrupt_mp3(self, extractor: MetadataExtractor, tmp_path: Path, make_corrupt_mp3):
        path = str(make_corrupt_mp3(tmp_path / "broken.mp3"))

        with pytest.raises(ExtractionError) as exc_info:
            extractor.extract(path)

        assert exc_info.value.kind == ExtractionErrorKind.CORRUPT

    def test_missing_file_is_unreadable(self, extractor: MetadataExtractor, tmp_path: Path):
        with pytest.raises(ExtractionError) as exc_info:
            extractor.extract(str(tmp_path / "gone.mp3"))
        assert exc_info.value.kind == ExtractionErrorKind.UNREADABLE

    def test_unrecognised_file_is_unsupported(self, extractor: MetadataExtractor, tmp_path: Path):
        path = tmp_path / "mystery.wma"
        path.write_bytes(b"\x00" * 16)

        with patch(MUTAGEN_FILE, return_value=None):
            with pytest.raises(ExtractionError) as exc_info:
                extractor.extract(str(path))

        assert exc_info.value.kind == ExtractionErrorKind.UNSUPPORTED_FORMAT

    def test_mutagen_error_is_corrupt(self, extractor: MetadataExtractor, tmp_path: Path):
        path = tmp_path / "bad.flac"
        path.write_bytes(b"fLaC")

        with patch(MUTAGEN_FILE, side_effect=MutagenError("truncated")):
            with pytest.raises(ExtractionError) as exc_info:
                extractor.extract(str(path))

        assert exc_info.value.kind == ExtractionErrorKind.CORRUPT
        assert "truncated" in exc_info.value.reason

    def test_parser_crash_is_corrupt(self, extractor: MetadataExtractor, tmp_path: Path):
        path = tmp_path / "bad.ogg"
        path.write_bytes(b"OggS")

        with patch(MUTAGEN_FILE, side_effect=IndexError("list index out of range")):
            with pytest.raises(ExtractionError) as exc_info:
                extractor.extract(str(path))

        assert exc_info.value.kind == ExtractionErrorKind.CORRUPT

    def test_tags_and_stream_info_are_combined(self, extractor: MetadataExtractor, tmp_path: Path):
        path = tmp_path / "song.mp3"
        path.write_bytes(b"ID3")

        with patch(MUTAGEN_FILE, return_value=_audio({"TIT2": FakeFrame("Song")})):
            track = extractor.extract(str(path))

        assert track.tags.to_dict() == {
            "title": "Song",
            "format": "mp3",
            "duration": 183.5,
            "bitrate": 320000,
            "sample_rate": 44100,
        }

    def test_windows_paths_are_normalized(self, tmp_path: Path):
        extractor = MetadataExtractor(is_windows=True)
        with (
            patch("builtins.open"),
            patch(MUTAGEN_FILE, return_value=_audio(None)),
        ):
            track = extractor.extract("C:\\Music\\a.mp3")

        assert track.path == "C:/Music/a.mp3"
        assert track.uuid == identify("C:/Music/a.mp3")

    def test_try_extract_returns_warning_instead_of_raising(
        self, extractor: MetadataExtractor, tmp_path: Path
    ):
        result = extractor.try_extract(str(tmp_path / "gone.mp3"))

        assert isinstance(result, ScanWarning)
        assert result.kind == ScanWarningKind.UNREADABLE
        assert result.path == str(tmp_path / "gone.mp3")

    def test_try_extract_returns_track(self, extractor: MetadataExtractor, tmp_path: Path, make_wav):
        result = extractor.try_extract(str(make_wav(tmp_path / "a.wav")))
        assert isinstance(result, Track)
