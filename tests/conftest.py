"""Shared test fixtures.

Hey future me - audio fixtures are REAL files: write_wav() produces a valid PCM WAV
via the stdlib wave module, which mutagen parses without any tags. write_corrupt_mp3()
writes bytes that carry an .mp3 extension but contain no MPEG frame sync, so mutagen
raises HeaderNotFoundError (a MutagenError) for them.
"""

import wave
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest

from localshelf.config import Settings
from localshelf.domain.ports import INotificationSink
from localshelf.infrastructure.persistence import Database


def write_wav(path: Path, seconds: float = 0.1, sample_rate: int = 8000) -> Path:
    """Write a silent mono 16-bit WAV file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    frames = int(seconds * sample_rate)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(b"\x00\x00" * frames)
    return path


def write_corrupt_mp3(path: Path) -> Path:
    """Write a file with an .mp3 extension that is not an MP3."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"this is definitely not an mpeg stream " * 64)
    return path


class RecordingSink(INotificationSink):
    """Notification sink that remembers every event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    def send(self, channel: str, payload: Any) -> None:
        self.events.append((channel, payload))

    def on(self, channel: str) -> list[Any]:
        """Payloads sent on one channel, oldest first."""
        return [payload for name, payload in self.events if name == channel]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary SQLite file."""
    return Settings(
        app_env="test",
        database={"url": f"sqlite+aiosqlite:///{tmp_path}/library.db"},
        scan={"max_concurrent_extractions": 2},
    )


@pytest.fixture
async def database(settings: Settings) -> AsyncGenerator[Database, None]:
    """Database with all tables created."""
    db = Database(settings)
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def music_dir(tmp_path: Path) -> Path:
    """Library with three valid WAVs (one nested) and one corrupt MP3."""
    root = tmp_path / "music"
    write_wav(root / "a.wav")
    write_wav(root / "b.wav")
    write_wav(root / "sub" / "c.wav")
    write_corrupt_mp3(root / "broken.mp3")
    (root / "cover.jpg").write_bytes(b"\xff\xd8\xff")
    return root


@pytest.fixture
def make_wav():
    """Factory fixture: ``make_wav(path, seconds=0.1)`` writes a valid WAV."""
    return write_wav


@pytest.fixture
def make_corrupt_mp3():
    """Factory fixture: ``make_corrupt_mp3(path)`` writes an unparseable .mp3."""
    return write_corrupt_mp3
