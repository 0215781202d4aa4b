"""Domain entities."""

import uuid
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any

from localshelf.domain.exceptions import InvalidStateException


# Hey future me, FolderStatus is the per-folder state machine:
#   (unregistered) -> REGISTERED_SCANNING -> REGISTERED_IDLE -> [refresh] -> REGISTERED_SCANNING
#   any registered state -> REMOVED (terminal!)
# "Unregistered" has no enum value - an unregistered folder simply has no row/entity.
# Once REMOVED, nothing may happen to that Folder object any more. Re-adding the same
# path creates a NEW Folder with a new id.
class FolderStatus(str, Enum):
    """Lifecycle state of a watched folder."""

    REGISTERED_IDLE = "registered_idle"
    REGISTERED_SCANNING = "registered_scanning"
    REMOVED = "removed"


@dataclass
class Folder:
    """A watched root folder. Unique by normalized path."""

    path: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: FolderStatus = FolderStatus.REGISTERED_IDLE

    def __post_init__(self) -> None:
        """Validate folder data."""
        if not self.path or not self.path.strip():
            raise ValueError("Folder path cannot be empty")

    def _ensure_not_removed(self, action: str) -> None:
        if self.status == FolderStatus.REMOVED:
            raise InvalidStateException(f"Cannot {action}: folder {self.path} was removed")

    def start_scan(self) -> None:
        """Move the folder into the scanning state."""
        self._ensure_not_removed("start scan")
        self.status = FolderStatus.REGISTERED_SCANNING

    def finish_scan(self) -> None:
        """Return the folder to idle after a scan (successful or not)."""
        self._ensure_not_removed("finish scan")
        self.status = FolderStatus.REGISTERED_IDLE

    def mark_removed(self) -> None:
        """Terminal transition."""
        self._ensure_not_removed("remove folder")
        self.status = FolderStatus.REMOVED

    @property
    def is_removed(self) -> bool:
        return self.status == FolderStatus.REMOVED


# Yo, TrackTags is PARTIAL on purpose - a file without an album tag is perfectly valid!
# Every field defaults to None and to_dict() drops the Nones, so the payload sent to
# the UI only carries what the file actually has. Don't add defaults like "Unknown Artist"
# here - that's a presentation concern.
@dataclass
class TrackTags:
    """Tags extracted from one audio file. Every field may be absent."""

    title: str | None = None
    artist: str | None = None
    album_artist: str | None = None
    album: str | None = None
    genre: str | None = None
    year: int | None = None
    track_number: int | None = None
    track_total: int | None = None
    disc_number: int | None = None
    duration: float | None = None  # seconds
    bitrate: int | None = None
    sample_rate: int | None = None
    format: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize present fields only."""
        return {key: value for key, value in asdict(self).items() if value is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "TrackTags":
        """Build tags from a stored dict, ignoring unknown keys."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class Track:
    """One indexed audio file.

    Stored flat: folder membership is derived from the path prefix, not a foreign key.
    """

    uuid: str
    path: str
    tags: TrackTags = field(default_factory=TrackTags)

    def to_dict(self) -> dict[str, Any]:
        """Wire form used in notification payloads and API responses."""
        return {"uuid": self.uuid, "path": self.path, "tags": self.tags.to_dict()}


class ScanWarningKind(str, Enum):
    """Category of a non-fatal scan problem."""

    PATH = "path"
    WALK = "walk"
    UNREADABLE = "unreadable"
    UNSUPPORTED_FORMAT = "unsupported_format"
    CORRUPT = "corrupt"


@dataclass(frozen=True)
class ScanWarning:
    """A per-item failure absorbed during a scan."""

    path: str
    kind: ScanWarningKind
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "kind": self.kind.value, "message": self.message}


@dataclass(frozen=True)
class ProgressTick:
    """Snapshot of scan progress. Invariant: scan_progress <= scan_total."""

    scan_progress: int
    scan_total: int

    def as_payload(self) -> dict[str, int]:
        return {"scanProgress": self.scan_progress, "scanTotal": self.scan_total}


# Hey future me - ScanOutcome keeps tracks GROUPED BY FOLDER because the reconciler
# replaces each folder's tracks separately (full replace per folder). Use .tracks when
# you just want the flat uuid -> Track map the UI expects. failed_roots are folders we
# could not open at all - the reconciler must NOT wipe their stored tracks!
@dataclass
class ScanOutcome:
    """Result of one orchestrated scan. Transient - consumed by the reconciler."""

    tracks_by_folder: dict[str, dict[str, Track]] = field(default_factory=dict)
    warnings: list[ScanWarning] = field(default_factory=list)
    failed_roots: set[str] = field(default_factory=set)
    discovered: int = 0

    @property
    def tracks(self) -> dict[str, Track]:
        """All successfully extracted tracks keyed by uuid."""
        merged: dict[str, Track] = {}
        for folder_tracks in self.tracks_by_folder.values():
            merged.update(folder_tracks)
        return merged

    @property
    def failed_files(self) -> int:
        """Number of discovered files that were excluded from the result."""
        return sum(
            1
            for warning in self.warnings
            if warning.kind
            in (
                ScanWarningKind.UNREADABLE,
                ScanWarningKind.UNSUPPORTED_FORMAT,
                ScanWarningKind.CORRUPT,
            )
        )


__all__ = [
    "Folder",
    "FolderStatus",
    "ProgressTick",
    "ScanOutcome",
    "ScanWarning",
    "ScanWarningKind",
    "Track",
    "TrackTags",
]
