"""API schemas for the local library."""

from typing import Any

from pydantic import BaseModel, Field

from localshelf.domain.entities import Folder, Track


class TrackResponse(BaseModel):
    """One indexed audio file."""

    uuid: str = Field(..., description="Stable, path-derived track id")
    path: str = Field(..., description="Normalized absolute file path")
    tags: dict[str, Any] = Field(
        default_factory=dict, description="Tags present in the file (absent tags omitted)"
    )

    @classmethod
    def from_track(cls, track: Track) -> "TrackResponse":
        return cls(**track.to_dict())


class FolderResponse(BaseModel):
    """A registered folder."""

    id: str
    path: str
    status: str

    @classmethod
    def from_folder(cls, folder: Folder) -> "FolderResponse":
        return cls(id=folder.id, path=folder.path, status=folder.status.value)


class FolderListResponse(BaseModel):
    """Registered folder paths."""

    folders: list[str] = Field(default_factory=list)
    scanning: bool = Field(default=False, description="True while a scan is running")


class SetFoldersRequest(BaseModel):
    """Request to register folders and scan them."""

    paths: list[str] = Field(..., min_length=1, description="Folder paths to watch")


class SetFoldersResponse(BaseModel):
    """Folders registered; the scan result arrives on the event stream."""

    folders: list[FolderResponse]
    message: str


class RemoveFolderResponse(BaseModel):
    """Result of removing a folder."""

    path: str
    removed_tracks: list[TrackResponse]


class RefreshResponse(BaseModel):
    """A refresh was started in the background."""

    status: str
    message: str


class QueueDropRequest(BaseModel):
    """Files dropped onto the play queue."""

    paths: list[str] = Field(..., min_length=1, description="Audio file paths")


class QueueDropResponse(BaseModel):
    """Tracks extracted from the dropped files."""

    tracks: list[TrackResponse]
