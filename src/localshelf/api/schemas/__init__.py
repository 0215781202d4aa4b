"""API request and response schemas."""

from localshelf.api.schemas.local_library import (
    FolderListResponse,
    FolderResponse,
    QueueDropRequest,
    QueueDropResponse,
    RefreshResponse,
    RemoveFolderResponse,
    SetFoldersRequest,
    SetFoldersResponse,
    TrackResponse,
)

__all__ = [
    "FolderListResponse",
    "FolderResponse",
    "QueueDropRequest",
    "QueueDropResponse",
    "RefreshResponse",
    "RemoveFolderResponse",
    "SetFoldersRequest",
    "SetFoldersResponse",
    "TrackResponse",
]
