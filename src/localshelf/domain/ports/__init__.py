"""Ports (interfaces) the application layer depends on.

Hey future me - these are the two collaborators the scanning core talks to:
1. ILocalLibraryStore - durable folder/track storage (SQLAlchemy repository)
2. INotificationSink - one-way event channel to whoever renders progress

This follows the Hexagonal Architecture pattern for dependency inversion.
The application services never import SQLAlchemy or FastAPI directly.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from localshelf.domain.entities import Folder, Track

# Event channel names. Same strings the desktop client listens on.
CHANNEL_PROGRESS = "local-files-progress"
CHANNEL_LOCAL_FILES = "local-files"
CHANNEL_WARNINGS = "local-files-warnings"
CHANNEL_ERROR = "local-files-error"
CHANNEL_QUEUE_ADD = "queue-add"


class ILocalLibraryStore(ABC):
    """Interface for persistent folder and track storage.

    Implementations provide durability and serialize concurrent writers.
    All writes of one call happen in the caller's transaction.
    """

    @abstractmethod
    async def get_tracks(self) -> list[Track]:
        """Return every stored track."""
        pass

    @abstractmethod
    async def get_local_folders(self) -> list[Folder]:
        """Return every registered folder."""
        pass

    @abstractmethod
    async def get_folder_by_path(self, path: str) -> Folder | None:
        """Return the folder registered at a normalized path, if any."""
        pass

    @abstractmethod
    async def add_folder(self, path: str) -> Folder:
        """Register a normalized folder path. Idempotent."""
        pass

    @abstractmethod
    async def remove_local_folder(self, path: str) -> list[Track]:
        """Delete a folder and every track under its prefix. Returns removed tracks."""
        pass

    @abstractmethod
    async def replace_folder_tracks(
        self, folder_path: str, tracks: Iterable[Track]
    ) -> tuple[int, int]:
        """Make the tracks under ``folder_path`` exactly ``tracks``.

        Returns:
            Tuple of (upserted, deleted) counts
        """
        pass


class INotificationSink(ABC):
    """Fire-and-forget outbound event channel.

    send() must never block and never report delivery. Callers must not
    depend on a consumer being present.
    """

    @abstractmethod
    def send(self, channel: str, payload: Any) -> None:
        """Publish one event."""
        pass


__all__ = [
    "CHANNEL_ERROR",
    "CHANNEL_LOCAL_FILES",
    "CHANNEL_PROGRESS",
    "CHANNEL_QUEUE_ADD",
    "CHANNEL_WARNINGS",
    "ILocalLibraryStore",
    "INotificationSink",
]
