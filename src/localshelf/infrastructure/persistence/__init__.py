"""Infrastructure persistence layer."""

from .database import Database
from .models import Base, LocalFolderModel, LocalTrackModel
from .repositories import LocalLibraryRepository

__all__ = [
    # Database
    "Database",
    "Base",
    # Models
    "LocalFolderModel",
    "LocalTrackModel",
    # Repositories
    "LocalLibraryRepository",
]
