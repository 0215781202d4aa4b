"""SQLAlchemy ORM models for localshelf."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Hey future me, utc_now() ensures ALL timestamps are UTC! Never use datetime.now() without
# timezone - that's "naive" datetime and causes bugs when comparing across machines.
def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models.

    All models inherit from this to use the same metadata registry.
    """

    pass


# Listen up, path is UNIQUE and already normalized (forward slashes on Windows too).
# Never insert a raw user path here - go through LibraryReconciler.add_folder().
class LocalFolderModel(Base):
    """A watched root folder."""

    __tablename__ = "local_folders"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    path: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)


# Hey future me - NO folder_id foreign key here, and that's deliberate! Folder membership is
# derived from the path prefix (path LIKE '<folder>/%'). Removing a folder is an O(tracks)
# prefix delete, but renaming/re-adding folders never leaves orphans behind a stale FK.
# uuid is path-derived (uuid5), so re-scans upsert the same row instead of duplicating it.
# tags is a JSON blob of the partial TrackTags dict - absent tags are simply missing keys.
class LocalTrackModel(Base):
    """One indexed audio file."""

    __tablename__ = "local_tracks"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True)
    path: Mapped[str] = mapped_column(Text, nullable=False, unique=True, index=True)
    tags: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, onupdate=utc_now, nullable=False
    )
