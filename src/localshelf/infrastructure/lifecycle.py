"""Application lifecycle management for startup and shutdown.

The FastAPI lifespan composes every collaborator explicitly and hangs it on app.state:

    Settings -> Database -> LibraryReconciler
    Platform -> MetadataExtractor -> LibraryScanner
    EventChannel
    all of the above -> LocalLibraryService
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from localshelf.application.services import (
    LibraryReconciler,
    LibraryScanner,
    LocalLibraryService,
    MetadataExtractor,
)
from localshelf.config import Settings, get_settings
from localshelf.domain.exceptions import ConfigurationError
from localshelf.infrastructure.notifications import EventChannel
from localshelf.infrastructure.observability import configure_logging
from localshelf.infrastructure.persistence import Database
from localshelf.infrastructure.platform import Platform

logger = logging.getLogger(__name__)


# Hey future me, this validates the SQLite path BEFORE we create the engine! SQLite needs to
# create -wal/-shm files next to the .db file, so the parent directory must exist AND be writable.
# A failure here stops startup with a clear ConfigurationError instead of a cryptic
# "unable to open database file" on the first request.
def _validate_sqlite_path(settings: Settings) -> None:
    """Ensure the SQLite database directory exists and is writable."""
    db_path = settings._get_sqlite_db_path()
    if db_path is None:
        return

    try:
        if db_path.parent and str(db_path.parent) != ".":
            db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug("Ensured SQLite parent directory exists: %s", db_path.parent)
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to create SQLite database directory '{db_path.parent}': {exc}. "
            "Update LOCALSHELF_DATABASE__URL or adjust directory permissions."
        ) from exc

    try:
        test_file = db_path.parent / f".{db_path.stem}_write_test"
        test_file.write_bytes(b"test")
        test_file.unlink()
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to write files in database directory '{db_path.parent}': {exc}. "
            "SQLite requires write permissions to create database and journal files."
        ) from exc


def build_services(
    settings: Settings, database: Database
) -> tuple[LocalLibraryService, LibraryScanner, EventChannel]:
    """Compose the scanning stack for one application instance.

    Returns:
        Tuple of (service, scanner, event channel)
    """
    platform = Platform(force_windows=settings.force_windows_paths)
    is_windows = platform.is_windows()

    extractor = MetadataExtractor(is_windows=is_windows)
    scanner = LibraryScanner(
        extractor,
        max_concurrent_extractions=settings.scan.max_concurrent_extractions,
        audio_extensions=settings.scan.audio_extensions,
        follow_symlinks=settings.scan.follow_symlinks,
        is_windows=is_windows,
    )
    reconciler = LibraryReconciler(database)
    events = EventChannel(queue_size=settings.scan.event_queue_size)

    service = LocalLibraryService(
        scanner=scanner,
        reconciler=reconciler,
        notifier=events,
        platform=platform,
    )
    return service, scanner, events


# Listen future me, everything before `yield` runs at STARTUP, everything after at SHUTDOWN.
# The try/finally makes sure a running scan is cancelled and the thread pool and engine are
# released even when startup fails halfway.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles:
    - Logging configuration
    - SQLite path validation and table creation
    - Service composition onto app.state
    - Scan cancellation and resource cleanup
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    app.state.settings = settings

    configure_logging(
        log_level=settings.observability.log_level,
        json_format=settings.observability.json_logs,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s (%s)", settings.app_name, settings.app_env)

    database: Database | None = None
    service: LocalLibraryService | None = None
    scanner: LibraryScanner | None = None
    try:
        _validate_sqlite_path(settings)

        database = Database(settings)
        app.state.db = database
        # Alembic owns the schema in production; create_all is a no-op for existing tables
        await database.create_tables()
        logger.info("Database initialized: %s", settings.database.url)

        service, scanner, events = build_services(settings, database)
        app.state.local_library = service
        app.state.events = events
        logger.info(
            "Local library ready (%d extraction workers)",
            settings.scan.max_concurrent_extractions,
        )

        yield

    except Exception as e:
        logger.exception("Error during application startup: %s", e)
        raise
    finally:
        logger.info("Shutting down application")

        if service is not None:
            try:
                if await service.cancel_scan():
                    logger.info("Cancelled running scan")
                if scanner is not None:
                    scanner.shutdown()
            except Exception as e:
                logger.exception("Error stopping library scanner: %s", e)

        if database is not None:
            try:
                await database.close()
                logger.info("Database connection closed")
            except Exception as e:
                logger.exception("Error closing database: %s", e)
