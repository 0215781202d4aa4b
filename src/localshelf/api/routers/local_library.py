"""Local library endpoints.

Hey future me - every endpoint here maps 1:1 onto a LocalLibraryService operation:
- GET    /local/tracks      -> get_tracks()
- GET    /local/folders     -> get_folder_paths()
- PUT    /local/folders     -> register now, scan in the background
- DELETE /local/folders     -> remove_folder()
- POST   /local/refresh     -> refresh_all() in the background
- POST   /local/queue-drop  -> import_single_files()
- GET    /local/events      -> SSE stream of the notification channel

Scans can take minutes on a big library, so PUT/refresh answer immediately and the
result arrives as a "local-files" event on /local/events (same as progress ticks).
"""

import json
import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sse_starlette.sse import EventSourceResponse

from localshelf.api.dependencies import get_event_channel, get_local_library_service
from localshelf.api.schemas import (
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
from localshelf.application.services import LocalLibraryService
from localshelf.domain.entities import Folder
from localshelf.domain.exceptions import DomainException, ScanCancelledError
from localshelf.domain.ports import CHANNEL_ERROR
from localshelf.infrastructure.notifications import EventChannel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/local", tags=["local-library"])


async def _scan_in_background(
    service: LocalLibraryService, events: EventChannel, folders: Sequence[Folder]
) -> None:
    """Run a folder scan after the response was sent; failures become error events."""
    try:
        await service.scan_folders(folders)
    except ScanCancelledError:
        logger.info("Background scan superseded by a newer scan")
    except DomainException as e:
        logger.warning(f"Background scan failed: {e.message}")
        events.send(CHANNEL_ERROR, {"message": e.message, "type": type(e).__name__})


@router.get("/tracks")
async def get_tracks(
    service: LocalLibraryService = Depends(get_local_library_service),
) -> dict[str, TrackResponse]:
    """Return the whole index keyed by track uuid."""
    tracks = await service.get_tracks()
    return {uuid: TrackResponse.from_track(track) for uuid, track in tracks.items()}


@router.get("/folders")
async def get_folders(
    service: LocalLibraryService = Depends(get_local_library_service),
) -> FolderListResponse:
    """Return the registered folder paths."""
    return FolderListResponse(
        folders=await service.get_folder_paths(), scanning=service.is_scanning
    )


@router.put("/folders", status_code=202)
async def set_folders(
    body: SetFoldersRequest,
    background_tasks: BackgroundTasks,
    service: LocalLibraryService = Depends(get_local_library_service),
    events: EventChannel = Depends(get_event_channel),
) -> SetFoldersResponse:
    """Register folders and scan them in the background.

    Progress and the final index are published on /local/events.
    """
    folders = await service.register_folders(body.paths)
    background_tasks.add_task(_scan_in_background, service, events, folders)
    return SetFoldersResponse(
        folders=[FolderResponse.from_folder(folder) for folder in folders],
        message=f"Scanning {len(folders)} folder(s)",
    )


@router.delete("/folders")
async def remove_folder(
    path: str = Query(..., description="Folder path to stop watching"),
    service: LocalLibraryService = Depends(get_local_library_service),
) -> RemoveFolderResponse:
    """Stop watching a folder and drop its tracks from the index."""
    removed = await service.remove_folder(path)
    return RemoveFolderResponse(
        path=service.normalize(path),
        removed_tracks=[TrackResponse.from_track(track) for track in removed],
    )


@router.post("/refresh", status_code=202)
async def refresh(
    background_tasks: BackgroundTasks,
    service: LocalLibraryService = Depends(get_local_library_service),
) -> RefreshResponse:
    """Re-scan every registered folder in the background."""
    background_tasks.add_task(service.refresh_all)
    return RefreshResponse(status="started", message="Refresh started")


@router.post("/queue-drop")
async def queue_drop(
    body: QueueDropRequest,
    service: LocalLibraryService = Depends(get_local_library_service),
) -> QueueDropResponse:
    """Read tags of dropped files for the play queue. Nothing is stored."""
    tracks = await service.import_single_files(body.paths)
    return QueueDropResponse(tracks=[TrackResponse.from_track(track) for track in tracks])


# Hey future me - one subscription per connected client! sse-starlette cancels the generator
# when the client disconnects; the finally block then unsubscribes so the channel stops
# buffering events for a dead connection.
@router.get("/events")
async def stream_events(
    request: Request,
    events: EventChannel = Depends(get_event_channel),
) -> EventSourceResponse:
    """Stream notification events via SSE (Server-Sent Events)."""
    subscription = events.subscribe()

    async def event_generator() -> AsyncIterator[dict[str, Any]]:
        try:
            yield {"event": "connected", "data": json.dumps({"status": "streaming"})}
            while True:
                event = await subscription.get()
                yield {"event": event.channel, "data": json.dumps(event.payload)}
        finally:
            subscription.close()
            logger.debug(f"SSE client {request.client} disconnected")

    return EventSourceResponse(event_generator())
