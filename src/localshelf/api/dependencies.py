"""Dependency injection for API endpoints."""

from typing import cast

from fastapi import HTTPException, Request

from localshelf.application.services import LocalLibraryService
from localshelf.infrastructure.notifications import EventChannel


# Hey future me, the services live on app.state - the lifespan in infrastructure/lifecycle.py
# puts them there at startup. If they're missing, startup failed or hasn't finished, so
# answer 503 instead of crashing with an AttributeError.
def get_local_library_service(request: Request) -> LocalLibraryService:
    """Get the local library service from app state.

    Raises:
        HTTPException: 503 if the service is not initialized
    """
    if not hasattr(request.app.state, "local_library"):
        raise HTTPException(status_code=503, detail="Local library not initialized")
    return cast(LocalLibraryService, request.app.state.local_library)


def get_event_channel(request: Request) -> EventChannel:
    """Get the notification event channel from app state.

    Raises:
        HTTPException: 503 if the channel is not initialized
    """
    if not hasattr(request.app.state, "events"):
        raise HTTPException(status_code=503, detail="Event channel not initialized")
    return cast(EventChannel, request.app.state.events)
