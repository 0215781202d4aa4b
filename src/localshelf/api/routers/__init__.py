"""API router initialization."""

# Hey future me, this is the API router aggregator - main.py mounts it under /api, so the
# local library endpoints end up at /api/local/... Sub-routers define their own prefix.

from fastapi import APIRouter

from localshelf.api.routers import local_library

api_router = APIRouter()

api_router.include_router(local_library.router)

__all__ = ["api_router"]
