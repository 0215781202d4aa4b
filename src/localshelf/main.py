"""FastAPI application factory."""

from fastapi import FastAPI

from localshelf import __version__
from localshelf.api.exception_handlers import register_exception_handlers
from localshelf.api.routers import api_router
from localshelf.config import Settings
from localshelf.infrastructure.lifecycle import lifespan


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Settings to use instead of the cached environment settings (tests)

    Returns:
        Configured app; services are composed by the lifespan on startup
    """
    app = FastAPI(
        title="localshelf",
        description="Local audio library indexer",
        version=__version__,
        lifespan=lifespan,
    )
    if settings is not None:
        app.state.settings = settings

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app
