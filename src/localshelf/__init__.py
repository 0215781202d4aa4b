"""localshelf - persistent index of locally stored audio files.

Hey future me - the layering follows the usual hexagonal split:
- domain/: entities, value objects, exceptions and ports (no I/O!)
- application/: walker, extractor, scanner, reconciler, library service
- infrastructure/: SQLAlchemy persistence, event channel, logging, platform
- api/: FastAPI router that exposes the library service over HTTP + SSE
"""

__version__ = "1.0.0"
