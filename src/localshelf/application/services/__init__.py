"""Application services."""

from localshelf.application.services.filesystem_walker import walk
from localshelf.application.services.library_reconciler import LibraryReconciler
from localshelf.application.services.library_scanner import (
    LibraryScanner,
    ScanProgressCounter,
)
from localshelf.application.services.local_library_service import LocalLibraryService
from localshelf.application.services.metadata_extractor import MetadataExtractor

__all__ = [
    "LibraryReconciler",
    "LibraryScanner",
    "LocalLibraryService",
    "MetadataExtractor",
    "ScanProgressCounter",
    "walk",
]
