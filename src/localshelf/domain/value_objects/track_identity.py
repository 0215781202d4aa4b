"""Stable track identifiers.

Hey future me - the uuid is derived from the ABSOLUTE PATH only, never from
tags! Editing a title must not change the identity, otherwise every re-scan
after a tag edit would look like "delete + add" to downstream caches. Moving
a file does change it, which is exactly what the reconciler expects (old path
gone, new path found).
"""

import uuid
from collections.abc import Mapping
from typing import Any

# Fixed namespace - changing it re-keys every stored track!
TRACK_NAMESPACE = uuid.UUID("8d7f3c2e-5a41-4b6e-9c0d-3f1e2a7b9c55")


def identify(file_path: str, tags: Mapping[str, Any] | None = None) -> str:
    """Derive the stable identifier of a track.

    Args:
        file_path: Normalized absolute file path
        tags: Extracted tags (accepted for interface symmetry, not used)

    Returns:
        uuid5 string, identical for every scan of the same unmoved file
    """
    return str(uuid.uuid5(TRACK_NAMESPACE, file_path))
