"""Artifact kind resolution from a forced type or the download URL."""

from __future__ import annotations

import logging
import re

from fleetdrop_core.config import InstallRequest
from fleetdrop_core.errors import UnknownArtifactType
from fleetdrop_core.models import ArtifactKind

logger = logging.getLogger("fleetdrop.resolver")

_URL_PATTERNS: tuple[tuple[re.Pattern[str], ArtifactKind], ...] = (
    (re.compile(r"\.pkg($|\?)", re.IGNORECASE), ArtifactKind.PACKAGE),
    (re.compile(r"\.dmg($|\?)", re.IGNORECASE), ArtifactKind.DISK_IMAGE),
)


def kind_from_url(url: str) -> ArtifactKind | None:
    base = url.split("#", 1)[0]
    for pattern, kind in _URL_PATTERNS:
        if pattern.search(base):
            return kind
    return None


def classify(request: InstallRequest) -> ArtifactKind:
    if request.forced_type:
        kind = ArtifactKind.from_token(request.forced_type)
        logger.info("File type forced to: %s", kind.value)
        return kind

    kind = kind_from_url(request.source_url)
    if kind is None:
        raise UnknownArtifactType(
            "Unable to determine file type from URL. Use parameter 9 to force type.",
            details={"url": request.source_url},
        )
    logger.info("Detected file type: %s", kind.value)
    return kind
