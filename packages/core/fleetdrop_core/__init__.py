"""Core fleetdrop types: install requests, settings, outcomes, errors, and logging."""

from .config import InstallerSettings, InstallRequest, load_settings, resolve_request
from .errors import (
    EXIT_SUCCESS,
    ApplicationNotFound,
    CopyFailed,
    DigestMismatch,
    DownloadFailed,
    InstallError,
    InstallerFailed,
    Interrupted,
    MissingInput,
    MountFailed,
    SignatureRejected,
    UnknownArtifactType,
    UnsupportedOs,
)
from .models import ArtifactKind, InstallOutcome, OutcomeStatus

__all__ = [
    "EXIT_SUCCESS",
    "ApplicationNotFound",
    "ArtifactKind",
    "CopyFailed",
    "DigestMismatch",
    "DownloadFailed",
    "InstallError",
    "InstallOutcome",
    "InstallRequest",
    "InstallerFailed",
    "InstallerSettings",
    "Interrupted",
    "MissingInput",
    "MountFailed",
    "OutcomeStatus",
    "SignatureRejected",
    "UnknownArtifactType",
    "UnsupportedOs",
    "load_settings",
    "resolve_request",
]
