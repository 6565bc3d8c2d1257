"""Install pipeline: preconditions, classification, idempotency, fetch, verify, install."""

from __future__ import annotations

import logging
from pathlib import Path

from fleetdrop_core.config import InstallerSettings, InstallRequest
from fleetdrop_core.errors import InstallError
from fleetdrop_core.models import ArtifactKind, InstallOutcome

from .capabilities import Toolkit
from .preconditions import require_minimum_os, require_url
from .resolver import classify
from .service import download_artifact, verify_digest
from .strategies import InstallContext, strategy_for
from .workspace import ResourceReaper, ScratchWorkspace

logger = logging.getLogger("fleetdrop.orchestrator")


def already_installed(kind: ArtifactKind, identity: str, toolkit: Toolkit, settings: InstallerSettings) -> bool:
    if not identity:
        return False
    if kind is ArtifactKind.PACKAGE:
        if toolkit.receipts.has_receipt(identity):
            logger.info("Package already installed (receipt: %s). Nothing to do.", identity)
            return True
        return False
    if kind is ArtifactKind.DISK_IMAGE:
        app = Path(settings.paths.applications_dir) / identity
        if app.is_dir():
            logger.info("Application already installed: %s. Nothing to do.", app)
            return True
        return False
    raise NotImplementedError(f"No idempotency check for {kind!r}")


def _run(request: InstallRequest, toolkit: Toolkit, settings: InstallerSettings, reaper: ResourceReaper) -> InstallOutcome:
    require_url(request)
    if request.minimum_os_version:
        require_minimum_os(toolkit.os_probe.product_version(), request.minimum_os_version)

    kind = classify(request)

    if already_installed(kind, request.install_identity, toolkit, settings):
        return InstallOutcome.already_present(kind)

    workspace = reaper.track_workspace(ScratchWorkspace.create(settings.paths.scratch_root))
    artifact = download_artifact(toolkit.downloader, request.source_url, workspace.artifact_path(kind))
    verify_digest(toolkit.digests, artifact, request.expected_digest)

    ctx = InstallContext(
        request=request,
        kind=kind,
        artifact=artifact,
        toolkit=toolkit,
        settings=settings,
        reaper=reaper,
    )
    strategy_for(kind)(ctx)
    return InstallOutcome.installed(kind)


def run_install(request: InstallRequest, toolkit: Toolkit, settings: InstallerSettings) -> InstallOutcome:
    """Run one install attempt; cleanup happens on every exit path, including interrupts."""
    with ResourceReaper() as reaper:
        try:
            return _run(request, toolkit, settings, reaper)
        except InstallError as exc:
            logger.error("%s", exc.message)
            logger.debug("Failure: %s", exc.to_dict())
            return InstallOutcome.failed(exc)
