"""Type-specific install procedures for packages and disk images."""

from __future__ import annotations

import logging
import os
import plistlib
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from fleetdrop_core.config import InstallerSettings, InstallRequest
from fleetdrop_core.errors import ApplicationNotFound, CopyFailed, InstallerFailed, MountFailed
from fleetdrop_core.models import ArtifactKind

from .capabilities import Toolkit
from .workspace import MountHandle, ResourceReaper

logger = logging.getLogger("fleetdrop.strategies")

BUNDLE_SUFFIX = ".app"
BUNDLE_SEARCH_DEPTH = 2


@dataclass(frozen=True)
class InstallContext:
    request: InstallRequest
    kind: ArtifactKind
    artifact: Path
    toolkit: Toolkit
    settings: InstallerSettings
    reaper: ResourceReaper

    @property
    def applications_dir(self) -> Path:
        return Path(self.settings.paths.applications_dir)


def install_package(ctx: InstallContext) -> None:
    tk = ctx.toolkit
    identity = ctx.request.install_identity

    if tk.signatures.assess(ctx.artifact):
        logger.info("Gatekeeper validation passed.")
    else:
        logger.warning("Gatekeeper validation did not pass. Proceeding with install.")

    logger.info("Installing %s ...", ctx.request.display_name)
    if not tk.installer.install(ctx.artifact):
        raise InstallerFailed("Installer failed.", details={"artifact": str(ctx.artifact)})
    logger.info("Install complete.")

    if identity:
        if tk.receipts.has_receipt(identity):
            logger.info("Verified receipt present: %s", identity)
        else:
            logger.warning("Receipt %s not found after install.", identity)


def reported_mount_points(output: str) -> list[Path]:
    """Every ``mount-point`` in ``hdiutil attach -plist`` output, in entity order."""
    try:
        plist = plistlib.loads(output.encode("utf-8"))
    except Exception:
        return []
    if not isinstance(plist, dict):
        return []

    out: list[Path] = []
    for ent in plist.get("system-entities", []):
        mount = ent.get("mount-point") if isinstance(ent, dict) else None
        if mount:
            out.append(Path(mount))
    return out


def parse_mount_points(output: str, volumes_root: str | Path) -> list[Path]:
    """Mount points under ``volumes_root`` from ``hdiutil attach -plist`` output."""
    root = Path(volumes_root)
    return [p for p in reported_mount_points(output) if p == root or root in p.parents]


def resolve_mount_point(output: str, volumes_root: str | Path) -> Path:
    points = parse_mount_points(output, volumes_root)
    if not points or not points[-1].is_dir():
        raise MountFailed("Could not determine mount point.", details={"output": output})
    return points[-1]


def _find_bundles(root: Path, depth: int):
    """Yield ``*.app`` directories up to ``depth`` levels below ``root``, in walk order."""
    base_depth = len(root.parts)
    for dirpath, dirnames, _filenames in os.walk(root):
        dirnames.sort()
        current = Path(dirpath)
        level = len(current.parts) - base_depth
        for name in dirnames:
            if name.endswith(BUNDLE_SUFFIX):
                yield current / name
        if level + 1 >= depth:
            dirnames[:] = []
        else:
            dirnames[:] = [d for d in dirnames if not d.endswith(BUNDLE_SUFFIX)]


def locate_bundle(mount_point: Path, identity: str = "") -> Path:
    if identity:
        named = mount_point / identity
        if named.is_dir():
            return named

    for candidate in _find_bundles(mount_point, BUNDLE_SEARCH_DEPTH):
        return candidate

    raise ApplicationNotFound("No application found in DMG.", details={"mount_point": str(mount_point)})


def install_disk_image(ctx: InstallContext) -> None:
    tk = ctx.toolkit

    logger.info("Mounting DMG...")
    attached = tk.mounter.attach(ctx.artifact)
    if not attached.ok:
        logger.info("%s", attached.output.strip())
        raise MountFailed("Failed to mount DMG.", details={"output": attached.output})

    # Everything hdiutil attached is detached at exit, even if no usable volume resolves.
    for point in dict.fromkeys(reported_mount_points(attached.output)):
        ctx.reaper.track_mount(MountHandle(point, tk.mounter))
    try:
        mount_point = resolve_mount_point(attached.output, ctx.settings.paths.volumes_root)
    except MountFailed:
        logger.info("%s", attached.output.strip())
        raise
    logger.info("DMG mounted at: %s", mount_point)

    app_src = locate_bundle(mount_point, ctx.request.install_identity)
    app_name = app_src.name
    logger.info("Found application: %s", app_name)

    apps_dir = ctx.applications_dir
    target = apps_dir / app_name
    try:
        if target.exists() or target.is_symlink():
            logger.info("Removing existing version from %s...", apps_dir)
            tk.files.remove_tree(target)

        logger.info("Copying %s to %s...", app_name, apps_dir)
        tk.files.copy_tree(app_src, target)
    except OSError as exc:
        raise CopyFailed(
            f"Failed to copy application to {apps_dir}: {exc}",
            details={"source": str(app_src), "target": str(target)},
        ) from exc
    logger.info("Successfully copied to %s", target)

    if target.is_dir():
        logger.info("Installation verified: %s", target)
    else:
        logger.warning("Application not found in %s after copy.", apps_dir)

    logger.info("Clearing quarantine attributes...")
    try:
        tk.quarantine.strip(target)
    except Exception as exc:
        logger.debug("Quarantine strip on %s ignored: %s", target, exc)

    logger.info("Install complete.")


InstallStrategy = Callable[[InstallContext], None]

STRATEGIES: dict[ArtifactKind, InstallStrategy] = {
    ArtifactKind.PACKAGE: install_package,
    ArtifactKind.DISK_IMAGE: install_disk_image,
}


def strategy_for(kind: ArtifactKind) -> InstallStrategy:
    try:
        return STRATEGIES[kind]
    except KeyError:
        raise NotImplementedError(f"No install strategy registered for {kind!r}") from None
