"""macOS command-line implementations of the pipeline capabilities."""

from __future__ import annotations

import logging
import platform
import shutil
from pathlib import Path

from fleetdrop_core.config import InstallerSettings

from .capabilities import AttachResult, Toolkit
from .command import run_cmd
from .service import HttpDownloader, Sha256Digest

logger = logging.getLogger("fleetdrop.system")

QUARANTINE_ATTR = "com.apple.quarantine"


class PkgutilReceipts:
    def has_receipt(self, identity: str) -> bool:
        r = run_cmd(["/usr/sbin/pkgutil", "--pkgs"])
        if not r.ok:
            logger.warning("pkgutil --pkgs failed (%d): %s", r.returncode, r.stderr.strip())
            return False
        return any(line.strip() == identity for line in r.stdout.splitlines())


class SpctlAssessor:
    def assess(self, path: Path) -> bool:
        return run_cmd(["/usr/sbin/spctl", "-a", "-vv", "-t", "install", str(path)]).ok


class InstallerCommand:
    def install(self, path: Path) -> bool:
        r = run_cmd(["/usr/sbin/installer", "-pkg", str(path), "-target", "/", "-verboseR"])
        for line in (r.stdout + r.stderr).splitlines():
            if line.strip():
                logger.info("installer: %s", line.strip())
        return r.ok


class HdiutilMounter:
    def attach(self, image: Path) -> AttachResult:
        r = run_cmd(
            ["/usr/bin/hdiutil", "attach", str(image), "-nobrowse", "-noverify", "-noautoopen", "-plist"]
        )
        return AttachResult(ok=r.ok, output=r.stdout if r.ok else (r.stdout + r.stderr))

    def detach(self, mount_point: Path) -> bool:
        return run_cmd(["/usr/bin/hdiutil", "detach", str(mount_point), "-quiet", "-force"]).ok


class ShutilCopier:
    def copy_tree(self, src: Path, dest: Path) -> None:
        shutil.copytree(src, dest, symlinks=True)

    def remove_tree(self, path: Path) -> None:
        if path.is_symlink() or path.is_file():
            path.unlink()
        else:
            shutil.rmtree(path)


class XattrStripper:
    def strip(self, path: Path) -> bool:
        return run_cmd(["/usr/bin/xattr", "-dr", QUARANTINE_ATTR, str(path)]).ok


class MacOsProbe:
    def product_version(self) -> str:
        release = platform.mac_ver()[0]
        if release:
            return release
        r = run_cmd(["/usr/bin/sw_vers", "-productVersion"])
        return r.stdout.strip() if r.ok else "0"


def default_toolkit(settings: InstallerSettings) -> Toolkit:
    return Toolkit(
        downloader=HttpDownloader(settings.download, settings.tls),
        digests=Sha256Digest(),
        receipts=PkgutilReceipts(),
        signatures=SpctlAssessor(),
        installer=InstallerCommand(),
        mounter=HdiutilMounter(),
        files=ShutilCopier(),
        quarantine=XattrStripper(),
        os_probe=MacOsProbe(),
    )
