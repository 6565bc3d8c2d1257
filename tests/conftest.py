"""Fake capabilities for driving the install pipeline without system tools."""

from __future__ import annotations

import plistlib
import shutil
import sys
from pathlib import Path
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
for rel in (("packages", "core"), ("installers", "remote")):
    p = str(ROOT.joinpath(*rel))
    if p not in sys.path:
        sys.path.insert(0, p)

from fleetdrop_core.config import InstallerSettings
from fleetdrop_core.errors import DownloadFailed
from fleetdrop_installer.capabilities import AttachResult, Toolkit
from fleetdrop_installer.service import Sha256Digest
from fleetdrop_installer.system import ShutilCopier


class FakeDownloader:
    def __init__(self, payload: bytes | None = b"artifact-bytes", fail: bool = False) -> None:
        self.payload = payload
        self.fail = fail
        self.calls: list[tuple[str, Path]] = []

    def fetch(self, url: str, dest: Path) -> None:
        self.calls.append((url, dest))
        if self.fail:
            raise DownloadFailed("Download failed: connection refused")
        if self.payload is not None:
            dest.write_bytes(self.payload)


class FakeReceipts:
    def __init__(self, installed: set[str] | None = None) -> None:
        self.installed = set(installed or ())
        self.queries: list[str] = []

    def has_receipt(self, identity: str) -> bool:
        self.queries.append(identity)
        return identity in self.installed


class FakeSignatures:
    def __init__(self, ok: bool = True) -> None:
        self.ok = ok
        self.calls: list[Path] = []

    def assess(self, path: Path) -> bool:
        self.calls.append(path)
        return self.ok


class FakeInstaller:
    def __init__(self, ok: bool = True, on_install: Callable[[Path], None] | None = None) -> None:
        self.ok = ok
        self.on_install = on_install
        self.calls: list[Path] = []

    def install(self, path: Path) -> bool:
        self.calls.append(path)
        if self.on_install is not None:
            self.on_install(path)
        return self.ok


class FakeMounter:
    """Attaches by materialising a volume directory with the given bundle names."""

    def __init__(
        self,
        volumes_root: Path,
        bundles: tuple[str, ...] = ("Demo.app",),
        volume_name: str = "Demo",
        ok: bool = True,
        extra_entities: list[dict] | None = None,
    ) -> None:
        self.volumes_root = volumes_root
        self.bundles = bundles
        self.volume_name = volume_name
        self.ok = ok
        self.extra_entities = extra_entities or []
        self.attached: list[Path] = []
        self.detached: list[Path] = []

    @property
    def mount_point(self) -> Path:
        return self.volumes_root / self.volume_name

    def attach(self, image: Path) -> AttachResult:
        if not self.ok:
            return AttachResult(ok=False, output="hdiutil: attach failed - image not recognized")
        mp = self.mount_point
        mp.mkdir(parents=True, exist_ok=True)
        for name in self.bundles:
            contents = mp / name / "Contents"
            contents.mkdir(parents=True, exist_ok=True)
            (contents / "Info.plist").write_bytes(plistlib.dumps({"CFBundleName": name[:-4]}))
        self.attached.append(mp)
        entities = [{"dev-entry": "/dev/disk9"}, *self.extra_entities, {"mount-point": str(mp)}]
        return AttachResult(ok=True, output=plistlib.dumps({"system-entities": entities}).decode("utf-8"))

    def detach(self, mount_point: Path) -> bool:
        self.detached.append(mount_point)
        shutil.rmtree(mount_point, ignore_errors=True)
        return True


class FakeQuarantine:
    def __init__(self, raises: bool = False) -> None:
        self.raises = raises
        self.calls: list[Path] = []

    def strip(self, path: Path) -> bool:
        self.calls.append(path)
        if self.raises:
            raise OSError("xattr: no such xattr")
        return True


class FakeOsProbe:
    def __init__(self, version: str = "14.4.1") -> None:
        self.version = version

    def product_version(self) -> str:
        return self.version


class FakeSystem:
    def __init__(self, root: Path) -> None:
        self.root = root
        self.settings = InstallerSettings()
        self.settings.paths.log_file = str(root / "logs" / "install.log")
        self.settings.paths.scratch_root = str(root / "scratch")
        self.settings.paths.applications_dir = str(root / "Applications")
        self.settings.paths.volumes_root = str(root / "Volumes")
        for key in ("scratch_root", "applications_dir", "volumes_root"):
            Path(getattr(self.settings.paths, key)).mkdir(parents=True, exist_ok=True)

        self.downloader = FakeDownloader()
        self.receipts = FakeReceipts()
        self.signatures = FakeSignatures()
        self.installer = FakeInstaller()
        self.mounter = FakeMounter(self.volumes_root)
        self.files = ShutilCopier()
        self.quarantine = FakeQuarantine()
        self.os_probe = FakeOsProbe()

    @property
    def applications_dir(self) -> Path:
        return Path(self.settings.paths.applications_dir)

    @property
    def volumes_root(self) -> Path:
        return Path(self.settings.paths.volumes_root)

    @property
    def scratch_root(self) -> Path:
        return Path(self.settings.paths.scratch_root)

    def toolkit(self) -> Toolkit:
        return Toolkit(
            downloader=self.downloader,
            digests=Sha256Digest(),
            receipts=self.receipts,
            signatures=self.signatures,
            installer=self.installer,
            mounter=self.mounter,
            files=self.files,
            quarantine=self.quarantine,
            os_probe=self.os_probe,
        )


@pytest.fixture
def fake_system(tmp_path: Path) -> FakeSystem:
    return FakeSystem(tmp_path)
