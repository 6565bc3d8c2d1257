"""Narrow contracts for the OS services the install pipeline drives.

The orchestration code only talks to these protocols; ``system.default_toolkit``
wires up the macOS command-line implementations and tests pass fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class AttachResult:
    ok: bool
    output: str


class Downloader(Protocol):
    def fetch(self, url: str, dest: Path) -> None:
        """Write the body of ``url`` to ``dest``; raise DownloadFailed on failure."""
        ...


class DigestComputer(Protocol):
    def hexdigest(self, path: Path) -> str:
        ...


class PackageDatabase(Protocol):
    def has_receipt(self, identity: str) -> bool:
        ...


class SignatureChecker(Protocol):
    def assess(self, path: Path) -> bool:
        ...


class PackageInstaller(Protocol):
    def install(self, path: Path) -> bool:
        ...


class DiskImageMounter(Protocol):
    def attach(self, image: Path) -> AttachResult:
        ...

    def detach(self, mount_point: Path) -> bool:
        ...


class FileCopier(Protocol):
    def copy_tree(self, src: Path, dest: Path) -> None:
        """Recursively copy ``src`` to ``dest``; raise OSError on failure."""
        ...

    def remove_tree(self, path: Path) -> None:
        ...


class QuarantineStripper(Protocol):
    def strip(self, path: Path) -> bool:
        ...


class OsProbe(Protocol):
    def product_version(self) -> str:
        ...


@dataclass(frozen=True)
class Toolkit:
    downloader: Downloader
    digests: DigestComputer
    receipts: PackageDatabase
    signatures: SignatureChecker
    installer: PackageInstaller
    mounter: DiskImageMounter
    files: FileCopier
    quarantine: QuarantineStripper
    os_probe: OsProbe
