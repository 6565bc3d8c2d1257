"""Unattended .pkg/.dmg installer for managed macOS endpoints."""

from .capabilities import AttachResult, Toolkit
from .orchestrator import already_installed, run_install
from .preconditions import compare_versions, parse_version, require_minimum_os, require_url
from .resolver import classify, kind_from_url
from .service import HttpDownloader, download_artifact, sha256_file, verify_digest
from .strategies import STRATEGIES, install_disk_image, install_package, locate_bundle, parse_mount_points
from .workspace import MountHandle, ResourceReaper, ScratchWorkspace

__all__ = [
    "AttachResult",
    "HttpDownloader",
    "MountHandle",
    "ResourceReaper",
    "STRATEGIES",
    "ScratchWorkspace",
    "Toolkit",
    "already_installed",
    "classify",
    "compare_versions",
    "download_artifact",
    "install_disk_image",
    "install_package",
    "kind_from_url",
    "locate_bundle",
    "parse_mount_points",
    "parse_version",
    "require_minimum_os",
    "require_url",
    "run_install",
    "sha256_file",
    "verify_digest",
]
