"""Install request resolution and installer settings load helpers."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence


SETTINGS_VERSION = 1
DEFAULT_DISPLAY_NAME = "Package"
DEFAULT_SETTINGS_PATH = Path("/Library/Application Support/fleetdrop/settings.json")

# Jamf Pro reserves script parameters 1-3 (mount point, computer name, user name).
JAMF_RESERVED_PARAMS = 3

_REQUEST_FIELDS = (
    "source_url",
    "expected_digest",
    "display_name",
    "install_identity",
    "minimum_os_version",
    "forced_type",
)


@dataclass(frozen=True)
class InstallRequest:
    source_url: str = ""
    expected_digest: str = ""
    display_name: str = DEFAULT_DISPLAY_NAME
    install_identity: str = ""
    minimum_os_version: str = ""
    forced_type: str = ""


def resolve_request(params: Sequence[str | None]) -> InstallRequest:
    """Map ordered positional parameters onto an InstallRequest.

    Order: URL, expected SHA-256, display name, install identity (receipt id
    for packages, bundle name for disk images), minimum OS version, forced
    file type. Missing or blank values take their defaults; extra values are
    ignored. No validation happens here.
    """
    values: dict[str, str] = {}
    for name, raw in zip(_REQUEST_FIELDS, params):
        text = (raw or "").strip()
        if text:
            values[name] = text
    return InstallRequest(**values)


@dataclass
class PathsConfig:
    log_file: str = "/var/log/jamf_installer.log"
    scratch_root: str = "/private/tmp"
    applications_dir: str = "/Applications"
    volumes_root: str = "/Volumes"


@dataclass
class DownloadConfig:
    attempts: int = 3
    connect_timeout_s: float = 20.0
    backoff_s: float = 1.0
    # 0 leaves reads after connect unbounded.
    read_timeout_s: float = 0.0
    user_agent: str = "fleetdrop/0.1"


@dataclass
class TlsConfig:
    ca_bundle: str | None = None
    allow_insecure: bool = False


@dataclass
class InstallerSettings:
    settings_version: int = SETTINGS_VERSION
    paths: PathsConfig = field(default_factory=PathsConfig)
    download: DownloadConfig = field(default_factory=DownloadConfig)
    tls: TlsConfig = field(default_factory=TlsConfig)


def settings_path() -> Path:
    override = os.environ.get("FLEETDROP_SETTINGS", "").strip()
    if override:
        return Path(override).expanduser()
    return DEFAULT_SETTINGS_PATH


def _merge(dataclass_type, raw: Any):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_download(cfg: InstallerSettings) -> None:
    try:
        attempts = int(cfg.download.attempts)
    except (TypeError, ValueError):
        attempts = DownloadConfig.attempts
    cfg.download.attempts = max(1, min(10, attempts))

    try:
        timeout = float(cfg.download.connect_timeout_s)
    except (TypeError, ValueError):
        timeout = DownloadConfig.connect_timeout_s
    cfg.download.connect_timeout_s = max(1.0, min(300.0, timeout))

    try:
        cfg.download.backoff_s = max(0.0, float(cfg.download.backoff_s))
    except (TypeError, ValueError):
        cfg.download.backoff_s = DownloadConfig.backoff_s

    try:
        cfg.download.read_timeout_s = max(0.0, float(cfg.download.read_timeout_s))
    except (TypeError, ValueError):
        cfg.download.read_timeout_s = DownloadConfig.read_timeout_s


def _apply_env(cfg: InstallerSettings) -> None:
    log_file = os.environ.get("FLEETDROP_LOG_FILE", "").strip()
    if log_file:
        cfg.paths.log_file = log_file

    ca_bundle = os.environ.get("FLEETDROP_CA_BUNDLE", "").strip()
    if ca_bundle:
        cfg.tls.ca_bundle = ca_bundle

    if os.environ.get("FLEETDROP_ALLOW_INSECURE_TLS", "").strip() == "1":
        cfg.tls.allow_insecure = True


def load_settings(path: Path | None = None) -> InstallerSettings:
    path = path or settings_path()

    raw: dict[str, Any] = {}
    if path.exists():
        try:
            loaded = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            loaded = {}
        if isinstance(loaded, dict):
            raw = loaded

    cfg = InstallerSettings(
        settings_version=SETTINGS_VERSION,
        paths=_merge(PathsConfig, raw.get("paths", {})),
        download=_merge(DownloadConfig, raw.get("download", {})),
        tls=_merge(TlsConfig, raw.get("tls", {})),
    )

    _normalize_download(cfg)
    _apply_env(cfg)
    return cfg

