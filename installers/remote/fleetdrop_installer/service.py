"""Artifact download and integrity verification."""

from __future__ import annotations

import hashlib
import http.client
import logging
import socket
import ssl
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import Callable

import certifi

from fleetdrop_core.config import DownloadConfig, TlsConfig
from fleetdrop_core.errors import DigestMismatch, DownloadFailed

from .capabilities import DigestComputer, Downloader

logger = logging.getLogger("fleetdrop.service")

# Status codes curl --retry treats as transient.
RETRYABLE_STATUS = frozenset({408, 429, 500, 502, 503, 504})
_CHUNK = 1024 * 1024


def _build_ssl_context(tls: TlsConfig) -> ssl.SSLContext:
    """Create TLS context for artifact downloads with explicit CA handling."""
    if tls.allow_insecure:
        return ssl._create_unverified_context()

    if tls.ca_bundle:
        return ssl.create_default_context(cafile=tls.ca_bundle)

    return ssl.create_default_context(cafile=certifi.where())


class ShortBody(http.client.HTTPException):
    """Response body ended before its declared Content-Length."""


def _declared_length(response) -> int | None:
    raw = response.headers.get("Content-Length") if response.headers is not None else None
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def _set_read_timeout(response, timeout: float | None) -> None:
    # urllib applies its timeout to every socket operation; widen it once connected.
    sock = getattr(getattr(getattr(response, "fp", None), "raw", None), "_sock", None)
    if sock is not None:
        sock.settimeout(timeout)


class HttpDownloader:
    """GET with redirects, bounded attempts and a connect timeout.

    ``connect_timeout_s`` bounds connection setup and the response headers.
    Body reads then use ``read_timeout_s`` (0 means no limit). A body shorter
    than its ``Content-Length`` fails the attempt. Every attempt rewrites
    ``dest`` from scratch.
    """

    def __init__(
        self,
        download: DownloadConfig | None = None,
        tls: TlsConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.download = download or DownloadConfig()
        self.tls = tls or TlsConfig()
        self._sleep = sleep

    def _urlopen(self, url: str):
        request = urllib.request.Request(
            url,
            headers={"User-Agent": self.download.user_agent, "Accept": "*/*"},
        )
        return urllib.request.urlopen(
            request,
            timeout=self.download.connect_timeout_s,
            context=_build_ssl_context(self.tls),
        )

    def _attempt(self, url: str, dest: Path) -> None:
        with self._urlopen(url) as response:
            status = getattr(response, "status", 200)
            if not 200 <= status < 300:
                raise urllib.error.HTTPError(url, status, f"HTTP {status}", response.headers, None)

            _set_read_timeout(response, self.download.read_timeout_s or None)
            declared = _declared_length(response)
            written = 0
            with dest.open("wb") as fh:
                for chunk in iter(lambda: response.read(_CHUNK), b""):
                    fh.write(chunk)
                    written += len(chunk)

        if declared is not None and written < declared:
            raise ShortBody(f"received {written} of {declared} bytes")

    def fetch(self, url: str, dest: Path) -> None:
        attempts = max(1, int(self.download.attempts))
        delay = self.download.backoff_s
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                self._attempt(url, dest)
                return
            except urllib.error.HTTPError as exc:
                last_error = exc
                if exc.code not in RETRYABLE_STATUS:
                    break
            except (urllib.error.URLError, http.client.HTTPException, socket.timeout, ConnectionError) as exc:
                last_error = exc
            except ValueError as exc:
                # Malformed URL, e.g. no scheme.
                last_error = exc
                break
            except OSError as exc:
                # Local write failures will not improve on retry.
                last_error = exc
                break

            if attempt < attempts:
                logger.info("Download attempt %d/%d failed (%s); retrying in %.0fs", attempt, attempts, last_error, delay)
                self._sleep(delay)
                delay *= 2

        raise DownloadFailed(f"Download failed: {last_error}", details={"url": url})


class Sha256Digest:
    def hexdigest(self, path: Path) -> str:
        return sha256_file(path)


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def download_artifact(downloader: Downloader, url: str, dest: Path) -> Path:
    logger.info("Downloading from: %s", url)
    downloader.fetch(url, dest)

    if not dest.is_file() or dest.stat().st_size == 0:
        raise DownloadFailed("Downloaded file is empty or missing.", details={"path": str(dest)})

    logger.info("Downloaded %d bytes to %s", dest.stat().st_size, dest)
    return dest


def digests_match(expected: str, actual: str) -> bool:
    return expected.strip().lower() == actual.strip().lower()


def verify_digest(digests: DigestComputer, path: Path, expected: str) -> bool:
    """Check ``path`` against an expected SHA-256; returns False when skipped."""
    if not expected:
        logger.warning("No checksum provided; skipping verification.")
        return False

    actual = digests.hexdigest(path)
    if not digests_match(expected, actual):
        logger.info("Expected: %s", expected)
        logger.info("Actual:   %s", actual)
        raise DigestMismatch(
            "SHA-256 mismatch.",
            details={"expected": expected, "actual": actual},
        )

    logger.info("Checksum verified (SHA-256).")
    return True
