"""Checks that must pass before any network or disk activity."""

from __future__ import annotations

import logging
import re

from fleetdrop_core.config import InstallRequest
from fleetdrop_core.errors import MissingInput, UnsupportedOs

logger = logging.getLogger("fleetdrop.preconditions")

_LEADING_DIGITS = re.compile(r"\d+")


def require_url(request: InstallRequest) -> None:
    if not request.source_url:
        raise MissingInput("No URL provided (parameter 4).")


def parse_version(text: str) -> tuple[int, ...]:
    """Split a dotted version into integers; '12.1b3' -> (12, 1)."""
    out: list[int] = []
    for part in text.strip().replace("-", ".").split("."):
        m = _LEADING_DIGITS.match(part)
        out.append(int(m.group(0)) if m else 0)
    return tuple(out)


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1; missing trailing components count as zero."""
    pa, pb = parse_version(a), parse_version(b)
    width = max(len(pa), len(pb))
    pa += (0,) * (width - len(pa))
    pb += (0,) * (width - len(pb))
    return (pa > pb) - (pa < pb)


def require_minimum_os(current: str, required: str) -> None:
    if not required:
        return
    if compare_versions(current, required) < 0:
        raise UnsupportedOs(
            f"macOS {required} or newer required; current is {current}.",
            details={"current": current, "required": required},
        )
    logger.info("OS version %s satisfies minimum %s", current, required)
