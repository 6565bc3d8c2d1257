"""Scratch storage, mounted volumes, and their guaranteed release."""

from __future__ import annotations

import contextlib
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Callable

from fleetdrop_core.models import ArtifactKind

from .capabilities import DiskImageMounter

logger = logging.getLogger("fleetdrop.workspace")

SCRATCH_PREFIX = "jamf_dmg_or_pkg_installer."


class ScratchWorkspace:
    """A freshly named temp directory owned by one run."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.removed = False

    @classmethod
    def create(cls, root: str | Path | None = None) -> "ScratchWorkspace":
        base = Path(root) if root else None
        if base is not None and not base.is_dir():
            base = None
        return cls(Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=base)))

    def artifact_path(self, kind: ArtifactKind) -> Path:
        return self.path / kind.artifact_name

    def remove(self) -> None:
        if self.removed:
            return
        self.removed = True
        shutil.rmtree(self.path, ignore_errors=True)
        logger.debug("Removed scratch directory %s", self.path)


class MountHandle:
    """A live attached volume that must be detached before the run ends."""

    def __init__(self, mount_point: Path, mounter: DiskImageMounter) -> None:
        self.mount_point = mount_point
        self._mounter = mounter
        self.detached = False

    def detach(self) -> None:
        if self.detached:
            return
        self.detached = True
        if not self.mount_point.exists():
            return
        logger.info("Unmounting %s", self.mount_point)
        try:
            ok = self._mounter.detach(self.mount_point)
        except Exception as exc:
            logger.warning("Detach of %s raised: %s", self.mount_point, exc)
            return
        if not ok:
            logger.warning("Detach of %s reported failure", self.mount_point)


class ResourceReaper:
    """Releases tracked resources once, in reverse order of acquisition.

    Mounts are tracked after the scratch workspace, so they are always
    detached before the workspace directory is removed.
    """

    def __init__(self) -> None:
        self._stack = contextlib.ExitStack()

    def __enter__(self) -> "ResourceReaper":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.reap()
        return False

    def _push(self, release: Callable[[], None], label: str) -> None:
        def _guarded() -> None:
            try:
                release()
            except Exception as exc:
                logger.warning("Cleanup of %s failed: %s", label, exc)

        self._stack.callback(_guarded)

    def track_workspace(self, workspace: ScratchWorkspace) -> ScratchWorkspace:
        self._push(workspace.remove, f"scratch directory {workspace.path}")
        return workspace

    def track_mount(self, handle: MountHandle) -> MountHandle:
        self._push(handle.detach, f"mount {handle.mount_point}")
        return handle

    def reap(self) -> None:
        self._stack.close()
