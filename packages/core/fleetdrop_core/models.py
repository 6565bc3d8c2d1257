"""Typed models for artifact kinds and install outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import EXIT_SUCCESS, InstallError, UnknownArtifactType


class ArtifactKind(str, Enum):
    PACKAGE = "pkg"
    DISK_IMAGE = "dmg"

    @property
    def suffix(self) -> str:
        return f".{self.value}"

    @property
    def artifact_name(self) -> str:
        return f"package{self.suffix}"

    @classmethod
    def from_token(cls, token: str) -> "ArtifactKind":
        norm = token.strip().lower().lstrip(".")
        for kind in cls:
            if kind.value == norm:
                return kind
        raise UnknownArtifactType(f"Unsupported forced file type {token!r}; expected 'pkg' or 'dmg'.")


class OutcomeStatus(str, Enum):
    ALREADY_PRESENT = "AlreadyPresent"
    INSTALLED = "Installed"
    FAILED = "Failed"


@dataclass(frozen=True)
class InstallOutcome:
    status: OutcomeStatus
    exit_code: int
    reason: str | None = None
    kind: ArtifactKind | None = None

    @classmethod
    def already_present(cls, kind: ArtifactKind | None = None) -> "InstallOutcome":
        return cls(status=OutcomeStatus.ALREADY_PRESENT, exit_code=EXIT_SUCCESS, kind=kind)

    @classmethod
    def installed(cls, kind: ArtifactKind) -> "InstallOutcome":
        return cls(status=OutcomeStatus.INSTALLED, exit_code=EXIT_SUCCESS, kind=kind)

    @classmethod
    def failed(cls, error: InstallError, kind: ArtifactKind | None = None) -> "InstallOutcome":
        return cls(status=OutcomeStatus.FAILED, exit_code=error.exit_code, reason=error.reason, kind=kind)

    @property
    def ok(self) -> bool:
        return self.exit_code == EXIT_SUCCESS
